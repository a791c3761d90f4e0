# coil_sections.py
"""
Simplified Coil Sections and the Candidate Coil Tree

A SimplifiedCoilSection is one winding turned into a concentric coil with an
inner diameter, a radial build and a height. Candidate coil stacks are grown one
winding at a time in a CoilNodeArena, where each node refers to its parent by
index.
"""

import logging
import math
from dataclasses import dataclass
from typing import List

from design_data import ConductorMaterial
from disk_section import DiskSection, Rect
from windings import Winding

logger = logging.getLogger(__name__)

# Empirical eddy loss fit: p.u. eddy loss per (kAT/in)^2 for a 2.5 mm radial conductor at 60 Hz
DEFAULT_EDDY_COEFFICIENT = 0.0155
REFERENCE_CONDUCTOR_RADIAL = 0.0025
REFERENCE_FREQUENCY = 60.0

# Axial gaps are centred at these fractions of the coil height
GAP_FRACTIONS = (0.25, 0.5, 0.75)


@dataclass(frozen=True)
class SimplifiedCoilSection:
    winding: Winding
    turns: float
    inner_diameter: float
    radial_build: float
    cond_area: float
    conductor: ConductorMaterial
    onaf_current_density: float

    def __str__(self):
        return (f"{self.winding.term_name}: NI/l={self.winding.ni_per_l:.1f} AT/m, "
                f"ID={self.inner_diameter:.4f} m, RB={self.radial_build:.4f} m, "
                f"J={self.onaf_current_density / 1.0e6:.2f} A/mm2")

    @property
    def outer_diameter(self) -> float:
        return self.inner_diameter + 2.0 * self.radial_build

    @property
    def lmt(self) -> float:
        """Mean length of turn."""
        return math.pi * (self.inner_diameter + self.radial_build)

    @property
    def volts_per_turn(self) -> float:
        return self.winding.volts / self.turns

    @property
    def amp_turns(self) -> float:
        return self.winding.amps * self.turns

    @property
    def va(self) -> float:
        return self.winding.volts * self.winding.amps

    @property
    def coil_height(self) -> float:
        return self.amp_turns / self.winding.ni_per_l

    @property
    def conductor_volume(self) -> float:
        return self.cond_area * self.lmt

    def eddy_loss_pu(self, frequency: float = REFERENCE_FREQUENCY,
                     eddy_coefficient: float = DEFAULT_EDDY_COEFFICIENT,
                     conductor_radial: float = REFERENCE_CONDUCTOR_RADIAL) -> float:
        """
        Empirical eddy loss as a fraction of I^2R.

        Scales with the square of the ampere-turns per inch of coil height, of the
        radial conductor dimension and of the frequency.
        """
        kat_per_inch = self.winding.ni_per_l * 0.0254 / 1000.0
        return (eddy_coefficient * kat_per_inch ** 2
                * (conductor_radial / REFERENCE_CONDUCTOR_RADIAL) ** 2
                * (frequency / REFERENCE_FREQUENCY) ** 2)

    def load_loss(self, temperature: float, frequency: float = REFERENCE_FREQUENCY,
                  eddy_coefficient: float = DEFAULT_EDDY_COEFFICIENT) -> float:
        """Load loss of the three phases in watts at the given temperature."""
        resistance = self.conductor.resistance(self.cond_area, self.lmt, temperature)
        loss = self.amp_turns ** 2 * resistance * (1.0 + self.eddy_loss_pu(frequency, eddy_coefficient))
        return 3.0 * loss

    def coil_weight(self) -> float:
        return self.conductor.weight(self.conductor_volume)

    def material_cost(self) -> float:
        """Conductor cost of the three phases."""
        return 3.0 * self.conductor.cost(self.conductor_volume)

    def evaluated_cost(self, temperature: float, cost_per_kw: float, frequency: float = REFERENCE_FREQUENCY,
                       eddy_coefficient: float = DEFAULT_EDDY_COEFFICIENT) -> float:
        """Capitalized load loss."""
        return self.load_loss(temperature, frequency, eddy_coefficient) / 1000.0 * cost_per_kw

    def to_disk_sections(self, coil_ref: int, window_height: float, core_radius: float,
                         direction: float = 1.0) -> List[DiskSection]:
        """
        Split the coil at its axial gaps into disk sections.

        The coil is centred axially in the window and each non-zero gap is centred
        at 1/4, 1/2 or 3/4 of the coil height. Turns are shared in proportion to
        section height.

        Args:
            coil_ref: Identifier stored in each section
            window_height: Core window height (m)
            core_radius: Core radius (m)
            direction: +1.0 or -1.0, the sign of the section current density

        Returns:
            List of DiskSection from bottom to top
        """
        height = self.coil_height
        bottom = (window_height - height) / 2.0
        r1 = self.inner_diameter / 2.0

        cuts = [bottom]
        for fraction, gap in zip(GAP_FRACTIONS, self.winding.axial_gaps):
            if gap.this_coil > 0.0:
                center = bottom + fraction * height
                cuts.append(center - gap.this_coil / 2.0)
                cuts.append(center + gap.this_coil / 2.0)
        cuts.append(bottom + height)

        slices = [(cuts[i], cuts[i + 1]) for i in range(0, len(cuts), 2) if cuts[i + 1] > cuts[i]]
        conductor_height = sum(top - base for base, top in slices)
        current_density = direction * self.amp_turns / (self.radial_build * conductor_height)

        sections = []
        for base, top in slices:
            turns = self.turns * (top - base) / conductor_height
            sections.append(DiskSection(coil_ref, Rect(r1, base, self.radial_build, top - base), turns,
                                        current_density, window_height, core_radius))
        return sections


ROOT = -1


class CoilNodeArena:
    """
    Arena of candidate coil nodes.

    Each node stores the index of its parent (ROOT for the first winding) and a
    coil. Walking parent links from a leaf gives the coil stack from the outside in.
    """

    def __init__(self):
        self._parents: List[int] = []
        self._coils: List[SimplifiedCoilSection] = []

    def __len__(self):
        return len(self._coils)

    def add(self, parent: int, coil: SimplifiedCoilSection) -> int:
        self._parents.append(parent)
        self._coils.append(coil)
        return len(self._coils) - 1

    def coil(self, index: int) -> SimplifiedCoilSection:
        return self._coils[index]

    def parent(self, index: int) -> int:
        return self._parents[index]

    def walk(self, index: int):
        """Yield coils from the given node back to the root."""
        while index != ROOT:
            yield self._coils[index]
            index = self._parents[index]

    def path(self, index: int) -> List[SimplifiedCoilSection]:
        """Coils from the root (innermost) to the given node."""
        coils = list(self.walk(index))
        coils.reverse()
        return coils

    def list_evaluated_cost(self, index: int, temperature: float, cost_per_kw: float,
                            frequency: float = REFERENCE_FREQUENCY,
                            eddy_coefficient: float = DEFAULT_EDDY_COEFFICIENT) -> float:
        """Material cost plus capitalized load loss of every coil on the path."""
        total = 0.0
        for coil in self.walk(index):
            total += coil.material_cost() + coil.evaluated_cost(temperature, cost_per_kw, frequency,
                                                                eddy_coefficient)
        return total
