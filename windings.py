# windings.py
"""
Terminals, Windings and Coil Arrangement

A transformer is specified by its terminals (LV first, HV second, any tertiaries
after). For a given NI/l (ampere-turns per metre of coil height) the terminals
are turned into an ordered list of windings, innermost first, with the axial gaps
each winding needs for taps and dual voltages.
"""

import logging
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from design_data import BILLevel, ClearanceData

logger = logging.getLogger(__name__)

SQRT3 = math.sqrt(3.0)

# Typical conductor dimensions (m)
TYPICAL_CONDUCTOR_AXIAL = 0.010
TYPICAL_CONDUCTOR_RADIAL = 0.0025

# Extra paper on each turn of a twin conductor (m)
TWIN_PAPER = 0.012 * 25.4 / 1000.0

# Tap gaps (m)
TAP_GAP = 0.025
TAP_GAP_HIGH_BIL_FACTOR = 1.5
TAP_GAP_OTHER_COILS_EXTRA = 0.050
DELTA_CENTER_GAP_MAIN = 0.05
DELTA_CENTER_GAP_TAPS = 0.2

# Positions used to place regulating windings inside or outside the main windings
INNER_TAPS = -1
OUTER_TAPS = 10


class WindingType(Enum):
    SHEET = "sheet"
    LAYER = "layer"
    HELIX = "helix"
    DISC = "disc"
    MULTISTART = "multistart"
    PROGRAM_DECIDE = "program_decide"


class Connection(Enum):
    ONE_PHASE_ONE_LEG = "one_phase_one_leg"
    ONE_PHASE_TWO_LEG_PARALLEL = "one_phase_two_leg_parallel"
    ONE_PHASE_TWO_LEG_SERIES = "one_phase_two_leg_series"
    STAR = "star"
    DELTA = "delta"
    ZIGZAG = "zigzag"


@dataclass(frozen=True)
class WindingBIL:
    bottom: BILLevel
    middle: BILLevel
    top: BILLevel

    @property
    def max(self) -> BILLevel:
        return max(self.bottom, self.middle, self.top)


@dataclass(frozen=True)
class AxialGap:
    this_coil: float = 0.0
    other_coils: float = 0.0


NO_GAPS = (AxialGap(), AxialGap(), AxialGap())


@dataclass(frozen=True)
class TerminalBIL:
    line: BILLevel
    neutral: BILLevel
    dv: BILLevel = BILLevel.KV10


@dataclass
class Terminal:
    """
    A transformer terminal.

    Args:
        name: Terminal identifier (used by impedance pairs)
        va: (onan, onaf) total VA of the terminal, all phases
        line_volts: Line-to-line voltage
        num_phases: 1 or 3
        connection: Terminal connection
        bil: Line, neutral and dual-voltage BIL levels
        offload_taps: Off-load tap fractions, if any
        onload_taps: On-load tap fractions, if any
        has_dual_voltage: True if the terminal can be reconnected for a second voltage
    """
    name: str
    va: Tuple[float, float]
    line_volts: float
    num_phases: int
    connection: Connection
    bil: TerminalBIL
    offload_taps: Optional[List[float]] = None
    onload_taps: Optional[List[float]] = None
    has_dual_voltage: bool = False

    def __post_init__(self):
        if self.num_phases not in (1, 3):
            raise ValueError(f"Number of phases must be 1 or 3, not {self.num_phases}")

    @property
    def va_onan(self) -> float:
        return self.va[0]

    @property
    def va_onaf(self) -> float:
        return self.va[1]

    @property
    def leg_volts(self) -> float:
        if self.num_phases == 1:
            if self.connection in (Connection.ONE_PHASE_ONE_LEG, Connection.ONE_PHASE_TWO_LEG_PARALLEL):
                return self.line_volts
            return self.line_volts / 2.0
        if self.connection == Connection.DELTA:
            return self.line_volts
        if self.connection == Connection.STAR:
            return self.line_volts / SQRT3
        return self.line_volts / 3.0

    @property
    def line_amps(self) -> Tuple[float, float]:
        phase_factor = SQRT3 if self.connection in (Connection.DELTA, Connection.STAR) else 1.0
        return (self.va_onan / phase_factor / self.line_volts,
                self.va_onaf / phase_factor / self.line_volts)

    @property
    def leg_amps(self) -> Tuple[float, float]:
        if self.num_phases == 1:
            if self.connection in (Connection.ONE_PHASE_ONE_LEG, Connection.ONE_PHASE_TWO_LEG_SERIES):
                return self.line_amps
            onan, onaf = self.line_amps
            return onan / 2.0, onaf / 2.0
        return (self.va_onan / 3.0 / self.leg_volts, self.va_onaf / 3.0 / self.leg_volts)


@dataclass(frozen=True)
class ImpedancePair:
    term1: str
    term2: str
    impedance_pu: float
    base_va: float      # single-phase VA

    def contains(self, term_name: str) -> bool:
        return term_name in (self.term1, self.term2)


@dataclass(frozen=True)
class LossEvaluation:
    """Capitalization rates (currency per kW) and the load loss reference temperature."""
    no_load: float
    onan_load: float
    onaf_load: float
    ll_temp: float = 85.0


@dataclass(frozen=True)
class Winding:
    term_name: str
    position: int
    volts: float
    amps: float
    winding_type: WindingType
    ni_per_l: float
    bil: WindingBIL
    axial_gaps: Tuple[AxialGap, ...] = NO_GAPS
    static_rings: int = 0
    is_taps: bool = False

    @property
    def total_axial_gaps(self) -> float:
        return sum(gap.this_coil for gap in self.axial_gaps)

    def axial_space_factor(self, bil: BILLevel, clearances: ClearanceData) -> float:
        """Conductor axial space divided by total axial space."""
        if self.winding_type in (WindingType.DISC, WindingType.HELIX):
            return TYPICAL_CONDUCTOR_AXIAL / (TYPICAL_CONDUCTOR_AXIAL + clearances.conductor_cover(bil)
                                              + clearances.inter_disk(bil))
        if self.winding_type in (WindingType.LAYER, WindingType.MULTISTART):
            return TYPICAL_CONDUCTOR_AXIAL / (TYPICAL_CONDUCTOR_AXIAL + clearances.conductor_cover(bil))
        return 1.0

    def radial_space_factor(self, bil: BILLevel, amps: float, clearances: ClearanceData) -> float:
        """
        Conductor radial space divided by total radial space for a single turn.

        High-current windings at 350 kV BIL and above are assumed to use
        continuously transposed cable (over 150 A) or twin conductors (over 75 A).
        """
        cover = clearances.conductor_cover(bil)
        if bil >= 350 and amps > 150.0:
            typical_radial = (amps / 3.0e6) / TYPICAL_CONDUCTOR_AXIAL
            return typical_radial / (typical_radial + cover)
        if bil >= 350 and amps > 75.0:
            return 2.0 * TYPICAL_CONDUCTOR_RADIAL / (2.0 * TYPICAL_CONDUCTOR_RADIAL + cover + TWIN_PAPER)
        return TYPICAL_CONDUCTOR_RADIAL / (TYPICAL_CONDUCTOR_RADIAL + cover)


def winding_types_for_bil(bil: BILLevel) -> List[WindingType]:
    result = []
    if bil <= 30:
        result.append(WindingType.SHEET)
    if bil < 170:
        result.append(WindingType.LAYER)
    if bil < 350:
        result.append(WindingType.HELIX)
    if bil >= 170:
        result.append(WindingType.DISC)
    return result


def needs_static_ring(bil: BILLevel) -> bool:
    return bil >= 170


def _static_rings(terminal):
    rings = 0
    if needs_static_ring(terminal.bil.line):
        rings += 1
    if needs_static_ring(terminal.bil.neutral):
        rings += 1
    if terminal.has_dual_voltage and needs_static_ring(terminal.bil.dv):
        rings += 2
    return rings


def _winding_bil(terminal):
    return WindingBIL(bottom=terminal.bil.neutral, middle=terminal.bil.dv, top=terminal.bil.line)


def _tap_gap(terminal):
    this_coil = TAP_GAP
    if terminal.bil.line > 350:
        this_coil *= TAP_GAP_HIGH_BIL_FACTOR
    return AxialGap(this_coil, this_coil + TAP_GAP_OTHER_COILS_EXTRA)


def coil_arrangement_for_terminals(terms: Sequence[Terminal], ni_per_l: float, base_va: float,
                                   clearances: ClearanceData) -> List[Winding]:
    """
    Build the ordered list of windings for the given terminals.

    Tertiaries (terminals after the second) go closest to the core. LV on-load
    taps are put in an inner multistart winding, HV on-load taps in an outer
    disc winding. Every gap required by one winding is propagated to the others.

    Args:
        terms: Terminals, LV first and HV second
        ni_per_l: Ampere-turns per metre for the main windings (onaf rating)
        base_va: VA used to scale NI/l for tertiaries (onaf rating)
        clearances: Clearance lookup

    Returns:
        Windings sorted from the core outward, positions renumbered from 0
    """
    if len(terms) < 2:
        raise ValueError("At least two terminals are required")

    result = []
    current_pos = 0

    for terminal in terms[2:]:
        result.append(Winding(
            term_name=terminal.name,
            position=current_pos,
            volts=terminal.leg_volts,
            amps=terminal.leg_amps[1],
            winding_type=winding_types_for_bil(terminal.bil.line)[0],
            ni_per_l=ni_per_l * terminal.va_onaf / base_va,
            bil=_winding_bil(terminal),
            static_rings=_static_rings(terminal),
        ))
        current_pos += 1

    for i, terminal in enumerate(terms[:2]):
        axial_gaps = list(NO_GAPS)
        if terminal.has_dual_voltage:
            center_gap = clearances.edge_distance(terminal.bil.dv)
            axial_gaps[1] = AxialGap(center_gap, center_gap)
            if terminal.offload_taps:
                axial_gaps[0] = _tap_gap(terminal)
                axial_gaps[2] = _tap_gap(terminal)
        elif terminal.offload_taps:
            axial_gaps[1] = _tap_gap(terminal)

        result.append(Winding(
            term_name=terminal.name,
            position=current_pos + i,
            volts=terminal.leg_volts,
            amps=terminal.leg_amps[1],
            winding_type=winding_types_for_bil(terminal.bil.line)[0],
            ni_per_l=ni_per_l,
            bil=_winding_bil(terminal),
            axial_gaps=tuple(axial_gaps),
            static_rings=_static_rings(terminal),
        ))

        if terminal.onload_taps:
            result.append(_regulating_winding(terminal, i == 0, ni_per_l))

    # Every winding must carry the gaps that the others require of it
    arranged = []
    for i, winding in enumerate(result):
        others = [other for j, other in enumerate(result) if j != i]
        gaps = []
        for k, gap in enumerate(winding.axial_gaps):
            required = max((other.axial_gaps[k].other_coils for other in others), default=0.0)
            gaps.append(replace(gap, this_coil=max(gap.this_coil, required)))
        arranged.append(replace(winding, axial_gaps=tuple(gaps)))

    arranged.sort(key=lambda w: w.position)
    return [replace(w, position=index) for index, w in enumerate(arranged)]


def _regulating_winding(terminal, is_inner, ni_per_l):
    max_tap = max(terminal.onload_taps)
    multiplier = 1.0 if is_inner else 2.0
    tap_ni_per_l = ni_per_l * max_tap
    if not is_inner:
        # Outer taps are usually about 80% of the main coil height
        tap_ni_per_l /= 0.8

    axial_gaps = NO_GAPS
    if not is_inner and terminal.connection != Connection.STAR:
        axial_gaps = (AxialGap(), AxialGap(DELTA_CENTER_GAP_TAPS, DELTA_CENTER_GAP_MAIN), AxialGap())

    rv_bil = terminal.bil.line if terminal.connection == Connection.DELTA else terminal.bil.neutral
    return Winding(
        term_name=terminal.name + "RV",
        position=INNER_TAPS if is_inner else OUTER_TAPS,
        volts=max_tap * terminal.leg_volts * multiplier,
        amps=multiplier * terminal.leg_amps[1],
        winding_type=WindingType.MULTISTART if is_inner else WindingType.DISC,
        ni_per_l=tap_ni_per_l,
        bil=WindingBIL(rv_bil, rv_bil, rv_bil),
        axial_gaps=axial_gaps,
        is_taps=True,
    )
