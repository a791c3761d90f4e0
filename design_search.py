# design_search.py
"""
Active-Part Design Search

Enumerates transformer active parts (core plus concentric coils) over volts per
turn, core induction, core steel, NI/l and winding current density, and keeps the
cheapest designs that meet the required impedances.

The search is organised as:

- an outer sweep over V/N factor, Bmax and core steel (sequential)
- for each core circle, a parallel sweep over the NI/l grid, where each grid point
  grows a tree of coil candidates one winding at a time
- a per-core best slot shared by the grid points and guarded by a lock
- a global bounded list of the cheapest designs, sorted by evaluated cost
"""

import bisect
import logging
import math
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence

from coil_sections import ROOT, CoilNodeArena, SimplifiedCoilSection
from config import SearchSettings
from core_geometry import Core, CoreCircle, CoreSteel, optimize_core_circle
from design_data import CostData, DesignData, load_design_data
from impedance import (
    impedance_within_tolerance,
    meets_impedance_requirements,
    pair_impedance,
    rabins_pair_impedances,
)
from progress import NullProgress, ProgressSink, ResultSink
from windings import (
    ImpedancePair,
    LossEvaluation,
    Terminal,
    Winding,
    WindingType,
    coil_arrangement_for_terminals,
)

logger = logging.getLogger(__name__)

CoreOptimizer = Callable[[float, float, CoreSteel, float], Optional[CoreCircle]]

TYPICAL_CONDUCTOR_RADIAL = 0.0025
LAYER_DUCT_ALLOWANCE = 0.25 * 25.4 / 1000.0


class ActivePartCandidate:
    """A complete core and coil design."""

    def __init__(self, coils: Sequence[SimplifiedCoilSection], core: Core, costs: CostData,
                 frequency: float = 60.0, eddy_coefficient: float = 0.0155):
        self.coils = list(coils)
        self.core = core
        self.costs = costs
        self.frequency = frequency
        self.eddy_coefficient = eddy_coefficient

    def __repr__(self):
        return (f"ActivePartCandidate(V/N={self.vpn:.3f}, Bmax={self.bmax:.3f} T, "
                f"steel={self.core.circle.steel.name}, coils={len(self.coils)})")

    @property
    def vpn(self) -> float:
        return self.coils[0].volts_per_turn

    @property
    def bmax(self) -> float:
        return self.core.circle.bmax_at_vpn(self.vpn, self.frequency)

    def total_coil_volume(self) -> float:
        """Conductor volume of the three phases."""
        return 3.0 * sum(coil.conductor_volume for coil in self.coils)

    def insulation_materials_estimate(self) -> float:
        """Cost of the space around the core legs up to the outer coil that is not conductor."""
        outer_od = self.coils[-1].outer_diameter
        core_diameter = self.core.circle.diameter
        cylinder = math.pi * (outer_od ** 2 - core_diameter ** 2) / 4.0 * self.core.window_height * 3.0
        volume = max(cylinder - self.total_coil_volume(), 0.0)
        return volume * self.costs.cost_per_unit_volume("insulation")

    def material_costs(self) -> float:
        result = sum(coil.material_cost() for coil in self.coils)
        result += self.core.cost
        result += self.insulation_materials_estimate()
        return result

    def load_loss(self, temperature: float) -> float:
        return sum(coil.load_loss(temperature, self.frequency, self.eddy_coefficient) for coil in self.coils)

    def evaluated_cost(self, at_bmax: float, evaluation: LossEvaluation) -> float:
        """
        Material cost plus capitalized load and no-load losses.

        Args:
            at_bmax: Core induction used for the no-load loss (T)
            evaluation: Loss capitalization rates

        Returns:
            Evaluated cost
        """
        load_loss_eval = sum(coil.evaluated_cost(evaluation.ll_temp, evaluation.onaf_load,
                                                 self.frequency, self.eddy_coefficient)
                             for coil in self.coils)
        no_load_eval = self.core.loss_at_bmax(at_bmax) / 1000.0 * evaluation.no_load
        return self.material_costs() + load_loss_eval + no_load_eval


class BestSlot:
    """Cheapest candidate found for one core circle, shared between worker threads."""

    def __init__(self):
        self._lock = threading.Lock()
        self._cost = float("inf")
        self._candidate = None

    @property
    def cost(self) -> float:
        with self._lock:
            return self._cost

    @property
    def candidate(self) -> Optional[ActivePartCandidate]:
        with self._lock:
            return self._candidate

    def offer(self, cost: float, candidate: ActivePartCandidate) -> bool:
        with self._lock:
            if cost < self._cost:
                self._cost = cost
                self._candidate = candidate
                return True
            return False


class CheapestDesigns:
    """Bounded list of candidates in strictly ascending cost order."""

    def __init__(self, capacity: int = 10):
        self.capacity = capacity
        self._costs: List[float] = []
        self._candidates: List[ActivePartCandidate] = []

    def __len__(self):
        return len(self._costs)

    def offer(self, cost: float, candidate: ActivePartCandidate) -> bool:
        index = bisect.bisect_left(self._costs, cost)
        if index < len(self._costs) and self._costs[index] == cost:
            return False
        if index >= self.capacity:
            return False

        if index == 0 and self._costs:
            logger.debug("Previous best: %.2f, new best: %.2f", self._costs[0], cost)

        self._costs.insert(index, cost)
        self._candidates.insert(index, candidate)
        if len(self._costs) > self.capacity:
            self._costs.pop()
            self._candidates.pop()
        return True

    @property
    def costs(self) -> List[float]:
        return list(self._costs)

    @property
    def candidates(self) -> List[ActivePartCandidate]:
        return list(self._candidates)


class DesignSearch:
    """
    Search for the cheapest active parts for a set of terminals.

    Args:
        terminals: Terminals, LV first, HV second, then any tertiaries
        impedance_targets: Required impedances between terminal pairs
        loss_evaluation: Loss capitalization rates
        settings: Search ranges and limits
        design_data: Clearance, material and cost tables
        core_optimizer: Callable returning a CoreCircle (or None) for a Bmax, V/N, steel and frequency
        progress: Progress sink
    """

    def __init__(self, terminals: Sequence[Terminal], impedance_targets: Sequence[ImpedancePair],
                 loss_evaluation: LossEvaluation, settings: Optional[SearchSettings] = None,
                 design_data: Optional[DesignData] = None,
                 core_optimizer: Optional[CoreOptimizer] = None,
                 progress: Optional[ProgressSink] = None):
        if len(terminals) < 2:
            raise ValueError("At least two terminals are required")
        if not impedance_targets:
            raise ValueError("At least one impedance target is required")

        self.terminals = list(terminals)
        self.impedance_targets = list(impedance_targets)
        self.evaluation = loss_evaluation
        self.settings = settings or SearchSettings()
        self.design_data = design_data or load_design_data()
        self.core_optimizer = core_optimizer or optimize_core_circle
        self.progress = progress or NullProgress()

        self.clearances = self.design_data.clearances
        self.conductor = self.design_data.conductor(self.settings.conductor)

        densities = self.settings.current_densities()
        if self.evaluation.onan_load != 0.0:
            self.current_densities = densities
        else:
            # Without a load loss evaluation only the highest density is worth trying
            self.current_densities = densities[-1:]

        self.designs_created = 0
        self._count_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Outer sweep
    # ------------------------------------------------------------------

    def run(self) -> List[ActivePartCandidate]:
        """
        Run the search.

        Returns:
            Up to settings.keep_best candidates, cheapest first (possibly empty)
        """
        settings = self.settings
        reference = self.terminals[0]
        ref_kva = (3.0 if reference.num_phases == 1 else 1.0) * reference.va_onan / 1000.0
        ref_voltage = reference.leg_volts
        ni_per_l_values = settings.ni_per_l_values(reference.va_onaf / reference.va_onan)

        cheapest = CheapestDesigns(settings.keep_best)
        factors = settings.vpn_factors()

        with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
            for vpn_factor in factors:
                vpn_approx = vpn_factor * math.sqrt(ref_kva)
                ref_turns = round(ref_voltage / vpn_approx)
                if ref_turns < 1:
                    continue
                vpn_exact = ref_voltage / ref_turns

                if vpn_exact > settings.max_volts_per_turn:
                    logger.debug("V/N %.2f exceeds the maximum, stopping the V/N sweep", vpn_exact)
                    break

                self.progress.update(vpn_factor, factors[0], factors[-1],
                                     f"V/N factor {vpn_factor:.2f} ({vpn_exact:.2f} V/N)")

                for bmax in settings.bmax_values():
                    for steel in self.design_data.core_steels:
                        circle = self.core_optimizer(bmax, vpn_exact, steel, settings.frequency)
                        if circle is None:
                            logger.debug("No core circle for %.2f T, %s", bmax, steel.name)
                            continue

                        slot = self.search_core(circle, vpn_exact, ni_per_l_values, pool)
                        if slot.candidate is not None:
                            cheapest.offer(slot.cost, slot.candidate)

        logger.info("Designs evaluated: %d, kept: %d", self.designs_created, len(cheapest))
        return cheapest.candidates

    def search_core(self, circle: CoreCircle, vpn: float, ni_per_l_values, pool) -> BestSlot:
        """Evaluate the NI/l grid for one core circle in parallel."""
        slot = BestSlot()
        list(pool.map(lambda ni_per_l: self.evaluate_ni_per_l(ni_per_l, circle, vpn, slot),
                      ni_per_l_values))
        return slot

    # ------------------------------------------------------------------
    # Coil tree
    # ------------------------------------------------------------------

    def evaluate_ni_per_l(self, ni_per_l: float, circle: CoreCircle, vpn: float, slot: BestSlot):
        windings = coil_arrangement_for_terminals(self.terminals, ni_per_l, self.terminals[0].va_onaf,
                                                  self.clearances)
        arena = CoilNodeArena()
        self.create_child_nodes(arena, ROOT, windings, 0, circle.diameter, circle, vpn, slot)

    def create_child_nodes(self, arena: CoilNodeArena, parent: int, windings: List[Winding], level: int,
                           previous_od: float, circle: CoreCircle, vpn: float, slot: BestSlot):
        """
        Add one coil per current density for the winding at this level and recurse.

        Paths whose partial cost already exceeds the slot's best, or whose completed
        impedance pairs already fail, are not extended.
        """
        if level == len(windings):
            self.evaluate_leaf(arena, parent, circle, slot)
            return

        winding = windings[level]
        turns = round(winding.volts / vpn)
        if turns < 1:
            return

        hilo_bil = winding.bil.max
        if parent != ROOT:
            hilo_bil = max(hilo_bil, arena.coil(parent).winding.bil.max)
        inner_diameter = previous_od + 2.0 * self.clearances.hilo_total_and_solid(hilo_bil)[0]

        amp_turns = winding.amps * turns
        coil_height = amp_turns / winding.ni_per_l
        cond_axial = (coil_height - winding.total_axial_gaps) * winding.axial_space_factor(
            winding.bil.max, self.clearances)
        if cond_axial <= 0.0:
            logger.debug("Gaps of %s exceed the coil height at NI/l %.0f", winding.term_name, winding.ni_per_l)
            return

        radial_factor = winding.radial_space_factor(winding.bil.max, winding.amps, self.clearances)
        remaining = {w.term_name for w in windings[level + 1:]}

        for current_density in self.current_densities:
            cond_area = amp_turns / current_density
            cond_radial = cond_area / cond_axial
            radial_build = cond_radial / radial_factor
            if winding.winding_type in (WindingType.LAYER, WindingType.SHEET):
                num_radial = round(cond_radial / TYPICAL_CONDUCTOR_RADIAL + 0.5)
                radial_build += min(num_radial - 1.0, 2.0) * LAYER_DUCT_ALLOWANCE
            if radial_build <= 0.0:
                continue

            coil = SimplifiedCoilSection(winding=winding, turns=turns, inner_diameter=inner_diameter,
                                         radial_build=radial_build, cond_area=cond_area,
                                         conductor=self.conductor, onaf_current_density=current_density)
            node = arena.add(parent, coil)

            partial_cost = arena.list_evaluated_cost(node, self.evaluation.ll_temp, self.evaluation.onaf_load,
                                                     self.settings.frequency, self.settings.eddy_coefficient)
            if partial_cost >= slot.cost:
                continue
            if not self.settled_pairs_pass(arena, node, remaining):
                continue

            self.create_child_nodes(arena, node, windings, level + 1, coil.outer_diameter, circle, vpn, slot)

    def settled_pairs_pass(self, arena: CoilNodeArena, index: int, remaining) -> bool:
        """Check the impedance pairs whose coils can no longer change."""
        for pair in self.impedance_targets:
            if pair.term1 in remaining or pair.term2 in remaining:
                continue
            impedance = pair_impedance(arena, index, pair, self.settings.frequency)
            if impedance is None:
                return False
            if not impedance_within_tolerance(impedance, pair.impedance_pu, self.settings.impedance_tolerance):
                return False
        return True

    def evaluate_leaf(self, arena: CoilNodeArena, index: int, circle: CoreCircle, slot: BestSlot):
        settings = self.settings
        if not meets_impedance_requirements(arena, index, self.impedance_targets,
                                            settings.impedance_tolerance, settings.frequency):
            return

        coils = arena.path(index)
        window_height = max(coil.coil_height
                            + self.clearances.edge_distance(coil.winding.bil.top)
                            + self.clearances.edge_distance(coil.winding.bil.bottom)
                            for coil in coils) + settings.window_height_allowance

        outer = coils[-1]
        between_phases = self.clearances.hilo_total_and_solid(outer.winding.bil.max)[0] \
            * settings.leg_center_hilo_multiplier
        core = Core(circle=circle, window_height=window_height,
                    leg_centers=outer.outer_diameter + between_phases)

        if core.physical_height > settings.max_core_height:
            return

        with self._count_lock:
            self.designs_created += 1

        candidate = ActivePartCandidate(coils, core, self.design_data.costs, settings.frequency,
                                        settings.eddy_coefficient)
        cost = candidate.evaluated_cost(candidate.bmax, self.evaluation)
        slot.offer(cost, candidate)


def run_design_search(terminals: Sequence[Terminal], impedance_targets: Sequence[ImpedancePair],
                      loss_evaluation: LossEvaluation, settings: Optional[SearchSettings] = None,
                      design_data: Optional[DesignData] = None,
                      core_optimizer: Optional[CoreOptimizer] = None,
                      progress: Optional[ProgressSink] = None,
                      result_sink: Optional[ResultSink] = None) -> List[ActivePartCandidate]:
    """
    Find the cheapest active parts for the given terminals.

    Returns:
        Candidates in ascending evaluated cost, at most settings.keep_best of them
    """
    search = DesignSearch(terminals, impedance_targets, loss_evaluation, settings, design_data,
                          core_optimizer, progress)
    candidates = search.run()
    if result_sink is not None:
        result_sink.accept(candidates)
    return candidates


def main():
    """Run the search for an example 10 MVA, 69/13.8 kV transformer and print the ranking."""
    import sys

    from config import load_settings
    from design_data import BILLevel
    from progress import ProgressTracker
    from windings import Connection, TerminalBIL

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    settings = load_settings(sys.argv[1]) if len(sys.argv) > 1 else SearchSettings()
    design_data = load_design_data(sys.argv[2] if len(sys.argv) > 2 else None)

    terminals = [
        Terminal("LV", (10.0e6, 12.5e6), 13800.0, 3, Connection.STAR,
                 TerminalBIL(BILLevel.KV110, BILLevel.KV110)),
        Terminal("HV", (10.0e6, 12.5e6), 69000.0, 3, Connection.DELTA,
                 TerminalBIL(BILLevel.KV350, BILLevel.KV350),
                 offload_taps=[-0.05, -0.025, 0.0, 0.025, 0.05]),
    ]
    targets = [ImpedancePair("LV", "HV", 0.08, 10.0e6 / 3.0)]
    evaluation = LossEvaluation(no_load=5000.0, onan_load=1500.0, onaf_load=1000.0)

    print("=" * 60)
    print("ACTIVE PART DESIGN SEARCH")
    print("=" * 60)

    with ProgressTracker() as tracker:
        candidates = run_design_search(terminals, targets, evaluation, settings, design_data, progress=tracker)

    if not candidates:
        print("No design meets the requirements.")
        return

    for rank, candidate in enumerate(candidates, 1):
        print(f"\n#{rank}: evaluated cost {candidate.evaluated_cost(candidate.bmax, evaluation):,.0f}")
        print(f"  V/N {candidate.vpn:.3f}, Bmax {candidate.bmax:.3f} T, {candidate.core.circle.steel.name}, "
              f"core diameter {candidate.core.circle.diameter * 1000:.0f} mm")
        for coil in candidate.coils:
            print(f"  {coil}")
        for pair, pu in rabins_pair_impedances(candidate.coils, candidate.core, targets, settings.frequency,
                                               settings.wind_ht_factor, settings.num_series_terms):
            if pu is not None:
                print(f"  {pair.term1}-{pair.term2} impedance (Rabin's method): {pu * 100:.2f}% "
                      f"(target {pair.impedance_pu * 100:.2f}%)")


if __name__ == "__main__":
    main()
