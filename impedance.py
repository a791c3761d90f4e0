# impedance.py
"""
Leakage Impedance Between Coils

Two ways of finding the per-unit leakage impedance between a pair of coils:

- the simplified BlueBook formula used to gate candidates during the search
- Rabin's method on the disk sections of both coils, used to verify and report
  finished designs
"""

import itertools
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence, Tuple

import numpy as np

from coil_sections import ROOT, CoilNodeArena, SimplifiedCoilSection
from core_geometry import Core
from disk_section import DEFAULT_NUM_TERMS, DEFAULT_WIND_HT_FACTOR
from windings import ImpedancePair

logger = logging.getLogger(__name__)

DEFAULT_FREQUENCY = 60.0
DEFAULT_TOLERANCE = 0.075


def simplified_impedance(coil1: SimplifiedCoilSection, coil2: SimplifiedCoilSection,
                         frequency: float = DEFAULT_FREQUENCY) -> Tuple[float, float]:
    """
    Per-unit leakage impedance between two concentric coils.

    Args:
        coil1: First coil
        coil2: Second coil
        frequency: System frequency (Hz)

    Returns:
        Tuple (pu, base_va) where base_va is the larger of the two coil VAs
    """
    va1 = coil1.va
    va2 = coil2.va

    at_per_mm = (coil2.winding.ni_per_l if va2 > va1 else coil1.winding.ni_per_l) / 1000.0

    v_per_n = coil1.volts_per_turn
    lmt_ave = (coil1.lmt + coil2.lmt) * 1000.0 / 2.0

    a = (coil2.inner_diameter - coil1.outer_diameter) / 2.0
    if a < 0.0:
        a = (coil1.inner_diameter - coil2.outer_diameter) / 2.0
    a *= 1000.0
    b1 = coil1.radial_build * 1000.0
    b2 = coil2.radial_build * 1000.0

    pu = 7.9e-9 * at_per_mm * lmt_ave * frequency / v_per_n * (a + (b1 + b2) / 3.0)
    return pu, max(va1, va2)


def find_pair_coils(arena: CoilNodeArena, index: int,
                    pair: ImpedancePair) -> Optional[Tuple[SimplifiedCoilSection, SimplifiedCoilSection]]:
    """The two coils closest to the given node whose terminals belong to the pair."""
    found = []
    while index != ROOT:
        coil = arena.coil(index)
        if pair.contains(coil.winding.term_name):
            found.append(coil)
            if len(found) == 2:
                return found[0], found[1]
        index = arena.parent(index)
    return None


def pair_impedance(arena: CoilNodeArena, index: int, pair: ImpedancePair,
                   frequency: float = DEFAULT_FREQUENCY) -> Optional[float]:
    """Simplified impedance of the pair on the pair's base VA, or None if a coil is missing."""
    coils = find_pair_coils(arena, index, pair)
    if coils is None:
        return None
    pu, base_va = simplified_impedance(coils[0], coils[1], frequency)
    return pu * pair.base_va / base_va


def impedance_within_tolerance(impedance: float, target: float,
                               tolerance: float = DEFAULT_TOLERANCE) -> bool:
    return target * (1.0 - tolerance) <= impedance <= target * (1.0 + tolerance)


def meets_impedance_requirements(arena: CoilNodeArena, index: int, pairs: Sequence[ImpedancePair],
                                 tolerance: float = DEFAULT_TOLERANCE,
                                 frequency: float = DEFAULT_FREQUENCY) -> bool:
    """
    Check every impedance pair against the coil stack ending at the given node.

    Args:
        arena: Candidate node arena
        index: Leaf node index
        pairs: Required impedances
        tolerance: Allowed relative deviation (both sides)
        frequency: System frequency (Hz)

    Returns:
        True if every pair is found and within tolerance
    """
    for pair in pairs:
        impedance = pair_impedance(arena, index, pair, frequency)
        if impedance is None:
            return False
        if not impedance_within_tolerance(impedance, pair.impedance_pu, tolerance):
            return False
    return True


def rabins_method_impedance(coil1: SimplifiedCoilSection, coil2: SimplifiedCoilSection, core: Core,
                            frequency: float = DEFAULT_FREQUENCY, base_va: Optional[float] = None,
                            wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR,
                            num_terms: int = DEFAULT_NUM_TERMS) -> float:
    """
    Per-unit leakage impedance between two coils by Rabin's method.

    Both coils are split into disk sections at their axial gaps. The second coil
    carries the ampere-turns that balance the first. The leakage inductance
    referred to coil1 follows from L*I^2 = sum_i sum_j M_ij * i_i * i_j.

    Args:
        coil1: Reference coil
        coil2: Second coil
        core: Core (window height and radius)
        frequency: System frequency (Hz)
        base_va: Single-phase base VA of the result, defaults to coil1's VA
        wind_ht_factor: Window height multiplier for the Fourier series
        num_terms: Number of harmonics

    Returns:
        Per-unit impedance on base_va
    """
    sections1 = coil1.to_disk_sections(0, core.window_height, core.radius)
    sections2 = coil2.to_disk_sections(1, core.window_height, core.radius)
    sections = sections1 + sections2

    i1 = coil1.winding.amps
    i2 = -coil1.amp_turns / coil2.turns
    currents = np.array([i1] * len(sections1) + [i2] * len(sections2))

    size = len(sections)
    inductance = np.zeros((size, size))
    with ThreadPoolExecutor() as pool:
        for i, section in enumerate(sections):
            inductance[i, i] = section.self_inductance(wind_ht_factor, num_terms, pool)
        for i, j in itertools.combinations(range(size), 2):
            mutual = sections[i].mutual_inductance_to(sections[j], wind_ht_factor, num_terms, pool)
            inductance[i, j] = mutual
            inductance[j, i] = mutual

    li_squared = float(currents @ inductance @ currents)
    logger.debug("Rabin's method L*I^2 = %g for %d sections", li_squared, size)

    va1 = coil1.va
    pu = 2.0 * math.pi * frequency * li_squared / va1
    if base_va is None:
        return pu
    return pu * base_va / va1


def rabins_pair_impedances(coils: Sequence[SimplifiedCoilSection], core: Core, pairs: Sequence[ImpedancePair],
                           frequency: float = DEFAULT_FREQUENCY,
                           wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR,
                           num_terms: int = DEFAULT_NUM_TERMS) -> List[Tuple[ImpedancePair, Optional[float]]]:
    """
    Rabin's-method impedance of every pair in a finished coil stack.

    Args:
        coils: Coil stack, inner to outer
        core: Core the coils are wound on
        pairs: Impedance pairs to report
        frequency: System frequency (Hz)
        wind_ht_factor: Window height multiplier for the Fourier series
        num_terms: Number of harmonics

    Returns:
        (pair, pu on the pair's base VA) for each pair; pu is None if either
        terminal has no coil in the stack
    """
    by_term = {}
    for coil in coils:
        by_term.setdefault(coil.winding.term_name, coil)

    result = []
    for pair in pairs:
        coil1 = by_term.get(pair.term1)
        coil2 = by_term.get(pair.term2)
        if coil1 is None or coil2 is None:
            logger.warning("No coil for impedance pair %s-%s", pair.term1, pair.term2)
            result.append((pair, None))
            continue
        pu = rabins_method_impedance(coil1, coil2, core, frequency, pair.base_va, wind_ht_factor, num_terms)
        result.append((pair, pu))
    return result
