# disk_section.py
"""
Disk Section Inductance by Rabin's Method

A DiskSection is a rectangular cross-section of winding (a disk, a group of disks
or a whole coil between two axial gaps) placed in a core window. Its self
inductance and the mutual inductance to another section are found by expanding
the current density in a Fourier series over an extended window height
(wind_ht_factor * window height) and solving for the vector potential in each
radial zone with modified Bessel functions.

The coefficient functions follow the BlueBook notation (Jn, Cn, Dn, En, Fn, Gn)
with m = n*pi/L, x1 = m*r1, x2 = m*r2 and xc = m*rc where L is the extended
window height.
"""

import logging
import math
from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from kernel_integrals import (
    integral_of_t_i1_from,
    integral_of_t_i1_from0_to,
    integral_of_t_k1_from,
    integral_of_t_k1_from0_to,
    partial_scaled_integral_of_t_l1_from,
    scaled_integral_of_t_i1_from,
    scaled_integral_of_t_i1_from0_to,
    scaled_integral_of_t_k1_from,
    scaled_integral_of_t_k1_from0_to,
)
from special_functions import bessel_i0_scaled, bessel_k0_scaled

logger = logging.getLogger(__name__)

MU0 = 4.0 * math.pi * 1.0e-7

DEFAULT_WIND_HT_FACTOR = 3.0
DEFAULT_NUM_TERMS = 200

# Two sections whose inner and outer radii are both this close (m) are treated as radially coincident
SAME_RADIAL_POSITION_TOLERANCE = 0.001


@dataclass(frozen=True)
class Rect:
    """Section cross-section: inner radius x, axial origin y, radial width, axial height (m)."""
    x: float
    y: float
    width: float
    height: float

    @property
    def outer_radius(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height


class DiskSection:
    """
    A rectangular winding section in the core window.

    Geometry is fixed at construction. Only the current density may change
    afterwards (a section is switched off by setting it to zero). The
    inductances depend on the geometry and turns only.
    """

    def __init__(self, coil_ref: int, rect: Rect, turns: float, current_density: float,
                 window_height: float, core_radius: float):
        """
        Args:
            coil_ref: Identifier of the coil this section belongs to
            rect: Cross-section rectangle in metres
            turns: Number of turns in the section
            current_density: Current density in A/m^2
            window_height: Core window height in metres
            core_radius: Core radius in metres
        """
        assert rect.width > 0.0, "radial width must be positive"
        assert rect.height > 0.0, "axial height must be positive"
        assert turns > 0.0, "turns must be positive"

        self.coil_ref = coil_ref
        self.rect = rect
        self.turns = float(turns)
        self.current_density = float(current_density)
        self.window_height = float(window_height)
        self.core_radius = float(core_radius)

    def __repr__(self):
        return (f"DiskSection(coil_ref={self.coil_ref}, rect={self.rect}, turns={self.turns:g}, "
                f"J={self.current_density:g})")

    @property
    def current(self) -> float:
        """Current in one turn of the section."""
        return self.current_density * self.rect.width * self.rect.height / self.turns

    # ------------------------------------------------------------------
    # Harmonic arguments
    # ------------------------------------------------------------------

    def _m(self, n, wind_ht_factor):
        return n * math.pi / (wind_ht_factor * self.window_height)

    def _args(self, n, wind_ht_factor):
        m = self._m(n, wind_ht_factor)
        return m * self.rect.x, m * self.rect.outer_radius, m * self.core_radius

    def _core_ratio(self, xc):
        # I0(xc) / K0(xc) without the exp(2*xc) factor
        return bessel_i0_scaled(xc) / bessel_k0_scaled(xc)

    # ------------------------------------------------------------------
    # BlueBook coefficient functions
    # ------------------------------------------------------------------

    def j0(self, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        return self.current_density * self.rect.height / (wind_ht_factor * self.window_height)

    def fourier_shape(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        """Fourier coefficient of harmonic n for a unit current density."""
        use_wind_ht = wind_ht_factor * self.window_height
        y = self.rect.y
        return (2.0 / (n * math.pi)) * (
            math.sin(n * math.pi * (y + self.rect.height) / use_wind_ht)
            - math.sin(n * math.pi * y / use_wind_ht))

    def j_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        """Fourier coefficient of the current density for harmonic n."""
        return self.current_density * self.fourier_shape(n, wind_ht_factor)

    def c_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        x1, x2, _ = self._args(n, wind_ht_factor)
        return integral_of_t_k1_from(x1, x2)

    def scaled_c_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        x1, x2, _ = self._args(n, wind_ht_factor)
        return scaled_integral_of_t_k1_from(x1, x2)

    def d_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        _, _, xc = self._args(n, wind_ht_factor)
        return math.exp(2.0 * xc) * self._core_ratio(xc) * self.c_n(n, wind_ht_factor)

    def scaled_d_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        """Dn divided by exp(2*xc - x1)."""
        _, _, xc = self._args(n, wind_ht_factor)
        return self._core_ratio(xc) * self.scaled_c_n(n, wind_ht_factor)

    def alternate_d_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        x1, _, xc = self._args(n, wind_ht_factor)
        return math.exp(2.0 * xc - x1) * self.scaled_d_n(n, wind_ht_factor)

    def e_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        _, x2, _ = self._args(n, wind_ht_factor)
        return integral_of_t_k1_from0_to(x2)

    def scaled_e_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        """The remainder R in En = (pi/2) * (1 - exp(-x2) * R)."""
        _, x2, _ = self._args(n, wind_ht_factor)
        return scaled_integral_of_t_k1_from0_to(x2)

    def f_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        x1, _, _ = self._args(n, wind_ht_factor)
        return self.alternate_d_n(n, wind_ht_factor) - integral_of_t_i1_from0_to(x1)

    def alternate_f_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        x1, _, xc = self._args(n, wind_ht_factor)
        return math.exp(2.0 * xc - x1) * self.scaled_f_n(n, wind_ht_factor)

    def scaled_f_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        """Fn divided by exp(2*xc - x1)."""
        x1, _, xc = self._args(n, wind_ht_factor)
        return (self.scaled_d_n(n, wind_ht_factor)
                - math.exp(2.0 * x1 - 2.0 * xc) * scaled_integral_of_t_i1_from0_to(x1))

    def g_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        x1, x2, xc = self._args(n, wind_ht_factor)
        return (math.exp(2.0 * xc) * self._core_ratio(xc) * integral_of_t_k1_from(x1, x2)
                + integral_of_t_i1_from(x1, x2))

    def scaled_g_n(self, n: int, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR) -> float:
        """Gn divided by exp(x1)."""
        x1, x2, xc = self._args(n, wind_ht_factor)
        rtk = scaled_integral_of_t_k1_from(x1, x2)
        rti = scaled_integral_of_t_i1_from(x1, x2)
        return math.exp(2.0 * xc - 2.0 * x1) * self._core_ratio(xc) * rtk + rti

    # ------------------------------------------------------------------
    # Inductance
    # ------------------------------------------------------------------

    def _coincident_term(self, n, wind_ht_factor):
        """Bracketed term shared by the self inductance and coincident mutual inductance."""
        x1, x2, xc = self._args(n, wind_ht_factor)

        scaled_fn = self.scaled_f_n(n, wind_ht_factor)
        scaled_tk1 = scaled_integral_of_t_k1_from(x1, x2)
        unscaled_l1, scaled_i1 = partial_scaled_integral_of_t_l1_from(x1, x2)

        # (En - pi/2) * exp(x1), written with the scaled En so nothing cancels
        e_term = -(math.pi / 2.0) * self.scaled_e_n(n, wind_ht_factor) * math.exp(x1 - x2)

        return (e_term * scaled_i1
                - (math.pi / 2.0) * unscaled_l1
                + math.exp(2.0 * (xc - x1)) * scaled_fn * scaled_tk1)

    def _run_series(self, term, num_terms, executor=None):
        if executor is None:
            with ThreadPoolExecutor() as pool:
                return self._run_series(term, num_terms, pool)
        # Terms are computed concurrently but summed in index order
        values = list(executor.map(term, range(1, num_terms + 1)))
        return np.array(values, dtype=float)

    def _radial_key(self):
        r = self.rect
        return (r.x, r.outer_radius, r.y, r.height)

    def self_inductance_terms(self, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR,
                              num_terms: int = DEFAULT_NUM_TERMS,
                              executor: Optional[Executor] = None) -> Tuple[float, np.ndarray]:
        """
        Constant term and per-harmonic terms of the self inductance series.

        Returns:
            Tuple (constant, terms) where terms[i] belongs to harmonic n = i + 1
        """
        n1 = self.turns
        r1 = self.rect.x
        r2 = self.rect.outer_radius
        use_wind_ht = wind_ht_factor * self.window_height
        area = self.rect.width * self.rect.height

        constant = (math.pi * MU0 * n1 * n1 / (6.0 * use_wind_ht)) * ((r2 + r1) ** 2 + 2.0 * r1 ** 2)
        # J cancels between the Fourier coefficients and the ampere-turns
        multiplier = math.pi * MU0 * use_wind_ht * n1 * n1 / (area * area)

        def term(n):
            m = self._m(n, wind_ht_factor)
            shape = self.fourier_shape(n, wind_ht_factor)
            return multiplier * (shape * shape / m ** 4) * self._coincident_term(n, wind_ht_factor)

        return constant, self._run_series(term, num_terms, executor)

    def self_inductance(self, wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR,
                        num_terms: int = DEFAULT_NUM_TERMS,
                        executor: Optional[Executor] = None) -> float:
        """
        Self inductance of the section in henries.

        Args:
            wind_ht_factor: Multiplier applied to the window height for the Fourier period
            num_terms: Number of harmonics in the series
            executor: Pool used for the series terms, a private one if None

        Returns:
            Self inductance (H)
        """
        constant, terms = self.self_inductance_terms(wind_ht_factor, num_terms, executor)
        result = constant
        for value in terms:
            result += value
        return result

    def mutual_inductance_to(self, other: "DiskSection",
                             wind_ht_factor: float = DEFAULT_WIND_HT_FACTOR,
                             num_terms: int = DEFAULT_NUM_TERMS,
                             executor: Optional[Executor] = None) -> float:
        """
        Mutual inductance between this section and another one in henries.

        Sections whose inner and outer radii both match use the coincident form
        of the series. Otherwise the inner of the two sections is taken as the
        reference. Either way the reference is chosen from the geometry alone, so
        the result does not depend on the calling order.
        """
        same_inner = abs(self.rect.x - other.rect.x) <= SAME_RADIAL_POSITION_TOLERANCE
        same_outer = abs(self.rect.outer_radius - other.rect.outer_radius) <= SAME_RADIAL_POSITION_TOLERANCE

        first, second = sorted((self, other), key=DiskSection._radial_key)
        if same_inner and same_outer:
            return first._coincident_mutual(second, wind_ht_factor, num_terms, executor)
        return first._radial_mutual(second, wind_ht_factor, num_terms, executor)

    def _pair_multiplier(self, other, use_wind_ht):
        area1 = self.rect.width * self.rect.height
        area2 = other.rect.width * other.rect.height
        return math.pi * MU0 * use_wind_ht * self.turns * other.turns / (area1 * area2)

    def _coincident_mutual(self, other, wind_ht_factor, num_terms, executor):
        # self is the reference section
        n1, n2 = self.turns, other.turns
        r1 = self.rect.x
        r2 = self.rect.outer_radius
        use_wind_ht = wind_ht_factor * self.window_height

        constant = (math.pi * MU0 * n1 * n2 / (6.0 * use_wind_ht)) * ((r2 + r1) ** 2 + 2.0 * r1 ** 2)
        multiplier = self._pair_multiplier(other, use_wind_ht)

        def term(n):
            m = self._m(n, wind_ht_factor)
            shapes = self.fourier_shape(n, wind_ht_factor) * other.fourier_shape(n, wind_ht_factor)
            return multiplier * (shapes / m ** 4) * self._coincident_term(n, wind_ht_factor)

        result = constant
        for value in self._run_series(term, num_terms, executor):
            result += value
        return result

    def _radial_mutual(self, outer, wind_ht_factor, num_terms, executor):
        # self is the inner section
        n1, n2 = self.turns, outer.turns
        r1 = self.rect.x
        r2 = self.rect.outer_radius
        use_wind_ht = wind_ht_factor * self.window_height

        constant = (math.pi * MU0 * n1 * n2 / (3.0 * use_wind_ht)) * (r1 ** 2 + r1 * r2 + r2 ** 2)
        multiplier = self._pair_multiplier(outer, use_wind_ht)

        def term(n):
            m = self._m(n, wind_ht_factor)
            x1, x2, xc = self._args(n, wind_ht_factor)
            x3, x4, _ = outer._args(n, wind_ht_factor)

            first_product = (math.exp(x1 - x3) * scaled_integral_of_t_k1_from(x3, x4)
                             * scaled_integral_of_t_i1_from(x1, x2))
            second_product = (math.exp(2.0 * xc - x3 - x1) * outer.scaled_d_n(n, wind_ht_factor)
                              * scaled_integral_of_t_k1_from(x1, x2))

            shapes = self.fourier_shape(n, wind_ht_factor) * outer.fourier_shape(n, wind_ht_factor)
            return multiplier * (shapes / m ** 4) * (first_product + second_product)

        result = constant
        for value in self._run_series(term, num_terms, executor):
            result += value
        return result
