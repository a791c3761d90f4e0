# special_functions.py
"""
Bessel-Type Special Functions for Axisymmetric Inductance Work

This module wraps the modified Bessel functions of the first and second kind
and evaluates the auxiliary M-functions used by the BlueBook (Del Vecchio et al,
"Transformer Design Principles", 2nd ed.) formulation of Rabin's method.

Key features:
- Modified Bessel functions I0, I1, K0, K1 and their exponentially scaled forms
- M0(x) and M1(x) by adaptive quadrature over [0, pi/2]
- Integral of M0 from 0 to b (needed by the integral of t*L1(t))
- Modified Struve based L0 and L1 defined as I - M
"""

import logging
import math
from functools import lru_cache

import numpy as np
import scipy.special as sp
from scipy.integrate import quad

logger = logging.getLogger(__name__)

# Relative error requested from the quadrature routine
REL_ERROR = 1.0e-4

HALF_PI = math.pi / 2.0


# ---------------------------------------------------------------------------
# Modified Bessel functions
# ---------------------------------------------------------------------------

def bessel_i0(x: float) -> float:
    return float(sp.i0(x))


def bessel_i1(x: float) -> float:
    return float(sp.i1(x))


def bessel_k0(x: float) -> float:
    return float(sp.k0(x))


def bessel_k1(x: float) -> float:
    return float(sp.k1(x))


def bessel_i0_scaled(x: float) -> float:
    """I0(x) * exp(-|x|)"""
    return float(sp.i0e(x))


def bessel_i1_scaled(x: float) -> float:
    """I1(x) * exp(-|x|)"""
    return float(sp.i1e(x))


def bessel_k0_scaled(x: float) -> float:
    """K0(x) * exp(x)"""
    return float(sp.k0e(x))


def bessel_k1_scaled(x: float) -> float:
    """K1(x) * exp(x)"""
    return float(sp.k1e(x))


# ---------------------------------------------------------------------------
# Quadrature-based M functions
# ---------------------------------------------------------------------------

def _integrate_quarter_period(integrand, x, rel_error, name):
    """
    Integrate integrand(theta, x) over [0, pi/2].

    Args:
        integrand: Callable of (theta, x)
        x: Parameter passed through to the integrand
        rel_error: Requested relative error
        name: Function name used in the log message on failure

    Returns:
        The value of the integral, or None when the routine did not converge
    """
    try:
        result = quad(integrand, 0.0, HALF_PI, args=(x,), epsabs=0.0,
                      epsrel=rel_error, full_output=1)
    except ValueError as e:
        logger.error("Error calling integration routine for %s(%g): %s", name, x, e)
        return None

    # quad appends an explanatory message to the tuple when ier > 0
    if len(result) > 3:
        logger.error("Error calling integration routine for %s(%g): %s",
                     name, x, result[3])
        return None

    return result[0]


def _m0_integrand(theta, x):
    return np.exp(-x * np.cos(theta))


def _m1_integrand(theta, x):
    c = np.cos(theta)
    return np.exp(-x * c) * c


def _int_m0_integrand(theta, x):
    c = np.cos(theta)
    if c == 0.0:
        return x
    return -np.expm1(-x * c) / c


@lru_cache(maxsize=65536)
def _m0_cached(x, rel_error):
    if x == 0.0:
        return 1.0
    value = _integrate_quarter_period(_m0_integrand, x, rel_error, "M0")
    if value is None:
        return 0.0
    return value * 2.0 / math.pi


@lru_cache(maxsize=65536)
def _m1_cached(x, rel_error):
    if x == 0.0:
        return 0.0
    value = _integrate_quarter_period(_m1_integrand, x, rel_error, "M1")
    if value is None:
        return 0.0
    return (1.0 - value) * 2.0 / math.pi


@lru_cache(maxsize=65536)
def _int_m0_cached(b, rel_error):
    if b == 0.0:
        return 0.0
    value = _integrate_quarter_period(_int_m0_integrand, b, rel_error, "IntegralOfM0")
    if value is None:
        return 0.0
    return value * 2.0 / math.pi


def m0(x: float, rel_error: float = REL_ERROR) -> float:
    """
    M0(x) = (2/pi) * integral_0^{pi/2} exp(-x cos(theta)) d(theta)

    Equivalent to I0(x) - L0(x) where L0 is the modified Struve function.
    Returns 0.0 (and logs an error) if the quadrature fails.

    Args:
        x: Argument, x >= 0
        rel_error: Relative error requested from the quadrature

    Returns:
        M0(x)
    """
    return _m0_cached(float(x), rel_error)


def m1(x: float, rel_error: float = REL_ERROR) -> float:
    """
    M1(x) = (2/pi) * (1 - integral_0^{pi/2} exp(-x cos(theta)) cos(theta) d(theta))

    Equivalent to I1(x) - L1(x). Returns 0.0 (and logs an error) if the
    quadrature fails.

    Args:
        x: Argument, x >= 0
        rel_error: Relative error requested from the quadrature

    Returns:
        M1(x)
    """
    return _m1_cached(float(x), rel_error)


def integral_of_m0_from0_to(b: float, rel_error: float = REL_ERROR) -> float:
    """
    Integral of M0(t) dt from 0 to b.

    Swapping the order of integration gives
    (2/pi) * integral_0^{pi/2} (1 - exp(-b cos(theta))) / cos(theta) d(theta).
    """
    return _int_m0_cached(float(b), rel_error)


def integral_of_m0_from(a: float, b: float, rel_error: float = REL_ERROR) -> float:
    return integral_of_m0_from0_to(b, rel_error) - integral_of_m0_from0_to(a, rel_error)


def l0(x: float) -> float:
    """Modified Struve function L0, computed as I0(x) - M0(x)."""
    return bessel_i0(x) - m0(x)


def l1(x: float) -> float:
    """Modified Struve function L1, computed as I1(x) - M1(x)."""
    return bessel_i1(x) - m1(x)


def clear_caches():
    """Drop memoised M-function values."""
    _m0_cached.cache_clear()
    _m1_cached.cache_clear()
    _int_m0_cached.cache_clear()
