# kernel_integrals.py
"""
Kernel Integrals for Rabin's Method

Closed forms for the integrals of t*I1(t), t*K1(t) and t*L1(t) that appear in the
BlueBook coefficient functions (Transformer Design Principles, 2nd ed., p. 267).

The "scaled" variants factor out an exponential so that they stay finite for the
large arguments reached by the higher harmonics of the series:

- scaled integrals of t*I1 over [0, b] are divided by exp(b)
- scaled integrals of t*I1 over [a, b] are divided by exp(a)
- scaled integrals of t*K1 over [a, b] are divided by exp(-a)
"""

import logging
import math
import sys

from special_functions import (
    bessel_i0_scaled,
    bessel_i1_scaled,
    bessel_k0_scaled,
    bessel_k1_scaled,
    integral_of_m0_from,
    integral_of_m0_from0_to,
    m0,
    m1,
)

logger = logging.getLogger(__name__)

HALF_PI = math.pi / 2.0


def _i_bracket(x):
    # x * (M1 * I0s - M0 * I1s)
    return x * (m1(x) * bessel_i0_scaled(x) - m0(x) * bessel_i1_scaled(x))


def _k_bracket(x):
    # x * (M1 * K0s + M0 * K1s), with the limit x*K1(x) -> 1 at the origin
    if x == 0.0:
        return 1.0
    return x * (m1(x) * bessel_k0_scaled(x) + m0(x) * bessel_k1_scaled(x))


# ---------------------------------------------------------------------------
# t * I1(t)
# ---------------------------------------------------------------------------

def integral_of_t_i1_from0_to(b: float) -> float:
    return HALF_PI * math.exp(b) * _i_bracket(b)


def scaled_integral_of_t_i1_from0_to(b: float) -> float:
    """Integral of t*I1(t) over [0, b] divided by exp(b)."""
    return HALF_PI * _i_bracket(b)


def integral_of_t_i1_from(a: float, b: float) -> float:
    return integral_of_t_i1_from0_to(b) - integral_of_t_i1_from0_to(a)


def scaled_integral_of_t_i1_from(a: float, b: float) -> float:
    """Integral of t*I1(t) over [a, b] divided by exp(a)."""
    first_term = _i_bracket(a)
    second_term = math.exp(b - a) * _i_bracket(b)
    return HALF_PI * (second_term - first_term)


# ---------------------------------------------------------------------------
# t * K1(t)
# ---------------------------------------------------------------------------

def integral_of_t_k1_from0_to(b: float) -> float:
    if b == 0.0:
        return 0.0
    return HALF_PI * (1.0 - math.exp(-b) * _k_bracket(b))


def scaled_integral_of_t_k1_from0_to(b: float) -> float:
    """
    The remainder term of the integral of t*K1(t) over [0, b].

    integral_of_t_k1_from0_to(b) = (pi/2) * (1 - exp(-b) * scaled_integral_of_t_k1_from0_to(b))
    """
    return _k_bracket(b)


def scaled_integral_of_t_k1_from(a: float, b: float) -> float:
    """
    Integral of t*K1(t) over [a, b] divided by exp(-a).

    Args:
        a: Lower limit (a >= 0)
        b: Upper limit (b >= a)

    Returns:
        The scaled integral, or sys.float_info.max if a > b
    """
    if a > b:
        logger.error("Illegal range for scaled integral of t*K1: a=%g > b=%g", a, b)
        return sys.float_info.max

    first_term = _k_bracket(a)
    second_term = math.exp(a - b) * _k_bracket(b)
    return HALF_PI * (first_term - second_term)


def integral_of_t_k1_from(a: float, b: float) -> float:
    # Going through the scaled form avoids subtracting two values close to pi/2
    if a > b:
        return -integral_of_t_k1_from(b, a)
    return math.exp(-a) * scaled_integral_of_t_k1_from(a, b)


# ---------------------------------------------------------------------------
# t * L1(t)
# ---------------------------------------------------------------------------

def integral_of_t_l1_from0_to(b: float) -> float:
    first_term = -b * m0(b)
    second_term = -(b * b / math.pi)
    third_term = integral_of_m0_from0_to(b)
    fourth_term = integral_of_t_i1_from0_to(b)
    return first_term + second_term + third_term + fourth_term


def integral_of_t_l1_from(a: float, b: float) -> float:
    return integral_of_t_l1_from0_to(b) - integral_of_t_l1_from0_to(a)


def _non_integral_sum(a, b):
    return a * m0(a) - b * m0(b) + (a * a - b * b) / math.pi


def alternate_integral_of_t_l1_from(a: float, b: float) -> float:
    m0_integral = integral_of_m0_from(a, b)
    i1_integral = math.exp(a) * scaled_integral_of_t_i1_from(a, b)
    return _non_integral_sum(a, b) + m0_integral + i1_integral


def partial_scaled_integral_of_t_l1_from(a: float, b: float):
    """
    Split the integral of t*L1(t) over [a, b] into two parts.

    Returns:
        Tuple (unscaled, scaled) where the full integral is
        unscaled + exp(a) * scaled, and scaled is the scaled t*I1 integral.
    """
    unscaled = _non_integral_sum(a, b) + integral_of_m0_from(a, b)
    return unscaled, scaled_integral_of_t_i1_from(a, b)
