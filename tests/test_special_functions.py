"""
Tests for the Bessel wrappers and quadrature-based M functions.

Validates:
1. Scaled and unscaled Bessel functions are consistent
2. M0(0) = 1, M1(0) = 0 and both stay inside their analytic bounds
3. M0 = I0 - L0 and M1 = I1 - L1 against scipy's modified Struve functions
4. The integral of M0 matches direct integration
5. Quadrature failures are logged and return 0.0
"""

import logging
import math

import numpy as np
import pytest
import scipy.special as sp
from scipy.integrate import quad

import special_functions
from special_functions import (
    bessel_i0,
    bessel_i0_scaled,
    bessel_i1,
    bessel_i1_scaled,
    bessel_k0,
    bessel_k0_scaled,
    bessel_k1,
    bessel_k1_scaled,
    integral_of_m0_from,
    integral_of_m0_from0_to,
    l0,
    l1,
    m0,
    m1,
)


class TestBessel:
    """Scaled forms differ from the plain ones only by the exponential."""

    @pytest.mark.parametrize("x", [0.1, 1.0, 5.0, 20.0])
    def test_i_scaling(self, x):
        assert bessel_i0_scaled(x) * math.exp(x) == pytest.approx(bessel_i0(x), rel=1e-9)
        assert bessel_i1_scaled(x) * math.exp(x) == pytest.approx(bessel_i1(x), rel=1e-9)

    @pytest.mark.parametrize("x", [0.1, 1.0, 5.0, 20.0])
    def test_k_scaling(self, x):
        assert bessel_k0_scaled(x) * math.exp(-x) == pytest.approx(bessel_k0(x), rel=1e-9)
        assert bessel_k1_scaled(x) * math.exp(-x) == pytest.approx(bessel_k1(x), rel=1e-9)

    def test_scaled_values_stay_finite(self):
        """Scaled forms do not overflow where the plain I functions do."""
        assert math.isfinite(bessel_i0_scaled(1000.0))
        assert math.isinf(bessel_i0(1000.0))


class TestMFunctions:

    def test_values_at_zero(self):
        assert m0(0.0) == 1.0
        assert m1(0.0) == 0.0

    @pytest.mark.parametrize("x", [0.01, 0.5, 2.0, 10.0, 100.0, 500.0])
    def test_bounds(self, x):
        assert 0.0 < m0(x) <= 1.0
        assert 0.0 <= m1(x) < 2.0 / math.pi

    def test_m0_decreasing(self):
        values = [m0(x) for x in np.linspace(0.0, 50.0, 26)]
        assert all(a > b for a, b in zip(values, values[1:]))

    @pytest.mark.parametrize("x", [0.1, 1.0, 3.0, 10.0])
    def test_against_struve(self, x):
        assert m0(x) == pytest.approx(sp.i0(x) - sp.modstruve(0, x), rel=1e-3)
        assert m1(x) == pytest.approx(sp.i1(x) - sp.modstruve(1, x), rel=1e-3)

    @pytest.mark.parametrize("x", [0.5, 2.0])
    def test_struve_functions(self, x):
        assert l0(x) == pytest.approx(sp.modstruve(0, x), rel=1e-3)
        assert l1(x) == pytest.approx(sp.modstruve(1, x), rel=1e-3)


class TestIntegralOfM0:

    def test_zero_width(self):
        assert integral_of_m0_from0_to(0.0) == 0.0
        assert integral_of_m0_from(2.0, 2.0) == 0.0

    @pytest.mark.parametrize("b", [0.5, 3.0, 15.0])
    def test_matches_direct_integration(self, b):
        direct, _ = quad(lambda t: m0(t), 0.0, b, epsrel=1e-8)
        assert integral_of_m0_from0_to(b) == pytest.approx(direct, rel=1e-3)

    def test_interval_difference(self):
        assert integral_of_m0_from(1.0, 4.0) == pytest.approx(
            integral_of_m0_from0_to(4.0) - integral_of_m0_from0_to(1.0))


class TestQuadratureFailure:
    """A failed quadrature is reported in the log and returns 0.0."""

    @pytest.fixture(autouse=True)
    def fresh_cache(self):
        special_functions.clear_caches()
        yield
        special_functions.clear_caches()

    def test_error_returns_zero(self, monkeypatch, caplog):
        def failing_quad(*args, **kwargs):
            raise ValueError("integrand is not finite")

        monkeypatch.setattr(special_functions, "quad", failing_quad)
        with caplog.at_level(logging.ERROR, logger="special_functions"):
            assert m0(1.2345) == 0.0
            assert m1(1.2345) == 0.0
        assert "Error calling integration routine" in caplog.text

    def test_non_convergence_returns_zero(self, monkeypatch, caplog):
        def non_converging_quad(*args, **kwargs):
            return 0.5, 1.0, {}, "The maximum number of subdivisions has been achieved."

        monkeypatch.setattr(special_functions, "quad", non_converging_quad)
        with caplog.at_level(logging.ERROR, logger="special_functions"):
            assert integral_of_m0_from0_to(2.5) == 0.0
        assert "subdivisions" in caplog.text
