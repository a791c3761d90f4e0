"""
Tests for core steels, core circles and the core step optimizer.

Validates:
1. Specific loss polynomial and steel cost
2. Optimized core circles land inside the target net area window
3. Induction at the design V/N matches the requested Bmax
4. Core dimensions, weight and loss
"""

import math

import pytest

from core_geometry import (
    AREA_LOWER_LIMIT,
    AREA_UPPER_LIMIT,
    STACKING_FACTOR,
    Core,
    CoreCircle,
    CoreStep,
    optimize_core_circle,
)


@pytest.fixture
def steel(design_data):
    return next(s for s in design_data.core_steels if s.name == "M085-23P")


class TestCoreSteel:

    def test_specific_loss(self, steel):
        expected = 21.944 - 65.111 * 1.5 + 72.543 * 1.5 ** 2 - 35.488 * 1.5 ** 3 + 6.5277 * 1.5 ** 4
        assert steel.specific_loss_at_bmax(1.5) == pytest.approx(expected)
        assert 0.5 < steel.specific_loss_at_bmax(1.5) < 1.5

    def test_loss_increases_with_induction(self, steel):
        assert steel.specific_loss_at_bmax(1.6) > steel.specific_loss_at_bmax(1.4)

    def test_cost(self, steel):
        assert steel.cost(1000.0) == pytest.approx(5900.0)


class TestOptimizer:

    @pytest.mark.parametrize("vpn, bmax", [(60.0, 1.5), (20.0, 1.6), (120.0, 1.45)])
    def test_net_area_in_window(self, steel, vpn, bmax):
        circle = optimize_core_circle(bmax, vpn, steel, 60.0)
        assert circle is not None
        target = vpn / (4.44 * bmax * 60.0)
        assert AREA_LOWER_LIMIT * target <= circle.net_area <= AREA_UPPER_LIMIT * target
        assert circle.bmax_at_vpn(vpn, 60.0) == pytest.approx(bmax, rel=0.01)

    def test_steps_fit_inside_circle(self, steel):
        circle = optimize_core_circle(1.5, 60.0, steel, 60.0)
        widths = [step.width for step in circle.steps]
        assert widths == sorted(widths, reverse=True)
        assert circle.main_step_width == widths[0]
        half_stack = 0.0
        for step in circle.steps:
            half_stack += step.stack / 2.0
            corner = math.hypot(step.width / 2.0, half_stack)
            assert corner <= circle.radius + 1e-9

    def test_fill_factor(self, steel):
        circle = optimize_core_circle(1.5, 60.0, steel, 60.0)
        fill = circle.gross_area / (math.pi * circle.radius ** 2)
        assert 0.85 < fill < 1.0

    def test_invalid_input(self, steel):
        assert optimize_core_circle(0.0, 60.0, steel) is None
        assert optimize_core_circle(1.5, -1.0, steel) is None

    def test_too_large(self, steel):
        assert optimize_core_circle(1.5, 5000.0, steel) is None


class TestCore:

    @pytest.fixture
    def core(self, steel):
        circle = CoreCircle(diameter=0.5, steps=(CoreStep(0.45, 0.2), CoreStep(0.3, 0.15)), steel=steel)
        return Core(circle=circle, window_height=1.2, leg_centers=0.9)

    def test_areas(self, core):
        assert core.circle.gross_area == pytest.approx(0.45 * 0.2 + 0.3 * 0.15)
        assert core.circle.net_area == pytest.approx(core.circle.gross_area * STACKING_FACTOR)

    def test_dimensions(self, core):
        assert core.physical_height == pytest.approx(1.2 + 2.0 * 0.45)
        assert core.steel_length == pytest.approx(3.0 * 1.2 + 2.0 * (2.0 * 0.9 + 0.45))
        assert core.radius == pytest.approx(0.25)

    def test_weight_loss_cost(self, core, steel):
        weight = core.circle.net_area * core.steel_length * 7490.0
        assert core.weight == pytest.approx(weight)
        assert core.loss_at_bmax(1.5) == pytest.approx(weight * steel.specific_loss_at_bmax(1.5))
        assert core.cost == pytest.approx(weight * 5.90)
