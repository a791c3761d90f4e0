# core_geometry.py
"""
Core Geometry

Core steels, stepped core cross-sections (core circles) and the three-legged
stacked core used by the design search, together with a default core step
optimizer that sizes a core circle for a requested induction and volts per turn.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Tuple

logger = logging.getLogger(__name__)

STACKING_FACTOR = 0.96

# Optimizer parameters (mm)
STEP_WIDTH_INCREMENT = 10.0
MIN_STEP_WIDTH = 10.0
TIE_ROD_SPACE = 25.0
MAX_STEPS = 12
MAX_CORE_RADIUS = 1000.0

# Acceptable net area window relative to the target
AREA_LOWER_LIMIT = 0.995
AREA_UPPER_LIMIT = 1.01


@dataclass(frozen=True)
class CoreSteel:
    """Grain-oriented electrical steel grade."""
    name: str
    thickness: float                # mm
    density: float                  # kg/m^3
    price_per_kg: float
    loss_coefficients: Tuple[float, ...]

    def specific_loss_at_bmax(self, teslas: float) -> float:
        """Core loss in W/kg at the given peak induction (polynomial fit)."""
        return sum(c * teslas ** i for i, c in enumerate(self.loss_coefficients))

    def cost(self, weight: float) -> float:
        return weight * self.price_per_kg


@dataclass(frozen=True)
class CoreStep:
    width: float    # m
    stack: float    # m, full stack (both sides of the centreline)

    @property
    def area(self) -> float:
        return self.width * self.stack


@dataclass(frozen=True)
class CoreCircle:
    diameter: float
    steps: Tuple[CoreStep, ...]
    steel: CoreSteel
    stacking_factor: float = STACKING_FACTOR

    @property
    def radius(self) -> float:
        return self.diameter / 2.0

    @property
    def gross_area(self) -> float:
        return sum(step.area for step in self.steps)

    @property
    def net_area(self) -> float:
        return self.gross_area * self.stacking_factor

    @property
    def main_step_width(self) -> float:
        return max(step.width for step in self.steps)

    def weight(self, length: float) -> float:
        return self.net_area * length * self.steel.density

    def loss_at_bmax(self, length: float, bmax: float) -> float:
        return self.weight(length) * self.steel.specific_loss_at_bmax(bmax)

    def bmax_at_vpn(self, vpn: float, frequency: float = 60.0) -> float:
        """Peak induction for the given volts per turn."""
        return vpn / (4.44 * frequency * self.net_area)


def _build_steps(radius_mm, sheet_thickness):
    diameter = 2.0 * radius_mm
    main_width = STEP_WIDTH_INCREMENT * math.floor((diameter - TIE_ROD_SPACE) / STEP_WIDTH_INCREMENT)
    if main_width < MIN_STEP_WIDTH:
        return []

    increment = STEP_WIDTH_INCREMENT * max(1, math.ceil(main_width / (STEP_WIDTH_INCREMENT * MAX_STEPS)))

    steps = []
    half_stack = 0.0
    width = main_width
    while width >= MIN_STEP_WIDTH:
        half_height = math.sqrt(max(radius_mm ** 2 - (width / 2.0) ** 2, 0.0))
        stack = math.floor(2.0 * (half_height - half_stack) / sheet_thickness) * sheet_thickness
        if stack > 0.0:
            steps.append([width, stack])
            half_stack += stack / 2.0
        width -= increment

    return steps


def _net_area(steps):
    # mm^2 to m^2
    return sum(w * s for w, s in steps) * 1.0e-6 * STACKING_FACTOR


def optimize_core_circle(target_bmax: float, vpn: float, steel: CoreSteel,
                         frequency: float = 60.0) -> Optional[CoreCircle]:
    """
    Size a stepped core circle for the requested induction.

    The radius is increased in 1 mm steps until the net area reaches the target,
    after which sheets are removed from the main step to bring the area inside the
    acceptable window.

    Args:
        target_bmax: Peak induction (T)
        vpn: Volts per turn
        steel: Core steel grade
        frequency: System frequency (Hz)

    Returns:
        CoreCircle, or None if no arrangement meets the target area
    """
    if target_bmax <= 0.0 or vpn <= 0.0:
        return None

    target_area = vpn / (4.44 * target_bmax * frequency)
    lower = AREA_LOWER_LIMIT * target_area
    upper = AREA_UPPER_LIMIT * target_area

    # Start a little below a 90% fill estimate
    radius = max(math.floor(1000.0 * math.sqrt(target_area / (STACKING_FACTOR * 0.9 * math.pi))) - 10, 10)

    steps = _build_steps(radius, steel.thickness)
    while radius > 10 and _net_area(steps) >= lower:
        radius = max(radius - 10, 10)
        steps = _build_steps(radius, steel.thickness)

    while _net_area(steps) < lower:
        radius += 1
        if radius > MAX_CORE_RADIUS:
            logger.debug("No core circle found for %.3f T at %.2f V/N", target_bmax, vpn)
            return None
        steps = _build_steps(radius, steel.thickness)

    while _net_area(steps) > upper:
        steps[0][1] -= steel.thickness
        if steps[0][1] <= 0.0:
            return None

    if _net_area(steps) < lower:
        return None

    return CoreCircle(diameter=2.0 * radius / 1000.0,
                      steps=tuple(CoreStep(w / 1000.0, s / 1000.0) for w, s in steps),
                      steel=steel)


@dataclass(frozen=True)
class Core:
    """Three-legged stacked core."""
    circle: CoreCircle
    window_height: float
    leg_centers: float
    num_legs: int = 3

    @property
    def radius(self) -> float:
        return self.circle.radius

    @property
    def physical_height(self) -> float:
        return self.window_height + 2.0 * self.circle.main_step_width

    @property
    def steel_length(self) -> float:
        """Mean steel path of the legs and both yokes."""
        return (self.num_legs * self.window_height
                + 2.0 * (2.0 * self.leg_centers + self.circle.main_step_width))

    @property
    def weight(self) -> float:
        return self.circle.weight(self.steel_length)

    def loss_at_bmax(self, bmax: float) -> float:
        return self.circle.loss_at_bmax(self.steel_length, bmax)

    @property
    def cost(self) -> float:
        return self.circle.steel.cost(self.weight)
