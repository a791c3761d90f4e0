# design_data.py
"""
Design Data Tables

Clearances by BIL level, conductor and core steel properties and material costs
used by the active-part design search. A built-in set of defaults is provided
and may be overridden from a JSON file with the same layout as
create_default_design_data().
"""

import json
import logging
import os
import warnings
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, List, Optional, Tuple

from core_geometry import CoreSteel

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when a required design table entry is missing or malformed."""


class BILLevel(IntEnum):
    """Standard basic impulse insulation levels (value in kV)."""
    KV10 = 10
    KV20 = 20
    KV30 = 30
    KV45 = 45
    KV50 = 50
    KV60 = 60
    KV75 = 75
    KV95 = 95
    KV110 = 110
    KV125 = 125
    KV150 = 150
    KV170 = 170
    KV200 = 200
    KV250 = 250
    KV350 = 350
    KV450 = 450
    KV550 = 550
    KV650 = 650
    KV750 = 750
    KV850 = 850
    KV950 = 950
    KV1050 = 1050

    @classmethod
    def from_kv(cls, kv) -> "BILLevel":
        try:
            return cls(int(kv))
        except ValueError:
            raise ConfigurationError(f"Unknown BIL level: {kv} kV")


# hilo total, hilo solid, edge distance, conductor cover, inter-disk (all metres)
_CLEARANCE_ROWS = {
    10: (0.008, 0.002, 0.010, 0.0005, 0.0030),
    20: (0.008, 0.002, 0.010, 0.0005, 0.0030),
    30: (0.009, 0.002, 0.012, 0.0005, 0.0030),
    45: (0.010, 0.003, 0.015, 0.0006, 0.0030),
    50: (0.010, 0.003, 0.015, 0.0006, 0.0030),
    60: (0.011, 0.003, 0.018, 0.0006, 0.0030),
    75: (0.012, 0.003, 0.020, 0.0008, 0.0035),
    95: (0.014, 0.004, 0.025, 0.0008, 0.0035),
    110: (0.016, 0.004, 0.030, 0.0010, 0.0040),
    125: (0.018, 0.005, 0.035, 0.0010, 0.0040),
    150: (0.020, 0.005, 0.040, 0.0012, 0.0045),
    170: (0.022, 0.006, 0.045, 0.0012, 0.0045),
    200: (0.025, 0.006, 0.055, 0.0015, 0.0050),
    250: (0.030, 0.008, 0.070, 0.0015, 0.0050),
    350: (0.040, 0.010, 0.100, 0.0020, 0.0060),
    450: (0.050, 0.012, 0.130, 0.0025, 0.0060),
    550: (0.060, 0.015, 0.160, 0.0030, 0.0070),
    650: (0.070, 0.018, 0.190, 0.0035, 0.0070),
    750: (0.080, 0.020, 0.220, 0.0040, 0.0080),
    850: (0.090, 0.022, 0.250, 0.0045, 0.0080),
    950: (0.100, 0.025, 0.280, 0.0050, 0.0090),
    1050: (0.110, 0.028, 0.310, 0.0055, 0.0090),
}

_CLEARANCE_FIELDS = ("hilo_total", "hilo_solid", "edge_distance", "conductor_cover", "inter_disk")


def create_default_design_data() -> Dict[str, Any]:
    """Provide the built-in design tables."""
    return {
        "clearances": {
            str(kv): dict(zip(_CLEARANCE_FIELDS, row)) for kv, row in _CLEARANCE_ROWS.items()
        },
        "conductors": {
            "copper": {"density": 8940.0, "resistivity": 1.72e-8, "temp_coefficient": 0.003862,
                       "price_per_kg": 12.0},
            "aluminum": {"density": 2700.0, "resistivity": 2.82e-8, "temp_coefficient": 0.0039,
                         "price_per_kg": 4.5},
        },
        "core_steels": {
            "23ZDKH85": {"thickness": 0.23, "density": 7490.0, "price_per_kg": 6.36,
                         "loss_coefficients": [22.929, -67.833, 75.145, -36.492, 6.6468]},
            "M080-23P": {"thickness": 0.23, "density": 7490.0, "price_per_kg": 6.18,
                         "loss_coefficients": [16.945, -50.877, 57.373, -28.327, 5.2584]},
            "M085-23P": {"thickness": 0.23, "density": 7490.0, "price_per_kg": 5.90,
                         "loss_coefficients": [21.944, -65.111, 72.543, -35.488, 6.5277]},
            "M090-23P": {"thickness": 0.23, "density": 7490.0, "price_per_kg": 5.70,
                         "loss_coefficients": [22.398, -67.134, 75.554, -37.310, 6.9223]},
        },
        # Cost per cubic metre
        "costs": {
            "copper": 12.0 * 8940.0,
            "aluminum": 4.5 * 2700.0,
            "insulation": 30500.0,
        },
    }


DEFAULT_COSTS = create_default_design_data()["costs"]


class ClearanceData:
    """
    Clearance lookup by BIL level.

    Every standard BIL level must be present; the table is validated once at
    construction.
    """

    def __init__(self, table: Dict[str, Dict[str, float]]):
        self._table: Dict[int, Dict[str, float]] = {}
        for level in BILLevel:
            row = table.get(str(level.value))
            if row is None:
                raise ConfigurationError(f"Missing clearance data for BIL {level.value} kV")
            missing = [field for field in _CLEARANCE_FIELDS if field not in row]
            if missing:
                raise ConfigurationError(
                    f"Clearance data for BIL {level.value} kV is missing {', '.join(missing)}")
            self._table[level.value] = {field: float(row[field]) for field in _CLEARANCE_FIELDS}

    def _row(self, bil):
        return self._table[int(bil)]

    def hilo_total_and_solid(self, bil) -> Tuple[float, float]:
        """Total hilo distance and the part of it that must be solid insulation (m)."""
        row = self._row(bil)
        return row["hilo_total"], row["hilo_solid"]

    def edge_distance(self, bil) -> float:
        return self._row(bil)["edge_distance"]

    def conductor_cover(self, bil) -> float:
        return self._row(bil)["conductor_cover"]

    def inter_disk(self, bil) -> float:
        return self._row(bil)["inter_disk"]


class CostData:
    """Material costs per cubic metre."""

    def __init__(self, table: Optional[Dict[str, float]] = None):
        self._table = dict(table or {})

    def cost_per_unit_volume(self, key: str) -> float:
        if key in self._table:
            return float(self._table[key])
        if key in DEFAULT_COSTS:
            warnings.warn(f"No cost entry for '{key}', using default {DEFAULT_COSTS[key]}")
            return DEFAULT_COSTS[key]
        raise ConfigurationError(f"No cost entry for '{key}'")


@dataclass(frozen=True)
class ConductorMaterial:
    name: str
    density: float
    resistivity: float
    temp_coefficient: float
    price_per_kg: float

    def resistance(self, area: float, length: float, temperature: float = 20.0) -> float:
        """
        DC resistance of a conductor.

        Args:
            area: Cross-sectional area (m^2)
            length: Length (m)
            temperature: Conductor temperature (deg C)

        Returns:
            Resistance in ohms
        """
        rho = self.resistivity * (1.0 + self.temp_coefficient * (temperature - 20.0))
        return rho * length / area

    def weight(self, volume: float) -> float:
        return volume * self.density

    def cost(self, volume: float) -> float:
        return self.weight(volume) * self.price_per_kg


@dataclass
class DesignData:
    clearances: ClearanceData
    costs: CostData
    conductors: Dict[str, ConductorMaterial]
    core_steels: List[CoreSteel]

    def conductor(self, name: str = "copper") -> ConductorMaterial:
        try:
            return self.conductors[name]
        except KeyError:
            raise ConfigurationError(f"Unknown conductor material '{name}'")


def _merge(base, override):
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def build_design_data(data: Dict[str, Any]) -> DesignData:
    """Build validated design tables from a dictionary."""
    clearances = ClearanceData(data.get("clearances", {}))

    conductors = {}
    for name, props in data.get("conductors", {}).items():
        try:
            conductors[name] = ConductorMaterial(
                name=name,
                density=float(props["density"]),
                resistivity=float(props["resistivity"]),
                temp_coefficient=float(props["temp_coefficient"]),
                price_per_kg=float(props["price_per_kg"]),
            )
        except KeyError as e:
            raise ConfigurationError(f"Conductor '{name}' is missing {e}")
    if not conductors:
        raise ConfigurationError("No conductor materials defined")

    steels = []
    for name, props in data.get("core_steels", {}).items():
        try:
            steels.append(CoreSteel(
                name=name,
                thickness=float(props["thickness"]),
                density=float(props["density"]),
                price_per_kg=float(props["price_per_kg"]),
                loss_coefficients=tuple(float(c) for c in props["loss_coefficients"]),
            ))
        except KeyError as e:
            raise ConfigurationError(f"Core steel '{name}' is missing {e}")
    if not steels:
        raise ConfigurationError("No core steels defined")

    return DesignData(clearances=clearances, costs=CostData(data.get("costs")),
                      conductors=conductors, core_steels=steels)


def load_design_data(path: Optional[str] = None) -> DesignData:
    """
    Load design tables, merging an optional JSON override file onto the defaults.

    Args:
        path: Path to a JSON file, or None for the built-in tables

    Returns:
        Validated DesignData
    """
    data = create_default_design_data()
    if path is not None:
        if not os.path.exists(path):
            warnings.warn(f"{path} not found. Using default design data...")
        else:
            with open(path, 'r') as f:
                override = json.load(f)
            _merge(data, override)
            logger.info("Loaded design data overrides from %s", path)
    return build_design_data(data)
