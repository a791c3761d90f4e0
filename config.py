# config.py
"""
Search Settings

Ranges, limits and tolerances that drive the active-part design search. Every
value has a default and can be overridden from a JSON file, where ranges are
written as [min, max, step] lists.
"""

import json
import logging
import warnings
from dataclasses import dataclass, fields
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

logger = logging.getLogger(__name__)


def inclusive_range(start: float, stop: float, step: float, decimals: int = 6) -> List[float]:
    """Evenly stepped values from start to stop, both ends included."""
    count = int(round((stop - start) / step)) + 1
    return [round(start + i * step, decimals) for i in range(count)]


@dataclass
class SearchSettings:
    # V/N factor sweep (vpn_approx = factor * sqrt(reference kVA))
    vpn_factor_range: Tuple[float, float, float] = (0.45, 0.85, 0.01)
    max_volts_per_turn: float = 200.0

    # Core induction sweep (T)
    bmax_range: Tuple[float, float, float] = (1.40, 1.65, 0.01)

    # NI/l grid (AT/m), scaled by VA_onaf / VA_onan
    ni_per_l_min: float = 20000.0
    ni_per_l_max: float = 120000.0
    ni_per_l_points: int = 50

    # Winding current density sweep (A/m^2)
    current_density_range: Tuple[float, float, float] = (1.5e6, 3.0e6, 0.25e6)

    impedance_tolerance: float = 0.075
    keep_best: int = 10
    max_core_height: float = 3.5
    window_height_allowance: float = 0.010
    leg_center_hilo_multiplier: float = 1.5
    frequency: float = 60.0

    # Rabin's method
    wind_ht_factor: float = 3.0
    num_series_terms: int = 200

    # Empirical eddy loss coefficient (p.u. per (kAT/in)^2 at 2.5 mm, 60 Hz)
    eddy_coefficient: float = 0.0155

    conductor: str = "copper"
    max_workers: Optional[int] = None

    def vpn_factors(self) -> List[float]:
        return inclusive_range(*self.vpn_factor_range)

    def bmax_values(self) -> List[float]:
        return inclusive_range(*self.bmax_range)

    def current_densities(self) -> List[float]:
        return inclusive_range(*self.current_density_range, decimals=1)

    def ni_per_l_values(self, onaf_onan_ratio: float = 1.0) -> np.ndarray:
        """NI/l grid scaled by the forced-to-natural cooling VA ratio."""
        return np.linspace(self.ni_per_l_min * onaf_onan_ratio,
                           self.ni_per_l_max * onaf_onan_ratio,
                           self.ni_per_l_points)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchSettings":
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                warnings.warn(f"Ignoring unknown search setting '{key}'")
                continue
            kwargs[key] = tuple(value) if isinstance(value, list) else value
        return cls(**kwargs)


def load_settings(path: str) -> SearchSettings:
    """
    Load search settings from a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        SearchSettings with the file's values applied over the defaults
    """
    with open(path, 'r') as f:
        data = json.load(f)
    logger.info("Loaded search settings from %s", path)
    return SearchSettings.from_dict(data)
