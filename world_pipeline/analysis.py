# world_pipeline/analysis.py

"""
World statistics and the final sanity audit run by the analysis stage.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import StageExecutionError


@dataclass(frozen=True)
class WorldStatistics:
    ocean_fraction: float
    min_elevation: float
    max_elevation: float
    mean_elevation: float
    mean_temperature: Optional[float]
    mean_precipitation: Optional[float]
    erosion_passes: int


def audit_finite(maps: dict):
    """Raises if any float map holds NaN or infinity."""
    for name, values in maps.items():
        if values.dtype.kind != "f" or name == "distance_to_ocean":
            # Unreachable cells are legitimately infinitely far from the ocean.
            continue
        if not np.all(np.isfinite(values)):
            bad = int(np.count_nonzero(~np.isfinite(values)))
            raise StageExecutionError(f"Map '{name}' contains {bad} non-finite value(s)")


def compute_statistics(elevation: np.ndarray, ocean_mask: np.ndarray, temperature: Optional[np.ndarray],
                       precipitation: Optional[np.ndarray], erosion_passes: int) -> WorldStatistics:
    return WorldStatistics(
        ocean_fraction=float(ocean_mask.mean()),
        min_elevation=float(elevation.min()),
        max_elevation=float(elevation.max()),
        mean_elevation=float(elevation.mean()),
        mean_temperature=float(temperature.mean()) if temperature is not None else None,
        mean_precipitation=float(precipitation.mean()) if precipitation is not None else None,
        erosion_passes=erosion_passes,
    )
