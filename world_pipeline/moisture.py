# world_pipeline/moisture.py

"""
================================================================================
MOISTURE TRANSPORT: RAIN SHADOW & COASTAL MOISTURE
================================================================================
Redistributes base precipitation by two geographic effects:
    - Rain shadow: mountains upwind of a cell block moist air.
    - Coastal moisture: cells near the ocean receive extra precipitation that
      decays with distance and is resisted by elevation.

Data Contract:
---------------
- Inputs:
    - heightmap (np.ndarray): Current RAW elevation.
    - ocean_mask (np.ndarray): Current ocean mask (bool).
    - precipitation (np.ndarray): Precipitation in [0, 1].
- Outputs:
    - Rain shadow: retained-moisture factor in [RAIN_SHADOW_MIN_FACTOR, 1]
      and the attenuated precipitation.
    - Coastal: distance-to-ocean map and the enhanced precipitation,
      clamped to [0, 1].
- Side Effects: None.
- Invariants:
    - rain-shadowed precipitation lies in [0.2 * p, p] for every cell.
    - With equal base precipitation and elevation, a land cell closer to the
      ocean never ends up drier than one farther away.
================================================================================
"""

import numpy as np
from scipy.ndimage import distance_transform_cdt

from . import config as DEFAULTS

# Wind x-direction per band. Positive blows toward +x (from the west).
POLAR_EASTERLIES = -1
WESTERLIES = 1
TRADE_WINDS = -1


def row_latitudes(height: int) -> np.ndarray:
    """Latitude in degrees per row: -90 at the top row, +90 at the bottom."""
    if height == 1:
        return np.zeros(1)
    return (np.arange(height, dtype=np.float64) / (height - 1) - 0.5) * 180.0


def prevailing_wind_x(latitude_degrees) -> np.ndarray:
    """Horizontal wind direction (+1 or -1) for each latitude."""
    abs_lat = np.abs(np.asarray(latitude_degrees, dtype=np.float64))
    return np.where(
        abs_lat >= DEFAULTS.POLAR_CIRCLE_LATITUDE, POLAR_EASTERLIES,
        np.where(abs_lat >= DEFAULTS.HORSE_LATITUDE, WESTERLIES, TRADE_WINDS),
    )


def rain_shadow_factor(heightmap: np.ndarray, max_elevation: float,
                       max_upwind_cells: int = DEFAULTS.RAIN_SHADOW_MAX_UPWIND_CELLS) -> np.ndarray:
    """
    Fraction of moisture each cell retains after crossing upwind terrain.

    Walks up to `max_upwind_cells` cells upwind along the row (stopping at the
    map edge). Every cell that rises above the current cell by more than the
    margin adds RAIN_SHADOW_BLOCKING_PER_CELL of blocking.
    """
    height, width = heightmap.shape
    margin = max(0.0, DEFAULTS.RAIN_SHADOW_MARGIN_FRACTION * (max_elevation - DEFAULTS.SEA_LEVEL_RAW))
    from_west = (prevailing_wind_x(row_latitudes(height)) > 0)[:, None]

    blocking_cells = np.zeros((height, width), dtype=np.int64)
    for step in range(1, min(max_upwind_cells, width - 1) + 1):
        # Upwind cell is x - step for westerly wind, x + step for easterly wind.
        blocked_from_west = np.zeros((height, width), dtype=bool)
        blocked_from_west[:, step:] = heightmap[:, :-step] > heightmap[:, step:] + margin

        blocked_from_east = np.zeros((height, width), dtype=bool)
        blocked_from_east[:, :-step] = heightmap[:, step:] > heightmap[:, :-step] + margin

        blocking_cells += np.where(from_west, blocked_from_west, blocked_from_east)

    blocking = blocking_cells * DEFAULTS.RAIN_SHADOW_BLOCKING_PER_CELL
    return np.maximum(DEFAULTS.RAIN_SHADOW_MIN_FACTOR, 1.0 - blocking)


def apply_rain_shadow(precipitation: np.ndarray, heightmap: np.ndarray, max_elevation: float) -> tuple[np.ndarray, np.ndarray]:
    factor = rain_shadow_factor(heightmap, max_elevation)
    return precipitation * factor, factor


def distance_to_ocean(ocean_mask: np.ndarray) -> np.ndarray:
    """
    4-connected BFS distance (in cells) from the nearest ocean cell.
    Ocean cells are 0. Without any ocean, every cell is unreachable (inf).
    """
    if not ocean_mask.any():
        return np.full(ocean_mask.shape, np.inf)
    # On an obstacle-free grid the 4-connected BFS distance is the taxicab
    # distance to the nearest source.
    return distance_transform_cdt(~ocean_mask, metric="taxicab").astype(np.float64)


def coastal_bonus(distance: np.ndarray) -> np.ndarray:
    return DEFAULTS.COASTAL_MAX_BONUS * np.exp(-distance / DEFAULTS.COASTAL_DECAY_RANGE)


def elevation_resistance(heightmap: np.ndarray) -> np.ndarray:
    return 1.0 - np.minimum(1.0, np.clip(heightmap, 0.0, None) * DEFAULTS.COASTAL_ELEVATION_RESISTANCE)


def apply_coastal_moisture(precipitation: np.ndarray, heightmap: np.ndarray,
                           ocean_mask: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Returns (enhanced precipitation, distance to ocean)."""
    distance = distance_to_ocean(ocean_mask)
    land = ~ocean_mask & np.isfinite(distance)

    enhanced = precipitation.copy()
    boost = coastal_bonus(distance[land]) * elevation_resistance(heightmap[land])
    enhanced[land] = precipitation[land] * (1.0 + boost)
    return np.clip(enhanced, 0.0, 1.0), distance
