# world_pipeline/erosion.py

"""
================================================================================
PRECIPITATION-WEIGHTED EROSION
================================================================================
A single erosion pass: land is lowered in proportion to local slope times
precipitation, then the removed material is redistributed by blending land
cells toward their 3x3 neighbourhood mean. The thresholds and ocean mask are
recomputed from the eroded surface.

Data Contract:
---------------
- Inputs:
    - heightmap (np.ndarray): Current RAW elevation.
    - ocean_mask (np.ndarray): Current ocean mask.
    - precipitation (np.ndarray, optional): Precipitation in [0, 1]. Before
      any climate pass exists, a uniform default is used.
- Outputs:
    - ErosionResult with the eroded heightmap and everything derived from
      it: new thresholds, ocean mask, sea depth and elevation range.
- Side Effects: None.
- Invariants: Ocean cells are never eroded; elevation never drops below
  RAW_ELEVATION_MIN.
================================================================================
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.ndimage import uniform_filter

from . import config as DEFAULTS
from .params import ElevationThresholds
from .postprocess import calculate_sea_depth, compute_elevation_thresholds, fill_ocean


@dataclass(frozen=True)
class ErosionResult:
    heightmap: np.ndarray
    thresholds: ElevationThresholds
    ocean_mask: np.ndarray
    sea_depth: np.ndarray
    min_elevation: float
    max_elevation: float


def calculate_slope(heightmap: np.ndarray) -> np.ndarray:
    """Gradient magnitude normalized by its maximum to [0, 1]."""
    grad_y, grad_x = np.gradient(heightmap)
    slope = np.sqrt(grad_x ** 2 + grad_y ** 2)
    max_slope = float(slope.max())
    if max_slope > 0:
        return slope / max_slope
    return np.zeros_like(slope)


def erode(heightmap: np.ndarray, ocean_mask: np.ndarray, precipitation: Optional[np.ndarray] = None,
          rate: float = DEFAULTS.EROSION_RATE,
          deposition_blend: float = DEFAULTS.EROSION_DEPOSITION_BLEND) -> np.ndarray:
    if precipitation is None:
        precipitation = np.full(heightmap.shape, DEFAULTS.EROSION_DEFAULT_PRECIPITATION)
    land = ~ocean_mask

    # 1. Detachment.
    eroded = heightmap.copy()
    slope = calculate_slope(heightmap)
    eroded[land] -= slope[land] * precipitation[land] * rate

    # 2. Deposition.
    neighbourhood = uniform_filter(eroded, size=3, mode="nearest")
    eroded[land] = eroded[land] * (1.0 - deposition_blend) + neighbourhood[land] * deposition_blend

    return np.maximum(eroded, DEFAULTS.RAW_ELEVATION_MIN)


def run_erosion_pass(heightmap: np.ndarray, ocean_mask: np.ndarray, precipitation: Optional[np.ndarray],
                     seed: int, pass_index: int) -> ErosionResult:
    eroded = erode(heightmap, ocean_mask, precipitation)
    thresholds = compute_elevation_thresholds(eroded, seed + DEFAULTS.EROSION_SAMPLE_SEED_OFFSET + pass_index)
    ocean_mask = fill_ocean(eroded, thresholds.sea_level)
    return ErosionResult(
        heightmap=eroded,
        thresholds=thresholds,
        ocean_mask=ocean_mask,
        sea_depth=calculate_sea_depth(eroded, ocean_mask, thresholds.sea_level),
        min_elevation=float(eroded.min()),
        max_elevation=float(eroded.max()),
    )
