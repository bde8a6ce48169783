# world_pipeline/postprocess.py

"""
================================================================================
ELEVATION POST-PROCESSING
================================================================================
Turns the raw plate-simulation heightmap into a usable terrain: adaptive
elevation thresholds, Gaussian smoothing, ocean flood fill, ocean-floor
harmonisation and a normalized sea-depth map.

Data Contract:
---------------
- Inputs:
    - heightmap (np.ndarray): RAW elevation, shape (height, width).
    - seed (int): Seed for the threshold sample.
- Outputs:
    - PostProcessResult with the smoothed heightmap, thresholds, ocean mask,
      sea depth and the elevation range.
- Side Effects: None. Inputs are never modified.
- Invariants:
    - Output arrays have the input's shape.
    - Every ocean cell is strictly below sea level and 4-connected to the
      map border through ocean cells. Landlocked depressions stay land.
================================================================================
"""

import logging
from dataclasses import dataclass

import numpy as np
from scipy import ndimage

from . import config as DEFAULTS
from . import sampling
from .errors import StageExecutionError
from .params import ElevationThresholds

# 4-connectivity for the ocean flood fill.
_FOUR_CONNECTED = ndimage.generate_binary_structure(2, 1)
# 8 neighbours, centre excluded.
_NEIGHBOUR_KERNEL = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.float64)


@dataclass(frozen=True)
class PostProcessResult:
    heightmap: np.ndarray
    thresholds: ElevationThresholds
    ocean_mask: np.ndarray
    sea_depth: np.ndarray
    min_elevation: float
    max_elevation: float


def compute_elevation_thresholds(heightmap: np.ndarray, seed: int,
                                 sample_count: int = DEFAULTS.THRESHOLD_SAMPLE_COUNT) -> ElevationThresholds:
    """
    Estimates sea/hill/mountain/peak levels from a seeded sample of cells.

    A perfectly flat sample has no spread to take quantiles of, so the levels
    are placed a fixed epsilon apart above the single elevation instead.
    """
    sample = sampling.sample_cells(heightmap, seed, sample_count)
    if sample[-1] - sample[0] <= 0.0:
        level = float(sample[0])
        eps = DEFAULTS.FLAT_WORLD_EPSILON
        return ElevationThresholds(level, level + eps, level + 2 * eps, level + 3 * eps)

    return ElevationThresholds(
        sea_level=sampling.quantile(sample, DEFAULTS.SEA_LEVEL_PERCENTILE),
        hill_level=sampling.quantile(sample, DEFAULTS.HILL_LEVEL_PERCENTILE),
        mountain_level=sampling.quantile(sample, DEFAULTS.MOUNTAIN_LEVEL_PERCENTILE),
        peak_level=sampling.quantile(sample, DEFAULTS.PEAK_LEVEL_PERCENTILE),
    )


def gaussian_kernel_1d(radius: int = DEFAULTS.GAUSSIAN_KERNEL_RADIUS, sigma: float = DEFAULTS.GAUSSIAN_SIGMA) -> np.ndarray:
    offsets = np.arange(-radius, radius + 1, dtype=np.float64)
    kernel = np.exp(-(offsets ** 2) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def gaussian_smooth(heightmap: np.ndarray, radius: int = DEFAULTS.GAUSSIAN_KERNEL_RADIUS,
                    sigma: float = DEFAULTS.GAUSSIAN_SIGMA) -> np.ndarray:
    """
    Separable Gaussian blur (a (2r+1)x(2r+1) kernel applied as two passes).
    Border cells are clamped, so the output keeps the input's dimensions.
    """
    kernel = gaussian_kernel_1d(radius, sigma)
    smoothed = ndimage.correlate1d(np.asarray(heightmap, dtype=np.float64), kernel, axis=0, mode="nearest")
    smoothed = ndimage.correlate1d(smoothed, kernel, axis=1, mode="nearest")
    if not np.all(np.isfinite(smoothed)):
        raise StageExecutionError("Gaussian smoothing produced non-finite elevation values")
    return smoothed


def fill_ocean(heightmap: np.ndarray, sea_level: float) -> np.ndarray:
    """
    Multi-source flood fill from every border cell strictly below sea level,
    spreading 4-directionally through cells strictly below sea level.
    """
    below = heightmap < sea_level
    labels, _ = ndimage.label(below, structure=_FOUR_CONNECTED)

    border = np.concatenate((labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1]))
    border_labels = np.unique(border[border > 0])
    return np.isin(labels, border_labels)


def harmonize_ocean(heightmap: np.ndarray, ocean_mask: np.ndarray,
                    factor: float = DEFAULTS.OCEAN_HARMONIZE_FACTOR) -> np.ndarray:
    """Blends each ocean cell toward the mean of its ocean 8-neighbours."""
    ocean = ocean_mask.astype(np.float64)
    neighbour_sum = ndimage.convolve(heightmap * ocean, _NEIGHBOUR_KERNEL, mode="constant", cval=0.0)
    neighbour_count = ndimage.convolve(ocean, _NEIGHBOUR_KERNEL, mode="constant", cval=0.0)

    blend = ocean_mask & (neighbour_count > 0)
    neighbour_mean = np.divide(neighbour_sum, neighbour_count, out=np.zeros_like(neighbour_sum), where=neighbour_count > 0)

    result = heightmap.copy()
    result[blend] = heightmap[blend] * (1.0 - factor) + neighbour_mean[blend] * factor
    return result


def calculate_sea_depth(heightmap: np.ndarray, ocean_mask: np.ndarray, sea_level: float) -> np.ndarray:
    """Ocean depth normalized to [0, 1] against the deepest ocean cell. Land is 0."""
    depth = np.zeros_like(heightmap, dtype=np.float64)
    if not ocean_mask.any():
        return depth
    min_ocean = float(heightmap[ocean_mask].min())
    span = max(DEFAULTS.SEA_DEPTH_EPSILON, sea_level - min_ocean)
    depth[ocean_mask] = (sea_level - heightmap[ocean_mask]) / span
    return np.clip(depth, 0.0, 1.0)


class ElevationPostProcessor:
    """Runs the post-processing steps in their fixed order."""

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger(__name__)

    def process(self, raw_heightmap: np.ndarray, seed: int) -> PostProcessResult:
        raw = np.asarray(raw_heightmap, dtype=np.float64)

        # 1. Adaptive thresholds from the raw distribution.
        thresholds = compute_elevation_thresholds(raw, seed + DEFAULTS.THRESHOLD_SAMPLE_SEED_OFFSET)
        self.logger.debug(f"Elevation thresholds: {thresholds}")

        # 2. Smooth.
        heightmap = gaussian_smooth(raw)

        # 3. Flood-fill the ocean from the borders.
        ocean_mask = fill_ocean(heightmap, thresholds.sea_level)

        # 4. Harmonize the ocean floor, then re-fill. Harmonization moves
        # ocean cells, so the mask must be recomputed from the new surface.
        heightmap = harmonize_ocean(heightmap, ocean_mask)
        ocean_mask = fill_ocean(heightmap, thresholds.sea_level)

        # 5. Sea depth and range.
        sea_depth = calculate_sea_depth(heightmap, ocean_mask, thresholds.sea_level)
        min_elevation = float(heightmap.min())
        max_elevation = float(heightmap.max())

        self.logger.debug(
            f"Post-processing done: ocean fraction {ocean_mask.mean():.3f}, "
            f"elevation range [{min_elevation:.3f}, {max_elevation:.3f}]"
        )
        return PostProcessResult(
            heightmap=heightmap,
            thresholds=thresholds,
            ocean_mask=ocean_mask,
            sea_depth=sea_depth,
            min_elevation=min_elevation,
            max_elevation=max_elevation,
        )
