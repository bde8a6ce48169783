# world_pipeline/sampling.py

"""
Seeded quantile sampling shared by every threshold computation.

Thresholds are estimated from a fixed-size random sample of cells rather
than from a full sort, so cost does not grow with the map. The sample is
drawn with replacement from a generator seeded by the caller, which keeps
the result deterministic.
"""

import math

import numpy as np

from . import config as DEFAULTS


def sample_cells(values: np.ndarray, seed: int, sample_count: int = DEFAULTS.THRESHOLD_SAMPLE_COUNT) -> np.ndarray:
    """Returns a sorted, seeded sample (with replacement) of the array's values."""
    flat = np.asarray(values, dtype=np.float64).ravel()
    if flat.size == 0:
        raise ValueError("Cannot sample an empty map.")
    rng = np.random.default_rng(seed)
    indices = rng.integers(0, flat.size, size=sample_count)
    return np.sort(flat[indices])


def quantile(sorted_sample: np.ndarray, fraction: float) -> float:
    """Nearest-rank quantile: index floor(p * (n - 1)) of the sorted sample."""
    index = int(math.floor(fraction * (len(sorted_sample) - 1)))
    return float(sorted_sample[index])


def sample_quantiles(values: np.ndarray, fractions, seed: int, sample_count: int = DEFAULTS.THRESHOLD_SAMPLE_COUNT) -> list[float]:
    sample = sample_cells(values, seed, sample_count)
    return [quantile(sample, p) for p in fractions]
