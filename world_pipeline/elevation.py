# world_pipeline/elevation.py

"""
================================================================================
ELEVATION UNIT CONVERSIONS
================================================================================
Converts between the RAW elevation units produced by the plate simulation,
real-world meters, and a normalized [0, 1] display scale.

The mapping is piecewise linear and pivots on SEA_LEVEL_RAW:
    - Below sea level, [min_elevation, SEA_LEVEL_RAW] maps to
      [OCEAN_FLOOR_METERS, 0].
    - Above sea level, [SEA_LEVEL_RAW, max_elevation] maps to
      [0, HIGHEST_PEAK_METERS].

Data Contract:
---------------
- Inputs: Scalars or NumPy arrays of elevation, plus the world's min/max.
- Outputs: Arrays (or floats) of the same shape in the target unit.
- Side Effects: None.
- Invariants: raw_to_meters(SEA_LEVEL_RAW) == 0 for any valid world range.
================================================================================
"""

import numpy as np

from . import config as DEFAULTS


def _safe_span(span):
    return np.maximum(span, 1e-6)


def raw_to_meters(raw, min_elevation: float, max_elevation: float):
    """Maps RAW elevation to meters above (or below) sea level."""
    raw = np.asarray(raw, dtype=np.float64)
    sea = DEFAULTS.SEA_LEVEL_RAW

    below = (raw - min_elevation) / _safe_span(sea - min_elevation)
    below_m = DEFAULTS.OCEAN_FLOOR_METERS + below * (DEFAULTS.SEA_LEVEL_METERS - DEFAULTS.OCEAN_FLOOR_METERS)

    above = (raw - sea) / _safe_span(max_elevation - sea)
    above_m = DEFAULTS.SEA_LEVEL_METERS + above * (DEFAULTS.HIGHEST_PEAK_METERS - DEFAULTS.SEA_LEVEL_METERS)

    meters = np.where(raw < sea, below_m, above_m)
    return float(meters) if meters.ndim == 0 else meters


def meters_to_raw(meters, min_elevation: float, max_elevation: float):
    """Inverse of raw_to_meters."""
    meters = np.asarray(meters, dtype=np.float64)
    sea = DEFAULTS.SEA_LEVEL_RAW

    below = (meters - DEFAULTS.OCEAN_FLOOR_METERS) / (DEFAULTS.SEA_LEVEL_METERS - DEFAULTS.OCEAN_FLOOR_METERS)
    below_raw = min_elevation + below * (sea - min_elevation)

    above = (meters - DEFAULTS.SEA_LEVEL_METERS) / (DEFAULTS.HIGHEST_PEAK_METERS - DEFAULTS.SEA_LEVEL_METERS)
    above_raw = sea + above * (max_elevation - sea)

    raw = np.where(meters < DEFAULTS.SEA_LEVEL_METERS, below_raw, above_raw)
    return float(raw) if raw.ndim == 0 else raw


def normalize(raw, min_elevation: float, max_elevation: float):
    """Linear rescale of RAW elevation to [0, 1] over the world's own range."""
    raw = np.asarray(raw, dtype=np.float64)
    span = max(max_elevation - min_elevation, 1e-6)
    normalized = np.clip((raw - min_elevation) / span, 0.0, 1.0)
    return float(normalized) if normalized.ndim == 0 else normalized


def format_elevation(meters: float) -> str:
    """Human-readable elevation label, e.g. '1,250 m' or '-3,400 m (depth)'."""
    if meters < 0:
        return f"{meters:,.0f} m (depth)"
    return f"{meters:,.0f} m"
