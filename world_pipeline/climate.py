# world_pipeline/climate.py

"""
================================================================================
CLIMATE MODELS: TEMPERATURE & BASE PRECIPITATION
================================================================================
Pure functions that compute the temperature field and the base
precipitation field from the terrain and the orbital parameters.

Data Contract:
---------------
- Inputs:
    - heightmap (np.ndarray): Current RAW elevation.
    - thresholds (ElevationThresholds): Current elevation levels.
    - climate (ClimateParams): Axial tilt and (squared) distance to sun.
    - seed (int): Master seed; noise layers derive their own seeds from it.
- Outputs:
    - TemperatureMaps: latitude-only, with-noise, with-distance and final
      maps, all >= 0 and (for distance 1) within [0, 1].
    - PrecipitationMaps: noise, temperature-shaped and final maps, the final
      map normalized to [0, 1], plus quantile thresholds of that base
      field. The thresholds reported with a world are resampled once rain
      shadow and coastal moisture have been applied.
- Side Effects: None.
- Invariants: Output shapes match the heightmap's shape.
================================================================================
"""

from dataclasses import dataclass

import numpy as np

from . import config as DEFAULTS
from . import noise
from . import sampling
from .params import ClimateParams, ElevationThresholds, PrecipitationThresholds


@dataclass(frozen=True)
class TemperatureMaps:
    latitude_only: np.ndarray
    with_noise: np.ndarray
    with_distance: np.ndarray
    final: np.ndarray


@dataclass(frozen=True)
class PrecipitationMaps:
    noise_only: np.ndarray
    temperature_shaped: np.ndarray
    final: np.ndarray
    thresholds: PrecipitationThresholds


def latitude_factor(height: int, width: int, axial_tilt: float) -> np.ndarray:
    """
    Parabolic insolation profile: 1.0 at the (tilted) equator, 0.0 at the poles.
    Axial tilt shifts the equator along the y axis.
    """
    y = np.arange(height, dtype=np.float64) / max(height, 1)
    offset = (y - 0.5 - axial_tilt) / 0.5
    row = np.clip(1.0 - offset * offset, 0.0, 1.0)
    return np.repeat(row[:, None], width, axis=1)


def mountain_cooling(heightmap: np.ndarray, mountain_level: float) -> np.ndarray:
    """Multiplicative cooling factor: 1.0 below the mountain level, falling linearly above it."""
    excess = np.clip(heightmap - mountain_level, 0.0, None)
    factor = 1.0 - excess / DEFAULTS.MOUNTAIN_COOLING_RANGE_RAW
    return np.where(excess > 0.0, np.maximum(DEFAULTS.MOUNTAIN_COOLING_FLOOR, factor), 1.0)


def calculate_temperature(heightmap: np.ndarray, thresholds: ElevationThresholds,
                          climate: ClimateParams, seed: int) -> TemperatureMaps:
    height, width = heightmap.shape

    # 1. Latitude.
    latitude = latitude_factor(height, width, climate.axial_tilt)

    # 2. Blend in noise so isotherms are not perfectly straight.
    temperature_noise = noise.fractal_noise_map(
        height, width,
        seed=seed + DEFAULTS.TEMPERATURE_NOISE_SEED_OFFSET,
        octaves=DEFAULTS.TEMPERATURE_NOISE_OCTAVES,
        feature_scale=DEFAULTS.TEMPERATURE_NOISE_FEATURE_SCALE,
    )
    total_weight = DEFAULTS.TEMPERATURE_LATITUDE_WEIGHT + DEFAULTS.TEMPERATURE_NOISE_WEIGHT
    with_noise = (latitude * DEFAULTS.TEMPERATURE_LATITUDE_WEIGHT
                  + temperature_noise * DEFAULTS.TEMPERATURE_NOISE_WEIGHT) / total_weight

    # 3. Distance to the sun. The stored distance is already squared.
    with_distance = with_noise / climate.distance_to_sun

    # 4. Mountains cool with altitude.
    final = with_distance * mountain_cooling(heightmap, thresholds.mountain_level)
    final = np.clip(final, 0.0, None)

    return TemperatureMaps(
        latitude_only=latitude,
        with_noise=with_noise,
        with_distance=with_distance,
        final=final,
    )


def compute_precipitation_thresholds(precipitation: np.ndarray, seed: int) -> PrecipitationThresholds:
    low, medium, high = sampling.sample_quantiles(
        precipitation,
        (DEFAULTS.PRECIPITATION_LOW_PERCENTILE,
         DEFAULTS.PRECIPITATION_MEDIUM_PERCENTILE,
         DEFAULTS.PRECIPITATION_HIGH_PERCENTILE),
        seed=seed + DEFAULTS.PRECIPITATION_SAMPLE_SEED_OFFSET,
    )
    return PrecipitationThresholds(low=low, medium=medium, high=high)


def calculate_base_precipitation(temperature: np.ndarray, seed: int) -> PrecipitationMaps:
    """
    Noise-driven precipitation shaped by temperature: warm air holds more
    moisture, so the noise is scaled by a gamma curve of temperature.
    """
    height, width = temperature.shape

    # 1. Base noise in [0, 1].
    precipitation_noise = noise.fractal_noise_map(
        height, width,
        seed=seed + DEFAULTS.PRECIPITATION_NOISE_SEED_OFFSET,
        octaves=DEFAULTS.PRECIPITATION_NOISE_OCTAVES,
        feature_scale=DEFAULTS.PRECIPITATION_NOISE_FEATURE_SCALE,
    )

    # 2. Temperature gamma curve.
    bonus = DEFAULTS.PRECIPITATION_CURVE_BONUS
    curve = np.power(temperature, DEFAULTS.PRECIPITATION_GAMMA) * (1.0 - bonus) + bonus
    shaped = precipitation_noise * curve

    # 3. Renormalize to [0, 1].
    low, high = float(shaped.min()), float(shaped.max())
    spread = max(high - low, DEFAULTS.PRECIPITATION_MIN_SPREAD)
    final = np.clip((shaped - low) / spread, 0.0, 1.0)

    return PrecipitationMaps(
        noise_only=precipitation_noise,
        temperature_shaped=shaped,
        final=final,
        thresholds=compute_precipitation_thresholds(final, seed),
    )
