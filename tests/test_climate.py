# tests/test_climate.py

import unittest

import numpy as np

from world_pipeline import config as DEFAULTS
from world_pipeline.climate import (
    calculate_base_precipitation,
    calculate_temperature,
    latitude_factor,
    mountain_cooling,
)
from world_pipeline.errors import ConfigurationError
from world_pipeline.params import ClimateParams, ElevationThresholds

THRESHOLDS = ElevationThresholds(sea_level=1.0, hill_level=2.0, mountain_level=4.0, peak_level=8.0)


class TestTemperature(unittest.TestCase):
    """Latitude, noise, orbital distance and mountain cooling."""

    def test_latitude_factor_peaks_at_the_equator(self):
        lat = latitude_factor(64, 8, axial_tilt=0.0)
        self.assertEqual(lat.shape, (64, 8))
        self.assertAlmostEqual(lat[0, 0], 0.0)
        self.assertEqual(np.argmax(lat[:, 0]), 32)
        self.assertLessEqual(lat.max(), 1.0)

    def test_axial_tilt_moves_the_equator(self):
        untilted = np.argmax(latitude_factor(100, 1, 0.0)[:, 0])
        tilted = np.argmax(latitude_factor(100, 1, 0.2)[:, 0])
        self.assertEqual(tilted, untilted + 20)

    def test_mountain_cooling_only_applies_above_the_mountain_level(self):
        heights = np.array([[3.0, 4.0, 19.0, 100.0]])
        factor = mountain_cooling(heights, mountain_level=4.0)
        self.assertEqual(factor[0, 0], 1.0)
        self.assertEqual(factor[0, 1], 1.0)
        self.assertAlmostEqual(factor[0, 2], 1.0 - 15.0 / 30.0)
        self.assertAlmostEqual(factor[0, 3], DEFAULTS.MOUNTAIN_COOLING_FLOOR)

    def test_temperature_is_non_negative_and_bounded(self):
        heightmap = np.full((40, 40), 1.5)
        maps = calculate_temperature(heightmap, THRESHOLDS, ClimateParams(0.0, 1.0), seed=4)
        self.assertEqual(maps.final.shape, heightmap.shape)
        self.assertTrue(np.all(maps.final >= 0.0))
        self.assertTrue(np.all(maps.final <= 1.0))
        self.assertTrue(np.all((maps.with_noise >= 0.0) & (maps.with_noise <= 1.0)))

    def test_mountains_are_colder(self):
        heightmap = np.full((40, 40), 1.5)
        heightmap[:, 20:] = 10.0
        maps = calculate_temperature(heightmap, THRESHOLDS, ClimateParams(0.0, 1.0), seed=4)
        self.assertTrue(np.all(maps.final[:, 20:] <= maps.with_distance[:, 20:]))
        self.assertLess(maps.final[:, 20:].mean(), maps.with_distance[:, 20:].mean())
        self.assertTrue(np.array_equal(maps.final[:, :20], maps.with_distance[:, :20]))

    def test_closer_sun_means_hotter_world(self):
        heightmap = np.full((40, 40), 1.5)
        near = calculate_temperature(heightmap, THRESHOLDS, ClimateParams(0.0, 0.85), seed=4)
        far = calculate_temperature(heightmap, THRESHOLDS, ClimateParams(0.0, 1.15), seed=4)
        self.assertGreater(near.final.mean(), far.final.mean())

    def test_temperature_is_deterministic(self):
        heightmap = np.full((32, 32), 1.5)
        a = calculate_temperature(heightmap, THRESHOLDS, ClimateParams(0.1, 1.0), seed=8)
        b = calculate_temperature(heightmap, THRESHOLDS, ClimateParams(0.1, 1.0), seed=8)
        self.assertTrue(np.array_equal(a.final, b.final))


class TestPrecipitation(unittest.TestCase):

    def test_precipitation_is_normalized_with_ordered_thresholds(self):
        temperature = latitude_factor(48, 48, 0.0)
        maps = calculate_base_precipitation(temperature, seed=12)
        self.assertAlmostEqual(maps.final.min(), 0.0)
        self.assertAlmostEqual(maps.final.max(), 1.0)
        t = maps.thresholds
        self.assertTrue(0.0 <= t.low <= t.medium <= t.high <= 1.0)

    def test_warm_regions_are_wetter_on_average(self):
        temperature = np.zeros((48, 48))
        temperature[:, 24:] = 1.0
        maps = calculate_base_precipitation(temperature, seed=12)
        self.assertGreater(maps.final[:, 24:].mean(), maps.final[:, :24].mean())


class TestClimateParams(unittest.TestCase):

    def test_from_seed_is_deterministic_and_bounded(self):
        self.assertEqual(ClimateParams.from_seed(99), ClimateParams.from_seed(99))
        for seed in range(50):
            params = ClimateParams.from_seed(seed)
            self.assertTrue(-DEFAULTS.AXIAL_TILT_LIMIT <= params.axial_tilt <= DEFAULTS.AXIAL_TILT_LIMIT)
            self.assertGreaterEqual(params.distance_to_sun, DEFAULTS.DISTANCE_TO_SUN_FLOOR ** 2)

    def test_rejects_bad_values(self):
        with self.assertRaises(ConfigurationError):
            ClimateParams(axial_tilt=0.9)
        with self.assertRaises(ConfigurationError):
            ClimateParams(distance_to_sun=0.0)


if __name__ == "__main__":
    unittest.main()
