# tests/test_erosion.py

import unittest

import numpy as np

from world_pipeline import config as DEFAULTS
from world_pipeline.erosion import calculate_slope, erode, run_erosion_pass
from world_pipeline.postprocess import fill_ocean
from tests.helpers import make_rng


def _terrain(rng, n=32):
    ys, xs = np.mgrid[0:n, 0:n] / (n - 1)
    return 0.5 + 6.0 * (1.0 - ((xs - 0.5) ** 2 + (ys - 0.5) ** 2) * 3.0) + rng.normal(0.0, 0.2, (n, n))


class TestErosion(unittest.TestCase):

    def setUp(self):
        self.heightmap = _terrain(make_rng())

    def test_slope_is_normalized(self):
        ramp = np.tile(np.arange(10, dtype=float), (10, 1))
        self.assertEqual(calculate_slope(ramp).max(), 1.0)
        self.assertTrue(np.all(calculate_slope(np.ones((5, 5))) == 0.0))

    def test_flat_land_does_not_erode(self):
        eroded = erode(np.full((8, 8), 3.0), np.zeros((8, 8), dtype=bool))
        self.assertTrue(np.allclose(eroded, 3.0))

    def test_ocean_cells_are_never_eroded(self):
        ocean = self.heightmap < np.median(self.heightmap)
        eroded = erode(self.heightmap, ocean, np.full(self.heightmap.shape, 1.0))
        self.assertTrue(np.array_equal(eroded[ocean], np.maximum(self.heightmap[ocean], DEFAULTS.RAW_ELEVATION_MIN)))
        self.assertGreaterEqual(eroded.min(), DEFAULTS.RAW_ELEVATION_MIN)

    def test_wetter_terrain_erodes_more(self):
        ocean = np.zeros(self.heightmap.shape, dtype=bool)
        dry = erode(self.heightmap, ocean, np.full(self.heightmap.shape, 0.1), deposition_blend=0.0)
        wet = erode(self.heightmap, ocean, np.full(self.heightmap.shape, 0.9), deposition_blend=0.0)
        self.assertLess(wet.sum(), dry.sum())

    def test_pass_recomputes_thresholds_and_ocean(self):
        ocean = fill_ocean(self.heightmap, float(np.median(self.heightmap)))
        result = run_erosion_pass(self.heightmap, ocean, None, seed=3, pass_index=0)
        t = result.thresholds
        self.assertTrue(t.sea_level <= t.hill_level <= t.mountain_level <= t.peak_level)
        self.assertTrue(np.array_equal(result.ocean_mask, fill_ocean(result.heightmap, t.sea_level)))
        self.assertTrue(np.array_equal(result.sea_depth > 0.0, result.ocean_mask))
        self.assertEqual(result.min_elevation, float(result.heightmap.min()))
        self.assertEqual(result.max_elevation, float(result.heightmap.max()))


if __name__ == "__main__":
    unittest.main()
