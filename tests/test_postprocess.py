# tests/test_postprocess.py

import unittest

import numpy as np
from scipy import ndimage

from world_pipeline import config as DEFAULTS
from world_pipeline.errors import StageExecutionError
from world_pipeline.postprocess import (
    ElevationPostProcessor,
    calculate_sea_depth,
    compute_elevation_thresholds,
    fill_ocean,
    gaussian_kernel_1d,
    gaussian_smooth,
    harmonize_ocean,
)
from tests.helpers import make_rng


class TestElevationThresholds(unittest.TestCase):
    """Adaptive percentile thresholds."""

    def setUp(self):
        self.rng = make_rng()

    def test_thresholds_are_ordered(self):
        heightmap = self.rng.gamma(2.0, 1.5, size=(64, 64))
        t = compute_elevation_thresholds(heightmap, seed=3)
        self.assertTrue(t.sea_level <= t.hill_level <= t.mountain_level <= t.peak_level)

    def test_thresholds_are_deterministic_for_a_seed(self):
        heightmap = self.rng.uniform(0.1, 20.0, size=(64, 64))
        self.assertEqual(compute_elevation_thresholds(heightmap, seed=11),
                         compute_elevation_thresholds(heightmap, seed=11))

    def test_thresholds_track_the_distribution(self):
        heightmap = np.linspace(0.0, 1.0, 100 * 100).reshape(100, 100)
        t = compute_elevation_thresholds(heightmap, seed=5)
        self.assertAlmostEqual(t.sea_level, 0.50, delta=0.03)
        self.assertAlmostEqual(t.hill_level, 0.75, delta=0.03)
        self.assertAlmostEqual(t.mountain_level, 0.90, delta=0.03)
        self.assertAlmostEqual(t.peak_level, 0.98, delta=0.03)

    def test_flat_world_gets_epsilon_spread(self):
        t = compute_elevation_thresholds(np.full((32, 32), 2.5), seed=1)
        eps = DEFAULTS.FLAT_WORLD_EPSILON
        self.assertAlmostEqual(t.sea_level, 2.5)
        self.assertAlmostEqual(t.hill_level, 2.5 + eps)
        self.assertAlmostEqual(t.mountain_level, 2.5 + 2 * eps)
        self.assertAlmostEqual(t.peak_level, 2.5 + 3 * eps)

    def test_flat_world_has_no_ocean(self):
        heightmap = np.full((16, 16), 2.5)
        t = compute_elevation_thresholds(heightmap, seed=1)
        self.assertFalse(fill_ocean(heightmap, t.sea_level).any())


class TestGaussianSmoothing(unittest.TestCase):

    def test_kernel_is_normalized_and_symmetric(self):
        kernel = gaussian_kernel_1d()
        self.assertEqual(kernel.shape, (2 * DEFAULTS.GAUSSIAN_KERNEL_RADIUS + 1,))
        self.assertAlmostEqual(kernel.sum(), 1.0)
        self.assertTrue(np.allclose(kernel, kernel[::-1]))

    def test_keeps_shape_and_constant_maps(self):
        heightmap = np.full((20, 30), 3.0)
        smoothed = gaussian_smooth(heightmap)
        self.assertEqual(smoothed.shape, heightmap.shape)
        self.assertTrue(np.allclose(smoothed, 3.0))

    def test_spreads_a_spike_without_losing_mass(self):
        heightmap = np.zeros((21, 21))
        heightmap[10, 10] = 1.0
        smoothed = gaussian_smooth(heightmap)
        self.assertLess(smoothed[10, 10], 1.0)
        self.assertGreater(smoothed[10, 11], 0.0)
        self.assertEqual(smoothed[10, 13], 0.0)  # outside the 5x5 footprint
        self.assertAlmostEqual(smoothed.sum(), 1.0)

    def test_rejects_non_finite_input(self):
        heightmap = np.ones((8, 8))
        heightmap[4, 4] = np.nan
        with self.assertRaises(StageExecutionError):
            gaussian_smooth(heightmap)


class TestOceanFill(unittest.TestCase):
    """Border-connected flood fill below sea level."""

    def test_landlocked_depression_is_not_ocean(self):
        heightmap = np.full((7, 7), 5.0)
        heightmap[3, 3] = 0.0
        self.assertFalse(fill_ocean(heightmap, sea_level=1.0).any())

    def test_fill_is_four_connected(self):
        heightmap = np.full((5, 5), 5.0)
        heightmap[0, 0] = 0.0
        heightmap[1, 1] = 0.0  # touches the border cell only diagonally
        ocean = fill_ocean(heightmap, sea_level=1.0)
        self.assertTrue(ocean[0, 0])
        self.assertFalse(ocean[1, 1])

    def test_fill_uses_strict_comparison(self):
        heightmap = np.full((5, 5), 5.0)
        heightmap[0, :] = 1.0
        self.assertFalse(fill_ocean(heightmap, sea_level=1.0).any())

    def test_ocean_reaches_inland_through_a_channel(self):
        heightmap = np.full((9, 9), 5.0)
        heightmap[4, 0:5] = 0.0  # channel from the west border to the centre
        ocean = fill_ocean(heightmap, sea_level=1.0)
        self.assertTrue(ocean[4, 0:5].all())
        self.assertEqual(ocean.sum(), 5)

    def test_mask_is_below_sea_level_and_border_connected(self):
        heightmap = gaussian_smooth(make_rng().uniform(0.0, 2.0, size=(40, 40)))
        sea_level = float(np.median(heightmap))
        ocean = fill_ocean(heightmap, sea_level)

        self.assertTrue(np.all(heightmap[ocean] < sea_level))
        labels, _ = ndimage.label(ocean, structure=ndimage.generate_binary_structure(2, 1))
        border = set(np.concatenate((labels[0], labels[-1], labels[:, 0], labels[:, -1]))) - {0}
        self.assertTrue(set(np.unique(labels[ocean])) <= border)


class TestHarmonizeAndDepth(unittest.TestCase):

    def test_harmonize_only_touches_ocean_cells(self):
        heightmap = make_rng().uniform(0.0, 1.0, size=(12, 12))
        ocean = np.zeros((12, 12), dtype=bool)
        ocean[:, :4] = True
        harmonized = harmonize_ocean(heightmap, ocean)
        self.assertTrue(np.array_equal(harmonized[~ocean], heightmap[~ocean]))
        self.assertFalse(np.array_equal(harmonized[ocean], heightmap[ocean]))

    def test_harmonize_blends_thirty_percent_toward_ocean_neighbours(self):
        heightmap = np.zeros((3, 3))
        heightmap[1, 1] = 1.0
        ocean = np.ones((3, 3), dtype=bool)
        harmonized = harmonize_ocean(heightmap, ocean)
        self.assertAlmostEqual(harmonized[1, 1], 0.7)

    def test_sea_depth_is_normalized(self):
        heightmap = np.array([[0.0, 0.5, 2.0]])
        ocean = np.array([[True, True, False]])
        depth = calculate_sea_depth(heightmap, ocean, sea_level=1.0)
        self.assertAlmostEqual(depth[0, 0], 1.0)
        self.assertAlmostEqual(depth[0, 1], 0.5)
        self.assertEqual(depth[0, 2], 0.0)


class TestElevationPostProcessor(unittest.TestCase):

    def setUp(self):
        self.rng = make_rng()

    def test_output_is_consistent(self):
        raw = gaussian_smooth(self.rng.uniform(0.1, 6.0, size=(48, 48)))
        result = ElevationPostProcessor().process(raw, seed=9)

        self.assertEqual(result.heightmap.shape, raw.shape)
        self.assertTrue(np.all(np.isfinite(result.heightmap)))
        self.assertTrue(np.array_equal(result.ocean_mask, fill_ocean(result.heightmap, result.thresholds.sea_level)))
        self.assertAlmostEqual(result.min_elevation, result.heightmap.min())
        self.assertAlmostEqual(result.max_elevation, result.heightmap.max())
        self.assertTrue(np.all((result.sea_depth >= 0.0) & (result.sea_depth <= 1.0)))

    def test_does_not_modify_its_input(self):
        raw = self.rng.uniform(0.1, 6.0, size=(24, 24))
        before = raw.copy()
        ElevationPostProcessor().process(raw, seed=2)
        self.assertTrue(np.array_equal(raw, before))


if __name__ == "__main__":
    unittest.main()
