# tests/test_generator.py

import json
import logging
import os
import tempfile
import unittest

import numpy as np

import generate_world
from world_pipeline import config as DEFAULTS
from world_pipeline.elevation import format_elevation, meters_to_raw, normalize, raw_to_meters
from world_pipeline.errors import ConfigurationError
from world_pipeline.generator import WorldGenerator
from world_pipeline.params import ClimateParams, PipelineMode
from world_pipeline.pipeline import IterativePipeline, SinglePassPipeline
from tests.helpers import TEST_LOGGER, StubPlateSimulator


class TestWorldGenerator(unittest.TestCase):
    """Dictionary configuration merged over the defaults."""

    def setUp(self):
        self.simulator = StubPlateSimulator()

    def test_defaults_fill_missing_settings(self):
        generator = WorldGenerator({}, TEST_LOGGER, plate_simulator=self.simulator)
        self.assertEqual(generator.seed, DEFAULTS.DEFAULT_SEED)
        self.assertEqual(generator.params.map_size, DEFAULTS.DEFAULT_MAP_SIZE)
        self.assertIsNone(generator.params.climate)
        self.assertIsInstance(generator.pipeline, SinglePassPipeline)

    def test_user_config_overrides_defaults(self):
        config = {"seed": 9, "map_size": 24, "plate_count": 3, "pipeline_mode": "iterative", "iteration_count": 2,
                  "axial_tilt": 0.1, "distance_to_sun": 0.9}
        generator = WorldGenerator(config, TEST_LOGGER, plate_simulator=self.simulator)
        self.assertIs(generator.params.pipeline_mode, PipelineMode.ITERATIVE)
        self.assertEqual(generator.params.climate, ClimateParams(0.1, 0.9))
        self.assertIsInstance(generator.pipeline, IterativePipeline)
        self.assertEqual(generator.pipeline.iterations, 2)

    def test_invalid_config_never_reaches_the_simulator(self):
        with self.assertRaises(ConfigurationError):
            WorldGenerator({"map_size": 0}, TEST_LOGGER, plate_simulator=self.simulator)
        with self.assertRaises(ConfigurationError):
            WorldGenerator({"plate_count": 0}, TEST_LOGGER, plate_simulator=self.simulator)
        self.assertEqual(self.simulator.calls, 0)

    def test_unknown_pipeline_mode_is_rejected(self):
        with self.assertRaises(ConfigurationError):
            WorldGenerator({"pipeline_mode": "sideways"}, TEST_LOGGER, plate_simulator=self.simulator)

    def test_generate_runs_the_pipeline(self):
        generator = WorldGenerator({"seed": 4, "map_size": 32, "plate_count": 2}, TEST_LOGGER,
                                   plate_simulator=self.simulator)
        result = generator.generate()
        self.assertEqual(self.simulator.calls, 1)
        self.assertEqual(result.heightmap.shape, (32, 32))
        self.assertEqual(result.climate, ClimateParams.from_seed(4))
        self.assertTrue(0.0 < result.statistics.ocean_fraction < 1.0)


class TestElevationUnits(unittest.TestCase):

    def test_conversion_pivots_on_sea_level(self):
        self.assertAlmostEqual(raw_to_meters(DEFAULTS.SEA_LEVEL_RAW, 0.2, 15.0), 0.0)
        self.assertAlmostEqual(raw_to_meters(0.2, 0.2, 15.0), DEFAULTS.OCEAN_FLOOR_METERS)
        self.assertAlmostEqual(raw_to_meters(15.0, 0.2, 15.0), DEFAULTS.HIGHEST_PEAK_METERS)
        self.assertAlmostEqual(meters_to_raw(raw_to_meters(7.5, 0.2, 15.0), 0.2, 15.0), 7.5)
        grid = raw_to_meters(np.array([[0.6, 1.0, 8.0]]), 0.2, 15.0)
        self.assertEqual(grid.shape, (1, 3))
        self.assertTrue(grid[0, 0] < 0.0 < grid[0, 2])

    def test_normalize_and_format(self):
        self.assertAlmostEqual(normalize(5.0, 0.0, 10.0), 0.5)
        self.assertEqual(format_elevation(1250.0), "1,250 m")
        self.assertEqual(format_elevation(-3400.0), "-3,400 m (depth)")


class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        # The CLI configures the root logger; keep the suite's handlers intact.
        self._root_handlers = logging.getLogger().handlers[:]

    def tearDown(self):
        logging.getLogger().handlers[:] = self._root_handlers
        self._tmp.cleanup()

    def test_runs_seeds_from_a_config_file(self):
        config_path = os.path.join(self._tmp.name, "world.json")
        with open(config_path, "w") as f:
            json.dump({"world_generation_parameters": {"map_size": 24, "plate_count": 3}}, f)
        exit_code = generate_world.main(["--config", config_path, "--seed", "1", "--seed", "2", "--workers", "2"])
        self.assertEqual(exit_code, 0)

    def test_summary_reports_the_peak_level_in_meters(self):
        summary = generate_world.generate_one({"map_size": 24, "plate_count": 3}, 7, "voronoi", None)
        self.assertIsInstance(summary["peak_level_meters"], float)
        self.assertEqual(summary["seed"], 7)
        self.assertEqual(summary["erosion_passes"], 1)

    def test_reports_bad_config_files(self):
        config_path = os.path.join(self._tmp.name, "broken.json")
        with open(config_path, "w") as f:
            f.write("{not json")
        self.assertEqual(generate_world.main(["--config", config_path]), 2)


if __name__ == "__main__":
    unittest.main()
