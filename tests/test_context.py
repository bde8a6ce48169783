# tests/test_context.py

import unittest

import numpy as np

from world_pipeline.context import PipelineContext, WorldGenerationResult
from world_pipeline.errors import StageExecutionError
from world_pipeline.params import ClimateParams, ElevationThresholds, GenerationParams


class TestPipelineContext(unittest.TestCase):
    """Immutability, field ownership and the current-terrain accessors."""

    def setUp(self):
        self.context = PipelineContext.create(GenerationParams(seed=1, map_size=4, plate_count=2), ClimateParams())

    def test_create_copies_configuration(self):
        self.assertEqual(self.context.seed, 1)
        self.assertEqual(self.context.map_size, 4)
        self.assertEqual(self.context.climate, ClimateParams())
        self.assertEqual(self.context.plate_params.map_size, 4)
        self.assertIsNone(self.context.raw_heightmap)

    def test_create_draws_climate_from_the_seed_when_missing(self):
        params = GenerationParams(seed=77, map_size=4, plate_count=2)
        self.assertEqual(PipelineContext.create(params).climate, ClimateParams.from_seed(77))

    def test_evolve_returns_a_superset_and_leaves_the_original(self):
        heightmap = np.ones((4, 4))
        evolved = self.context.evolve("A", raw_heightmap=heightmap)
        self.assertIsNone(self.context.raw_heightmap)
        self.assertTrue(np.array_equal(evolved.raw_heightmap, heightmap))
        self.assertEqual(evolved.seed, self.context.seed)

    def test_stored_arrays_are_read_only(self):
        evolved = self.context.evolve("A", raw_heightmap=np.ones((4, 4)))
        with self.assertRaises(ValueError):
            evolved.raw_heightmap[0, 0] = 5.0

    def test_a_stage_may_rewrite_its_own_fields(self):
        first = self.context.evolve("Temperature", temperature_final=np.zeros((4, 4)))
        second = first.evolve("Temperature", temperature_final=np.ones((4, 4)))
        self.assertEqual(second.temperature_final[0, 0], 1.0)

    def test_another_stage_may_not_overwrite_a_field(self):
        first = self.context.evolve("Temperature", temperature_final=np.zeros((4, 4)))
        with self.assertRaises(StageExecutionError) as cm:
            first.evolve("Rogue", temperature_final=np.ones((4, 4)))
        self.assertEqual(cm.exception.stage_name, "Rogue")

    def test_shape_mismatch_is_rejected(self):
        with self.assertRaises(StageExecutionError):
            self.context.evolve("A", raw_heightmap=np.ones((5, 4)))

    def test_unknown_fields_are_rejected(self):
        with self.assertRaises(StageExecutionError):
            self.context.evolve("A", biome_map=np.ones((4, 4)))

    def test_current_terrain_prefers_the_eroded_variant(self):
        t1 = ElevationThresholds(1.0, 2.0, 3.0, 4.0)
        t2 = ElevationThresholds(0.5, 1.0, 1.5, 2.0)
        base = self.context.evolve(
            "Post", post_processed_heightmap=np.ones((4, 4)), ocean_mask=np.zeros((4, 4), dtype=bool), thresholds=t1
        )
        self.assertEqual(base.elevation[0, 0], 1.0)
        self.assertEqual(base.current_thresholds, t1)

        eroded = base.evolve(
            "Erosion", eroded_heightmap=np.full((4, 4), 0.5), eroded_ocean_mask=np.ones((4, 4), dtype=bool),
            eroded_thresholds=t2,
        )
        self.assertEqual(eroded.elevation[0, 0], 0.5)
        self.assertTrue(eroded.current_ocean_mask.all())
        self.assertEqual(eroded.current_thresholds, t2)

    def test_current_depth_and_range_follow_the_eroded_surface(self):
        base = self.context.evolve(
            "Post", sea_depth=np.full((4, 4), 0.5), min_elevation=0.2, max_elevation=9.0,
        )
        self.assertEqual(base.current_sea_depth[0, 0], 0.5)
        self.assertEqual(base.current_max_elevation, 9.0)

        eroded = base.evolve(
            "Erosion", eroded_sea_depth=np.zeros((4, 4)), eroded_min_elevation=0.3, eroded_max_elevation=8.5,
        )
        self.assertEqual(eroded.current_sea_depth[0, 0], 0.0)
        self.assertEqual(eroded.current_min_elevation, 0.3)
        self.assertEqual(eroded.current_max_elevation, 8.5)
        self.assertEqual(eroded.sea_depth[0, 0], 0.5)

    def test_thresholds_must_be_ordered(self):
        with self.assertRaises(ValueError):
            ElevationThresholds(2.0, 1.0, 3.0, 4.0)

    def test_result_to_dict_is_plain_data(self):
        t = ElevationThresholds(1.0, 2.0, 3.0, 4.0)
        filled = self.context.evolve(
            "Foundation",
            raw_heightmap=np.ones((4, 4)),
            post_processed_heightmap=np.ones((4, 4)),
            ocean_mask=np.zeros((4, 4), dtype=bool),
            thresholds=t,
            plates_map=np.zeros((4, 4), dtype=np.uint32),
            min_elevation=1.0,
            max_elevation=1.0,
        )
        data = WorldGenerationResult.from_context(filled).to_dict()
        self.assertEqual(data["thresholds"],
                         {"sea_level": 1.0, "hill_level": 2.0, "mountain_level": 3.0, "peak_level": 4.0})
        self.assertEqual(data["heightmap"], [[1.0] * 4] * 4)
        self.assertEqual(data["climate"], {"axial_tilt": 0.0, "distance_to_sun": 1.0})


if __name__ == "__main__":
    unittest.main()
