# tests/helpers.py

"""Shared stand-ins for the test suites."""

import logging

import numpy as np

from world_pipeline.params import GenerationParams, SimulationResult
from world_pipeline.plate_simulator import PlateSimulator

TEST_LOGGER = logging.getLogger("tests")


class StubPlateSimulator(PlateSimulator):
    """Cheap deterministic stand-in: a noisy dome, low at the borders."""

    name = "stub"

    def __init__(self):
        self.calls = 0

    def generate(self, params):
        self.calls += 1
        n = params.map_size
        rng = np.random.default_rng(params.seed)
        ys, xs = np.mgrid[0:n, 0:n] / max(n - 1, 1)
        dome = 1.0 - ((xs - 0.5) ** 2 + (ys - 0.5) ** 2) * 2.5
        heightmap = np.clip(0.3 + dome * 4.0 + rng.normal(0.0, 0.15, (n, n)), 0.1, 20.0)
        plates = ((xs > 0.5).astype(np.uint32) + 2 * (ys > 0.5)).astype(np.uint32)
        return SimulationResult(heightmap=heightmap, plates_map=plates, steps=1, simulator=self.name)


def small_params():
    return GenerationParams(seed=7, map_size=48, plate_count=4)


def make_rng():
    return np.random.default_rng(1234)
