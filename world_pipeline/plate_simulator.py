# world_pipeline/plate_simulator.py

"""
================================================================================
PLATE SIMULATOR STRATEGIES
================================================================================
The pipeline only ever talks to a PlateSimulator. Two strategies exist:
    - VoronoiPlateSimulator (this module): managed NumPy/SciPy simulation.
      The default; needs no native library.
    - NativePlateSimulator (native.py): ctypes adapter over the native
      plate-tectonics library.

Data Contract:
---------------
- Inputs: PlateSimulationParams.
- Outputs: SimulationResult (float64 heightmap in RAW units, uint32 plates map).
- Side Effects: Logs via the provided logger.
- Errors: NativeSimulationError subclasses (NonConvergence when the step
  budget runs out before the simulation reports it is finished).
================================================================================
"""

import abc
import logging
import time

from .errors import NonConvergence
from .params import PlateSimulationParams, SimulationResult
from .tectonics import Lithosphere


class PlateSimulator(abc.ABC):
    """Strategy interface for producing a raw heightmap and plates map."""

    name = "plate-simulator"

    @abc.abstractmethod
    def generate(self, params: PlateSimulationParams) -> SimulationResult:
        """Runs one full simulation. Must be deterministic for equal params."""


class VoronoiPlateSimulator(PlateSimulator):
    name = "voronoi"

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger(__name__)

    def generate(self, params: PlateSimulationParams) -> SimulationResult:
        start_time = time.perf_counter()
        self.logger.info(
            f"Running managed plate simulation: seed={params.seed}, "
            f"size={params.map_size}, plates={params.plate_count}"
        )
        lithosphere = Lithosphere(params)

        steps = 0
        while not lithosphere.is_finished():
            if steps >= params.max_steps:
                raise NonConvergence(
                    f"Plate simulation did not finish within {params.max_steps} steps"
                )
            lithosphere.step()
            steps += 1

        duration = time.perf_counter() - start_time
        self.logger.info(f"Managed plate simulation finished after {steps} steps in {duration:.2f}s")
        return SimulationResult(
            heightmap=lithosphere.get_heightmap(),
            plates_map=lithosphere.get_plates_map(),
            steps=steps,
            simulator=self.name,
            metadata={
                "duration_seconds": duration,
                "continental_plates": int(lithosphere.continental.sum()),
            },
        )
