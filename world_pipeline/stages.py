# world_pipeline/stages.py

"""
================================================================================
PIPELINE STAGES
================================================================================
Each stage reads what it needs from a PipelineContext and returns a new
context carrying its outputs.

Data Contract:
---------------
- Inputs: A PipelineContext and an iteration index (0 outside a feedback
  loop, 1..N inside one).
- Outputs: A new PipelineContext; the input is never modified.
- Side Effects: Logging only. The iteration index changes log verbosity and
  nothing else.
- Errors: StageExecutionError naming the stage when a required input is
  missing; algorithm errors propagate to the orchestrator.
================================================================================
"""

import abc
import logging

import numpy as np

from . import analysis
from . import climate
from . import moisture
from .context import PipelineContext
from .erosion import run_erosion_pass
from .errors import StageExecutionError
from .params import PlateSimulationParams
from .plate_simulator import PlateSimulator
from .postprocess import ElevationPostProcessor


class PipelineStage(abc.ABC):
    """One step of the world generation pipeline."""

    name = "Stage"

    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger(__name__)

    @abc.abstractmethod
    def execute(self, context: PipelineContext, iteration_index: int = 0) -> PipelineContext:
        """Returns a new context with this stage's outputs added."""

    def require(self, context: PipelineContext, *fields: str):
        """Returns the named context values, raising if any is missing."""
        values = []
        for name in fields:
            value = getattr(context, name)
            if value is None:
                raise StageExecutionError(f"Missing required input '{name}'", self.name)
            values.append(value)
        return values[0] if len(values) == 1 else values

    def log(self, iteration_index: int, message: str):
        # First pass at INFO, later feedback passes at DEBUG.
        level = logging.INFO if iteration_index <= 1 else logging.DEBUG
        suffix = f" (iteration {iteration_index})" if iteration_index > 0 else ""
        self.logger.log(level, f"{self.name}: {message}{suffix}")

    def __repr__(self):
        return f"{type(self).__name__}()"


class PlateGenerationStage(PipelineStage):
    name = "Plate Generation"

    def __init__(self, simulator: PlateSimulator, logger: logging.Logger = None):
        super().__init__(logger)
        self.simulator = simulator

    def execute(self, context, iteration_index=0):
        params = context.plate_params or PlateSimulationParams(
            seed=context.seed, map_size=context.map_size, plate_count=context.plate_count
        )
        result = self.simulator.generate(params)
        duration = result.metadata.get("duration_seconds")
        timing = f" in {duration:.2f}s" if duration is not None else ""
        self.log(iteration_index, f"{result.steps} simulation steps{timing} ({self.simulator.name})")
        return context.evolve(
            self.name,
            raw_heightmap=np.asarray(result.heightmap, dtype=np.float64),
            plates_map=np.asarray(result.plates_map, dtype=np.uint32),
            simulation=result,
        )


class ElevationPostProcessStage(PipelineStage):
    name = "Elevation Post-Processing"

    def __init__(self, logger: logging.Logger = None):
        super().__init__(logger)
        self.processor = ElevationPostProcessor(self.logger)

    def execute(self, context, iteration_index=0):
        raw = self.require(context, "raw_heightmap")
        result = self.processor.process(raw, context.seed)
        self.log(
            iteration_index,
            f"sea level {result.thresholds.sea_level:.3f}, ocean fraction {result.ocean_mask.mean():.1%}",
        )
        return context.evolve(
            self.name,
            post_processed_heightmap=result.heightmap,
            thresholds=result.thresholds,
            ocean_mask=result.ocean_mask,
            sea_depth=result.sea_depth,
            min_elevation=result.min_elevation,
            max_elevation=result.max_elevation,
        )


class TemperatureStage(PipelineStage):
    name = "Temperature"

    def execute(self, context, iteration_index=0):
        elevation, thresholds = self.require(context, "elevation", "current_thresholds")
        maps = climate.calculate_temperature(elevation, thresholds, context.climate, context.seed)
        self.log(iteration_index, f"mean temperature {maps.final.mean():.3f}")
        return context.evolve(
            self.name,
            temperature_latitude_only=maps.latitude_only,
            temperature_with_noise=maps.with_noise,
            temperature_with_distance=maps.with_distance,
            temperature_final=maps.final,
        )


class PrecipitationStage(PipelineStage):
    name = "Precipitation"

    def execute(self, context, iteration_index=0):
        temperature = self.require(context, "temperature_final")
        maps = climate.calculate_base_precipitation(temperature, context.seed)
        self.log(iteration_index, f"thresholds {maps.thresholds}")
        return context.evolve(
            self.name,
            base_noise_precipitation=maps.noise_only,
            temperature_shaped_precipitation=maps.temperature_shaped,
            base_precipitation=maps.final,
            precipitation_thresholds=maps.thresholds,
        )


class RainShadowStage(PipelineStage):
    name = "Rain Shadow"

    def execute(self, context, iteration_index=0):
        precipitation, elevation = self.require(context, "base_precipitation", "elevation")
        shadowed, factor = moisture.apply_rain_shadow(precipitation, elevation, float(elevation.max()))
        self.log(iteration_index, f"{np.mean(factor < 1.0):.1%} of cells in rain shadow")
        return context.evolve(self.name, rain_shadow_factor=factor, rain_shadow_precipitation=shadowed)


class CoastalMoistureStage(PipelineStage):
    name = "Coastal Moisture"

    def execute(self, context, iteration_index=0):
        precipitation, elevation, ocean_mask = self.require(
            context, "rain_shadow_precipitation", "elevation", "current_ocean_mask"
        )
        enhanced, distance = moisture.apply_coastal_moisture(precipitation, elevation, ocean_mask)
        # Rain shadow and coastal moisture reshape the field, so its bands are resampled.
        thresholds = climate.compute_precipitation_thresholds(enhanced, context.seed)
        self.log(iteration_index, f"mean precipitation {enhanced.mean():.3f}, thresholds {thresholds}")
        return context.evolve(
            self.name,
            distance_to_ocean=distance,
            precipitation_final=enhanced,
            final_precipitation_thresholds=thresholds,
        )


class ErosionStage(PipelineStage):
    name = "Erosion"

    def execute(self, context, iteration_index=0):
        elevation, ocean_mask = self.require(context, "elevation", "current_ocean_mask")
        # The first feedback pass runs before any climate exists.
        result = run_erosion_pass(
            np.asarray(elevation), np.asarray(ocean_mask), context.precipitation_final,
            context.seed, context.erosion_passes,
        )
        removed = float(np.sum(elevation - result.heightmap))
        self.log(iteration_index, f"pass {context.erosion_passes + 1}, net elevation removed {removed:.3f}")
        return context.evolve(
            self.name,
            eroded_heightmap=result.heightmap,
            eroded_thresholds=result.thresholds,
            eroded_ocean_mask=result.ocean_mask,
            eroded_sea_depth=result.sea_depth,
            eroded_min_elevation=result.min_elevation,
            eroded_max_elevation=result.max_elevation,
            erosion_passes=context.erosion_passes + 1,
        )


class AnalysisStage(PipelineStage):
    name = "Analysis"

    def execute(self, context, iteration_index=0):
        elevation, ocean_mask = self.require(context, "elevation", "current_ocean_mask")
        analysis.audit_finite(context.populated_maps())
        stats = analysis.compute_statistics(
            elevation, ocean_mask, context.temperature_final, context.precipitation_final, context.erosion_passes
        )
        self.log(
            iteration_index,
            f"ocean {stats.ocean_fraction:.1%}, elevation [{stats.min_elevation:.2f}, {stats.max_elevation:.2f}]",
        )
        return context.evolve(self.name, statistics=stats)


def default_foundation_stages(simulator: PlateSimulator, logger: logging.Logger = None) -> list:
    return [PlateGenerationStage(simulator, logger), ElevationPostProcessStage(logger)]


def default_climate_stages(logger: logging.Logger = None) -> list:
    return [TemperatureStage(logger), PrecipitationStage(logger), RainShadowStage(logger), CoastalMoistureStage(logger)]
