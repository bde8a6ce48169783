# world_pipeline/builder.py

"""
================================================================================
PIPELINE BUILDER
================================================================================
Fluent configuration of a world pipeline: which plate simulator to use,
which orchestrator topology to run, and which stages to run in each slot.

Usage:
    pipeline = PipelineBuilder.fast_preview().build()
    pipeline = (PipelineBuilder()
                .use_plate_simulator(NativePlateSimulator())
                .use_iterative_mode(iterations=4)
                .use_default_stages()
                .build())
================================================================================
"""

import logging

from . import config as DEFAULTS
from .errors import ConfigurationError
from .params import PipelineMode
from .pipeline import IterativePipeline, SinglePassPipeline, WorldPipeline
from .plate_simulator import PlateSimulator, VoronoiPlateSimulator
from .stages import AnalysisStage, ErosionStage, PipelineStage, default_climate_stages, default_foundation_stages


class PipelineBuilder:
    def __init__(self, logger: logging.Logger = None):
        self.logger = logger or logging.getLogger(__name__)
        self._simulator = None
        self._mode = PipelineMode.SINGLE_PASS
        self._iterations = None
        self._foundation_stages = []
        self._climate_stages = []
        self._erosion_stage = None
        self._analysis_stages = []

    # --- Presets ---
    @classmethod
    def fast_preview(cls, simulator: PlateSimulator = None, logger: logging.Logger = None) -> "PipelineBuilder":
        """Single pass with the default stages."""
        return (cls(logger)
                .use_plate_simulator(simulator or VoronoiPlateSimulator(logger))
                .use_single_pass_mode()
                .use_default_stages())

    @classmethod
    def high_quality(cls, simulator: PlateSimulator = None, iterations: int = DEFAULTS.DEFAULT_ITERATION_COUNT,
                     logger: logging.Logger = None) -> "PipelineBuilder":
        """Iterative erosion/climate feedback with the default stages."""
        if not 1 <= iterations <= DEFAULTS.MAX_PRESET_ITERATIONS:
            raise ConfigurationError(
                f"High quality preset runs 1-{DEFAULTS.MAX_PRESET_ITERATIONS} iterations, got {iterations}"
            )
        return (cls(logger)
                .use_plate_simulator(simulator or VoronoiPlateSimulator(logger))
                .use_iterative_mode(iterations)
                .use_default_stages())

    # --- Strategy & topology ---
    def use_plate_simulator(self, simulator: PlateSimulator) -> "PipelineBuilder":
        if not isinstance(simulator, PlateSimulator):
            raise ConfigurationError(f"Expected a PlateSimulator, got {type(simulator).__name__}")
        self._simulator = simulator
        return self

    def use_single_pass_mode(self) -> "PipelineBuilder":
        self._mode = PipelineMode.SINGLE_PASS
        self._iterations = None
        return self

    def use_iterative_mode(self, iterations: int = None) -> "PipelineBuilder":
        """Selects the feedback topology. Without `iterations`, each run uses its params' count."""
        if iterations is not None and iterations < 1:
            raise ConfigurationError(f"Iterative mode needs at least 1 iteration, got {iterations}")
        self._mode = PipelineMode.ITERATIVE
        self._iterations = iterations
        return self

    def use_mode(self, mode, iterations: int = None) -> "PipelineBuilder":
        if PipelineMode.parse(mode) is PipelineMode.ITERATIVE:
            return self.use_iterative_mode(iterations)
        return self.use_single_pass_mode()

    # --- Stage list ---
    def use_default_stages(self) -> "PipelineBuilder":
        """Foundation, climate, erosion and analysis stages, replacing any set so far."""
        self._foundation_stages = []
        self._climate_stages = default_climate_stages(self.logger)
        self._erosion_stage = ErosionStage(self.logger)
        self._analysis_stages = [AnalysisStage(self.logger)]
        return self

    def add_foundation_stage(self, stage: PipelineStage) -> "PipelineBuilder":
        self._foundation_stages.append(stage)
        return self

    def add_climate_stage(self, stage: PipelineStage) -> "PipelineBuilder":
        self._climate_stages.append(stage)
        return self

    def use_erosion_stage(self, stage: PipelineStage = None) -> "PipelineBuilder":
        """Sets the erosion slot. None leaves the slot empty."""
        self._erosion_stage = stage
        return self

    def add_analysis_stage(self, stage: PipelineStage) -> "PipelineBuilder":
        self._analysis_stages.append(stage)
        return self

    def build(self) -> WorldPipeline:
        # 1. Foundation: explicit stages win, otherwise derive them from the simulator.
        foundation = list(self._foundation_stages)
        if not foundation:
            if self._simulator is None:
                raise ConfigurationError("Pipeline needs a plate simulator or explicit foundation stages")
            foundation = default_foundation_stages(self._simulator, self.logger)

        # 2. Topology-specific checks.
        all_stages = foundation + self._climate_stages + self._analysis_stages
        if self._erosion_stage is not None:
            all_stages.append(self._erosion_stage)
        for stage in all_stages:
            if not isinstance(stage, PipelineStage):
                raise ConfigurationError(f"Not a pipeline stage: {stage!r}")

        if self._mode is PipelineMode.ITERATIVE:
            if not self._climate_stages:
                raise ConfigurationError("Iterative mode needs at least one climate stage to iterate")
            pipeline = IterativePipeline(
                foundation, self._climate_stages, self._erosion_stage, self._analysis_stages,
                iterations=self._iterations, logger=self.logger,
            )
        else:
            pipeline = SinglePassPipeline(
                foundation, self._climate_stages, self._erosion_stage, self._analysis_stages, logger=self.logger,
            )

        self.logger.debug(f"Built {type(pipeline).__name__} with {len(pipeline.stages)} stages")
        return pipeline
