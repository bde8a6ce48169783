# world_pipeline/__init__.py

# Public API of the world generation pipeline.

from .builder import PipelineBuilder
from .context import PipelineContext, WorldGenerationResult
from .errors import (
    ConfigurationError,
    GenerationCancelled,
    MarshalSizeMismatch,
    NativeCreateFailed,
    NativeLibraryNotFound,
    NativeSimulationError,
    NonConvergence,
    StageExecutionError,
    WorldGenError,
)
from .generator import WorldGenerator
from .native import NativePlateSimulator
from .params import (
    ClimateParams,
    ElevationThresholds,
    GenerationParams,
    PipelineMode,
    PlateSimulationParams,
    PrecipitationThresholds,
    SimulationResult,
)
from .pipeline import CancellationToken, IterativePipeline, SinglePassPipeline
from .plate_simulator import PlateSimulator, VoronoiPlateSimulator
from .stages import PipelineStage

__all__ = [
    "PipelineBuilder",
    "PipelineContext",
    "WorldGenerationResult",
    "WorldGenerator",
    "GenerationParams",
    "ClimateParams",
    "PlateSimulationParams",
    "ElevationThresholds",
    "PrecipitationThresholds",
    "SimulationResult",
    "PipelineMode",
    "PipelineStage",
    "SinglePassPipeline",
    "IterativePipeline",
    "CancellationToken",
    "PlateSimulator",
    "VoronoiPlateSimulator",
    "NativePlateSimulator",
    "WorldGenError",
    "ConfigurationError",
    "NativeSimulationError",
    "NativeLibraryNotFound",
    "NativeCreateFailed",
    "MarshalSizeMismatch",
    "NonConvergence",
    "StageExecutionError",
    "GenerationCancelled",
]
