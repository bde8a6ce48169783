# world_pipeline/errors.py

"""
================================================================================
PIPELINE ERRORS
================================================================================
Every failure the pipeline can report is one of these exception types.
Stages and adapters raise them; orchestrators attach the name of the failing
stage and re-raise. Nothing in the pipeline catches one and continues.
================================================================================
"""


class WorldGenError(Exception):
    """Base class for every world generation failure."""

    def __init__(self, message: str, stage_name: str = None):
        super().__init__(message)
        self.message = message
        self.stage_name = stage_name

    def __str__(self):
        if self.stage_name:
            return f"[{self.stage_name}] {self.message}"
        return self.message


class ConfigurationError(WorldGenError):
    """Parameters were rejected before any stage ran."""


class NativeSimulationError(WorldGenError):
    """The plate simulation failed."""


class NativeLibraryNotFound(NativeSimulationError):
    pass


class NativeCreateFailed(NativeSimulationError):
    pass


class MarshalSizeMismatch(NativeSimulationError):
    pass


class NonConvergence(NativeSimulationError):
    pass


class StageExecutionError(WorldGenError):
    """A stage could not produce its outputs."""


class GenerationCancelled(WorldGenError):
    """The caller cancelled the generation between two stages."""
