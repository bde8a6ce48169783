# world_pipeline/pipeline.py

"""
================================================================================
PIPELINE ORCHESTRATORS
================================================================================
Two explicit resolutions of the circular elevation <-> climate dependency:

    - SinglePassPipeline: foundation -> climate -> erosion -> analysis.
      Climate is computed from pre-erosion terrain.
    - IterativePipeline: foundation -> [erosion -> climate] x N -> analysis.
      Each round's climate responds to that round's eroded terrain.

Data Contract:
---------------
- Inputs:
    - GenerationParams.
    - cancel_token (CancellationToken, optional): checked between stages.
    - progress (callable, optional): called as progress(stage_name,
      completed, total) after every stage.
- Outputs:
    - WorldGenerationResult.
- Side Effects: Logs stage lifecycle and timings.
- Errors: The first failing stage halts the run. The raised WorldGenError
  carries the failing stage's name; unexpected exceptions are wrapped in
  StageExecutionError. No partial result is returned.
================================================================================
"""

import logging
import threading
import time
from typing import Callable, Optional

from .context import PipelineContext, WorldGenerationResult
from .errors import ConfigurationError, GenerationCancelled, StageExecutionError, WorldGenError
from .params import GenerationParams, PipelineMode

ProgressCallback = Callable[[str, int, int], None]


class CancellationToken:
    """Thread-safe flag a caller can set to stop a generation between stages."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, next_stage: str = None):
        if self._event.is_set():
            raise GenerationCancelled("Generation was cancelled", next_stage)


class WorldPipeline:
    """Shared stage execution; subclasses decide the schedule."""

    mode: PipelineMode = None

    def __init__(self, foundation_stages, climate_stages, erosion_stage=None, analysis_stages=(),
                 logger: logging.Logger = None):
        self.foundation_stages = list(foundation_stages)
        self.climate_stages = list(climate_stages)
        self.erosion_stage = erosion_stage
        self.analysis_stages = list(analysis_stages)
        self.logger = logger or logging.getLogger(__name__)

    @property
    def stages(self) -> list:
        stages = self.foundation_stages + self.climate_stages
        if self.erosion_stage is not None:
            stages.append(self.erosion_stage)
        return stages + self.analysis_stages

    def schedule(self, params: GenerationParams) -> list:
        """Ordered (stage, iteration_index) pairs for one run."""
        raise NotImplementedError

    def run(self, params: GenerationParams, cancel_token: Optional[CancellationToken] = None,
            progress: Optional[ProgressCallback] = None) -> WorldGenerationResult:
        # 1. Validate before touching any stage.
        params.validate()
        schedule = self.schedule(params)

        self.logger.info(
            f"Generating world: seed={params.seed}, size={params.map_size}, "
            f"plates={params.plate_count}, mode={self.mode.value}, stages={len(schedule)}"
        )
        start_time = time.perf_counter()

        # 2. Thread one context through every stage.
        context = PipelineContext.create(params)
        for completed, (stage, iteration_index) in enumerate(schedule, start=1):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(stage.name)
            context = self._run_stage(stage, context, iteration_index)
            if progress is not None:
                progress(stage.name, completed, len(schedule))

        duration = time.perf_counter() - start_time
        self.logger.info(f"World generation complete in {duration:.2f}s")
        return WorldGenerationResult.from_context(context)

    def _run_stage(self, stage, context: PipelineContext, iteration_index: int) -> PipelineContext:
        start_time = time.perf_counter()
        try:
            new_context = stage.execute(context, iteration_index)
        except WorldGenError as e:
            if e.stage_name is None:
                e.stage_name = stage.name
            self.logger.error(f"Stage '{stage.name}' failed: {e.message}")
            raise
        except Exception as e:
            self.logger.error(f"Stage '{stage.name}' raised {type(e).__name__}: {e}")
            raise StageExecutionError(f"Unexpected {type(e).__name__}: {e}", stage.name) from e

        if not isinstance(new_context, PipelineContext):
            raise StageExecutionError("Stage did not return a PipelineContext", stage.name)

        self.logger.debug(f"Stage '{stage.name}' finished in {time.perf_counter() - start_time:.3f}s")
        return new_context


class SinglePassPipeline(WorldPipeline):
    mode = PipelineMode.SINGLE_PASS

    def schedule(self, params):
        schedule = [(stage, 0) for stage in self.foundation_stages]
        schedule += [(stage, 0) for stage in self.climate_stages]
        if self.erosion_stage is not None:
            schedule.append((self.erosion_stage, 0))
        schedule += [(stage, 0) for stage in self.analysis_stages]
        return schedule


class IterativePipeline(WorldPipeline):
    mode = PipelineMode.ITERATIVE

    def __init__(self, foundation_stages, climate_stages, erosion_stage=None, analysis_stages=(),
                 iterations: int = None, logger: logging.Logger = None):
        super().__init__(foundation_stages, climate_stages, erosion_stage, analysis_stages, logger)
        if iterations is not None and iterations < 1:
            raise ConfigurationError(f"Iterative pipeline needs at least 1 iteration, got {iterations}")
        self.iterations = iterations

    def schedule(self, params):
        iterations = self.iterations or params.iteration_count
        if iterations < 1:
            raise ConfigurationError(f"Iterative pipeline needs at least 1 iteration, got {iterations}")

        schedule = [(stage, 0) for stage in self.foundation_stages]
        for iteration in range(1, iterations + 1):
            if self.erosion_stage is not None:
                schedule.append((self.erosion_stage, iteration))
            schedule += [(stage, iteration) for stage in self.climate_stages]
        schedule += [(stage, 0) for stage in self.analysis_stages]
        return schedule
