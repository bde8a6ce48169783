# world_pipeline/context.py

"""
================================================================================
PIPELINE CONTEXT & RESULT
================================================================================
The immutable record threaded through the stages, and the final result
assembled from it.

Data Contract:
---------------
- PipelineContext:
    - Created once per generation from GenerationParams.
    - evolve() returns a new context that is a superset of the old one.
    - Arrays stored in a context are read-only views.
    - A field written by one stage may only be rewritten by that same stage
      (feedback loops re-run stages).
    - Every populated map has shape (map_size, map_size).
- WorldGenerationResult:
    - The externally visible output. to_dict() returns plain Python data.
================================================================================
"""

import dataclasses
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

import numpy as np

from .errors import StageExecutionError
from .params import (
    ClimateParams,
    ElevationThresholds,
    GenerationParams,
    PlateSimulationParams,
    PrecipitationThresholds,
    SimulationResult,
)

# Fields stages are allowed to write.
STAGE_FIELDS = (
    "raw_heightmap",
    "plates_map",
    "simulation",
    "post_processed_heightmap",
    "thresholds",
    "ocean_mask",
    "sea_depth",
    "min_elevation",
    "max_elevation",
    "temperature_latitude_only",
    "temperature_with_noise",
    "temperature_with_distance",
    "temperature_final",
    "base_noise_precipitation",
    "temperature_shaped_precipitation",
    "base_precipitation",
    "precipitation_thresholds",
    "rain_shadow_factor",
    "rain_shadow_precipitation",
    "distance_to_ocean",
    "precipitation_final",
    "final_precipitation_thresholds",
    "eroded_heightmap",
    "eroded_thresholds",
    "eroded_ocean_mask",
    "eroded_sea_depth",
    "eroded_min_elevation",
    "eroded_max_elevation",
    "erosion_passes",
    "statistics",
)


def _read_only(value):
    if isinstance(value, np.ndarray):
        view = value.view()
        view.flags.writeable = False
        return view
    return value


@dataclass(frozen=True, eq=False)
class PipelineContext:
    seed: int
    map_size: int
    plate_count: int
    climate: ClimateParams
    iteration_count: int = 1
    plate_params: Optional[PlateSimulationParams] = None

    # Foundation
    raw_heightmap: Optional[np.ndarray] = None
    plates_map: Optional[np.ndarray] = None
    simulation: Optional[SimulationResult] = None
    post_processed_heightmap: Optional[np.ndarray] = None
    thresholds: Optional[ElevationThresholds] = None
    ocean_mask: Optional[np.ndarray] = None
    sea_depth: Optional[np.ndarray] = None
    min_elevation: Optional[float] = None
    max_elevation: Optional[float] = None

    # Temperature
    temperature_latitude_only: Optional[np.ndarray] = None
    temperature_with_noise: Optional[np.ndarray] = None
    temperature_with_distance: Optional[np.ndarray] = None
    temperature_final: Optional[np.ndarray] = None

    # Precipitation
    base_noise_precipitation: Optional[np.ndarray] = None
    temperature_shaped_precipitation: Optional[np.ndarray] = None
    base_precipitation: Optional[np.ndarray] = None
    precipitation_thresholds: Optional[PrecipitationThresholds] = None
    rain_shadow_factor: Optional[np.ndarray] = None
    rain_shadow_precipitation: Optional[np.ndarray] = None
    distance_to_ocean: Optional[np.ndarray] = None
    precipitation_final: Optional[np.ndarray] = None
    final_precipitation_thresholds: Optional[PrecipitationThresholds] = None

    # Erosion
    eroded_heightmap: Optional[np.ndarray] = None
    eroded_thresholds: Optional[ElevationThresholds] = None
    eroded_ocean_mask: Optional[np.ndarray] = None
    eroded_sea_depth: Optional[np.ndarray] = None
    eroded_min_elevation: Optional[float] = None
    eroded_max_elevation: Optional[float] = None
    erosion_passes: int = 0

    # Analysis
    statistics: Optional[Any] = None

    owners: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def create(cls, params: GenerationParams, climate: ClimateParams = None) -> "PipelineContext":
        return cls(
            seed=params.seed,
            map_size=params.map_size,
            plate_count=params.plate_count,
            climate=climate or params.resolve_climate(),
            iteration_count=params.iteration_count,
            plate_params=params.plate_simulation_params(),
        )

    def evolve(self, stage_name: str, **fields) -> "PipelineContext":
        """Returns a new context with `fields` layered on top of this one."""
        unknown = sorted(set(fields) - set(STAGE_FIELDS))
        if unknown:
            raise StageExecutionError(f"Unknown context field(s): {', '.join(unknown)}", stage_name)

        owners = dict(self.owners)
        for name in fields:
            owner = owners.get(name)
            if owner is not None and owner != stage_name:
                raise StageExecutionError(
                    f"Field '{name}' was produced by stage '{owner}' and cannot be overwritten", stage_name
                )
            owners[name] = stage_name

        expected_shape = (self.map_size, self.map_size)
        for name, value in fields.items():
            if isinstance(value, np.ndarray) and value.shape != expected_shape:
                raise StageExecutionError(
                    f"Field '{name}' has shape {value.shape}, expected {expected_shape}", stage_name
                )

        frozen = {name: _read_only(value) for name, value in fields.items()}
        return dataclasses.replace(self, owners=MappingProxyType(owners), **frozen)

    # --- Current terrain: the eroded variant once erosion has run ---
    @property
    def elevation(self) -> Optional[np.ndarray]:
        if self.eroded_heightmap is not None:
            return self.eroded_heightmap
        return self.post_processed_heightmap

    @property
    def current_ocean_mask(self) -> Optional[np.ndarray]:
        if self.eroded_ocean_mask is not None:
            return self.eroded_ocean_mask
        return self.ocean_mask

    @property
    def current_thresholds(self) -> Optional[ElevationThresholds]:
        if self.eroded_thresholds is not None:
            return self.eroded_thresholds
        return self.thresholds

    @property
    def current_precipitation_thresholds(self) -> Optional[PrecipitationThresholds]:
        if self.final_precipitation_thresholds is not None:
            return self.final_precipitation_thresholds
        return self.precipitation_thresholds

    @property
    def current_sea_depth(self) -> Optional[np.ndarray]:
        if self.eroded_sea_depth is not None:
            return self.eroded_sea_depth
        return self.sea_depth

    @property
    def current_min_elevation(self) -> Optional[float]:
        if self.eroded_min_elevation is not None:
            return self.eroded_min_elevation
        return self.min_elevation

    @property
    def current_max_elevation(self) -> Optional[float]:
        if self.eroded_max_elevation is not None:
            return self.eroded_max_elevation
        return self.max_elevation

    def populated_maps(self) -> dict:
        """All populated float/bool maps, by field name."""
        maps = {}
        for name in STAGE_FIELDS:
            value = getattr(self, name)
            if isinstance(value, np.ndarray):
                maps[name] = value
        return maps


def _plain(value):
    if isinstance(value, np.ndarray):
        return value.tolist()
    if dataclasses.is_dataclass(value):
        return {k: _plain(v) for k, v in dataclasses.asdict(value).items()}
    if isinstance(value, np.generic):
        return value.item()
    return value


@dataclass(frozen=True, eq=False)
class WorldGenerationResult:
    seed: int
    map_size: int
    original_heightmap: np.ndarray
    heightmap: np.ndarray
    post_processed_heightmap: np.ndarray
    ocean_mask: np.ndarray
    sea_depth: np.ndarray
    thresholds: ElevationThresholds
    plates_map: np.ndarray
    temperature: np.ndarray
    precipitation: np.ndarray
    precipitation_thresholds: PrecipitationThresholds
    climate: ClimateParams
    min_elevation: float
    max_elevation: float
    eroded_heightmap: Optional[np.ndarray] = None
    statistics: Optional[Any] = None
    debug_maps: Mapping[str, np.ndarray] = field(default_factory=dict)

    @classmethod
    def from_context(cls, context: PipelineContext) -> "WorldGenerationResult":
        debug_names = (
            "temperature_latitude_only",
            "temperature_with_noise",
            "temperature_with_distance",
            "base_noise_precipitation",
            "temperature_shaped_precipitation",
            "base_precipitation",
            "rain_shadow_factor",
            "rain_shadow_precipitation",
            "distance_to_ocean",
        )
        debug_maps = {name: getattr(context, name) for name in debug_names if getattr(context, name) is not None}
        return cls(
            seed=context.seed,
            map_size=context.map_size,
            original_heightmap=context.raw_heightmap,
            heightmap=context.elevation,
            post_processed_heightmap=context.post_processed_heightmap,
            ocean_mask=context.current_ocean_mask,
            sea_depth=context.current_sea_depth,
            thresholds=context.current_thresholds,
            plates_map=context.plates_map,
            temperature=context.temperature_final,
            precipitation=context.precipitation_final,
            precipitation_thresholds=context.current_precipitation_thresholds,
            climate=context.climate,
            min_elevation=context.current_min_elevation,
            max_elevation=context.current_max_elevation,
            eroded_heightmap=context.eroded_heightmap,
            statistics=context.statistics,
            debug_maps=MappingProxyType(debug_maps),
        )

    def to_dict(self, include_debug_maps: bool = False) -> dict:
        """Plain-data view of the result for external serializers."""
        data = {}
        for f in dataclasses.fields(self):
            if f.name == "debug_maps":
                continue
            data[f.name] = _plain(getattr(self, f.name))
        if include_debug_maps:
            data["debug_maps"] = {name: _plain(value) for name, value in self.debug_maps.items()}
        return data
