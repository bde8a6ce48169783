# world_pipeline/params.py

"""
================================================================================
GENERATION PARAMETERS & VALUE TYPES
================================================================================
Immutable records exchanged between the pipeline components.

Data Contract:
---------------
- Inputs: Plain Python values (ints, floats, enums) or a seed.
- Outputs: Frozen dataclasses, validated on construction.
- Side Effects: None.
- Invariants:
    - A GenerationParams instance always has map_size > 0 and plate_count > 0.
    - Threshold records are always ordered (sea <= hill <= mountain <= peak,
      low <= medium <= high).
================================================================================
"""

import enum
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from . import config as DEFAULTS
from .errors import ConfigurationError


class PipelineMode(enum.Enum):
    SINGLE_PASS = "single_pass"
    ITERATIVE = "iterative"

    @classmethod
    def parse(cls, value) -> "PipelineMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower().replace("-", "_"))
        except ValueError:
            choices = ", ".join(m.value for m in cls)
            raise ConfigurationError(f"Unknown pipeline mode '{value}' (expected one of: {choices})") from None


def _sample_gaussian(rng: np.random.Generator, mean: float, hwhm: float) -> float:
    """Draws from a normal distribution described by its half width at half maximum."""
    return float(rng.normal(mean, hwhm / DEFAULTS.HWHM_TO_SIGMA))


@dataclass(frozen=True)
class ClimateParams:
    """
    Orbital parameters that shape the temperature field.

    `distance_to_sun` is already squared (inverse-square law applied at draw
    time), so the temperature model divides by it directly.
    """
    axial_tilt: float = 0.0
    distance_to_sun: float = 1.0

    def __post_init__(self):
        if not -DEFAULTS.AXIAL_TILT_LIMIT <= self.axial_tilt <= DEFAULTS.AXIAL_TILT_LIMIT:
            raise ConfigurationError(
                f"axial_tilt must be within [-{DEFAULTS.AXIAL_TILT_LIMIT}, {DEFAULTS.AXIAL_TILT_LIMIT}], got {self.axial_tilt}"
            )
        if not self.distance_to_sun > 0:
            raise ConfigurationError(f"distance_to_sun must be positive, got {self.distance_to_sun}")

    @classmethod
    def from_seed(cls, seed: int) -> "ClimateParams":
        """Draws a randomized but deterministic set of orbital parameters."""
        rng = np.random.default_rng(seed)
        tilt = _sample_gaussian(rng, 0.0, DEFAULTS.AXIAL_TILT_HWHM)
        tilt = min(DEFAULTS.AXIAL_TILT_LIMIT, max(-DEFAULTS.AXIAL_TILT_LIMIT, tilt))

        distance = _sample_gaussian(rng, DEFAULTS.DISTANCE_TO_SUN_MEAN, DEFAULTS.DISTANCE_TO_SUN_HWHM)
        distance = max(DEFAULTS.DISTANCE_TO_SUN_FLOOR, distance)
        return cls(axial_tilt=tilt, distance_to_sun=distance * distance)


@dataclass(frozen=True)
class PlateSimulationParams:
    """Everything the plate simulator needs for one run."""
    seed: int
    map_size: int = DEFAULTS.DEFAULT_MAP_SIZE
    plate_count: int = DEFAULTS.DEFAULT_PLATE_COUNT
    sea_level: float = DEFAULTS.DEFAULT_SIMULATION_SEA_LEVEL
    erosion_period: int = DEFAULTS.DEFAULT_EROSION_PERIOD
    folding_ratio: float = DEFAULTS.DEFAULT_FOLDING_RATIO
    aggr_overlap_abs: int = DEFAULTS.DEFAULT_AGGR_OVERLAP_ABS
    aggr_overlap_rel: float = DEFAULTS.DEFAULT_AGGR_OVERLAP_REL
    cycle_count: int = DEFAULTS.DEFAULT_CYCLE_COUNT
    max_steps: int = DEFAULTS.MAX_SIMULATION_STEPS

    def __post_init__(self):
        if self.map_size <= 0:
            raise ConfigurationError(f"map_size must be positive, got {self.map_size}")
        if self.plate_count <= 0:
            raise ConfigurationError(f"plate_count must be positive, got {self.plate_count}")
        if not 0.0 < self.sea_level < 1.0:
            raise ConfigurationError(f"sea_level must be an ocean fraction in (0, 1), got {self.sea_level}")
        if self.erosion_period <= 0:
            raise ConfigurationError(f"erosion_period must be positive, got {self.erosion_period}")
        if self.folding_ratio < 0:
            raise ConfigurationError(f"folding_ratio must not be negative, got {self.folding_ratio}")
        if self.cycle_count <= 0:
            raise ConfigurationError(f"cycle_count must be positive, got {self.cycle_count}")
        if self.max_steps <= 0:
            raise ConfigurationError(f"max_steps must be positive, got {self.max_steps}")


@dataclass(frozen=True)
class GenerationParams:
    """
    The full input record of one world generation.

    Args:
        seed (int): Master seed. Same seed and parameters give identical output.
        map_size (int): Side length of the square map, in cells.
        plate_count (int): Number of tectonic plates.
        climate (ClimateParams, optional): Orbital parameters. When omitted, a
            set is drawn once from the seed.
        pipeline_mode (PipelineMode): Single pass or iterative feedback.
        iteration_count (int): Feedback rounds; ignored in single pass mode.
    """
    seed: int
    map_size: int = DEFAULTS.DEFAULT_MAP_SIZE
    plate_count: int = DEFAULTS.DEFAULT_PLATE_COUNT
    climate: Optional[ClimateParams] = None
    pipeline_mode: PipelineMode = PipelineMode.SINGLE_PASS
    iteration_count: int = DEFAULTS.DEFAULT_ITERATION_COUNT

    # Plate simulation tuning.
    sea_level: float = DEFAULTS.DEFAULT_SIMULATION_SEA_LEVEL
    erosion_period: int = DEFAULTS.DEFAULT_EROSION_PERIOD
    folding_ratio: float = DEFAULTS.DEFAULT_FOLDING_RATIO
    aggr_overlap_abs: int = DEFAULTS.DEFAULT_AGGR_OVERLAP_ABS
    aggr_overlap_rel: float = DEFAULTS.DEFAULT_AGGR_OVERLAP_REL
    cycle_count: int = DEFAULTS.DEFAULT_CYCLE_COUNT
    max_steps: int = DEFAULTS.MAX_SIMULATION_STEPS

    def __post_init__(self):
        # Frozen dataclass: normalize the mode through object.__setattr__.
        object.__setattr__(self, "pipeline_mode", PipelineMode.parse(self.pipeline_mode))
        self.validate()

    def validate(self):
        if not isinstance(self.map_size, (int, np.integer)) or self.map_size <= 0:
            raise ConfigurationError(f"map_size must be a positive integer, got {self.map_size!r}")
        if not isinstance(self.plate_count, (int, np.integer)) or self.plate_count <= 0:
            raise ConfigurationError(f"plate_count must be a positive integer, got {self.plate_count!r}")
        if self.pipeline_mode is PipelineMode.ITERATIVE and self.iteration_count < 1:
            raise ConfigurationError(f"iteration_count must be at least 1, got {self.iteration_count}")

    def resolve_climate(self) -> ClimateParams:
        """Returns the caller's climate parameters, or draws them from the seed."""
        if self.climate is not None:
            return self.climate
        return ClimateParams.from_seed(self.seed)

    def plate_simulation_params(self) -> PlateSimulationParams:
        return PlateSimulationParams(
            seed=self.seed,
            map_size=self.map_size,
            plate_count=self.plate_count,
            sea_level=self.sea_level,
            erosion_period=self.erosion_period,
            folding_ratio=self.folding_ratio,
            aggr_overlap_abs=self.aggr_overlap_abs,
            aggr_overlap_rel=self.aggr_overlap_rel,
            cycle_count=self.cycle_count,
            max_steps=self.max_steps,
        )


@dataclass(frozen=True)
class ElevationThresholds:
    """Quantile-derived elevation levels, in RAW units."""
    sea_level: float
    hill_level: float
    mountain_level: float
    peak_level: float

    def __post_init__(self):
        levels = (self.sea_level, self.hill_level, self.mountain_level, self.peak_level)
        if not all(np.isfinite(levels)):
            raise ValueError(f"Elevation thresholds must be finite: {levels}")
        if not (self.sea_level <= self.hill_level <= self.mountain_level <= self.peak_level):
            raise ValueError(f"Elevation thresholds out of order: {levels}")

    def as_dict(self) -> dict:
        return {
            "sea_level": self.sea_level,
            "hill_level": self.hill_level,
            "mountain_level": self.mountain_level,
            "peak_level": self.peak_level,
        }


@dataclass(frozen=True)
class PrecipitationThresholds:
    """Quantile-derived precipitation levels on the normalized [0, 1] scale."""
    low: float
    medium: float
    high: float

    def __post_init__(self):
        if not (self.low <= self.medium <= self.high):
            raise ValueError(f"Precipitation thresholds out of order: {(self.low, self.medium, self.high)}")

    def as_dict(self) -> dict:
        return {"low": self.low, "medium": self.medium, "high": self.high}


@dataclass(frozen=True)
class SimulationResult:
    """
    Raw output of a plate simulator run. metadata carries simulator-specific
    diagnostics. Both built-in simulators record "duration_seconds"; the
    managed one adds "continental_plates" and the native one "library_path".
    """
    heightmap: np.ndarray
    plates_map: np.ndarray
    steps: int = 0
    simulator: str = ""
    metadata: dict = field(default_factory=dict)
