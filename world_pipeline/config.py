# world_pipeline/config.py

"""
================================================================================
INTERNAL DEFAULT CONFIGURATION
================================================================================
This module contains the default, fallback internal constants for the world
generation pipeline. These values are used if they are not explicitly
provided by the user's configuration.

DO NOT MODIFY THIS FILE FOR A SPECIFIC SIMULATION.
Instead, pass a configuration dictionary to the WorldGenerator instance.
================================================================================
"""

# --- Seeds ---
DEFAULT_SEED = 1337
# Large prime numbers used to offset seeds for different layers, ensuring
# they are unique but deterministic from the master seed.
THRESHOLD_SAMPLE_SEED_OFFSET = 7919
TEMPERATURE_NOISE_SEED_OFFSET = 12347
PRECIPITATION_NOISE_SEED_OFFSET = 31337
PRECIPITATION_SAMPLE_SEED_OFFSET = 15731
TECTONIC_PLATE_SEED_OFFSET = 54321
PLATE_RELIEF_SEED_OFFSET = 98761
EROSION_SAMPLE_SEED_OFFSET = 25391

# --- World Shape ---
DEFAULT_MAP_SIZE = 512
DEFAULT_PLATE_COUNT = 10

# --- Raw Elevation Units ---
# The plate simulation produces elevation in RAW units, roughly [0.1, 20].
# Every unit conversion pivots on this single value.
SEA_LEVEL_RAW = 1.0
RAW_ELEVATION_MIN = 0.1
RAW_ELEVATION_MAX = 20.0

# Real-world reference points for RAW -> meters conversion.
OCEAN_FLOOR_METERS = -11000.0  # Mariana Trench
SEA_LEVEL_METERS = 0.0
HIGHEST_PEAK_METERS = 8849.0  # Everest

# --- Plate Simulation ---
DEFAULT_SIMULATION_SEA_LEVEL = 0.65  # Target ocean fraction, not an elevation.
DEFAULT_EROSION_PERIOD = 60
DEFAULT_FOLDING_RATIO = 0.02
DEFAULT_AGGR_OVERLAP_ABS = 1000000
DEFAULT_AGGR_OVERLAP_REL = 0.33
DEFAULT_CYCLE_COUNT = 2
MAX_SIMULATION_STEPS = 10000

# Native library discovery. The platform directories mirror the layout the
# native build drops its artifacts into.
NATIVE_LIBRARY_NAME = "PlateTectonics"
NATIVE_LIBRARY_ENV_VAR = "PLATE_TECTONICS_LIBRARY"
NATIVE_LIBRARY_DIR = "native"

# Managed (Voronoi) simulation. One "cycle" is this many lithosphere steps.
STEPS_PER_CYCLE = 120
PLATE_INFLUENCE_RADIUS_FRACTION = 0.04  # Fraction of the map size.
CONTINENTAL_BASE_RAW = 2.2
OCEANIC_BASE_RAW = 0.45
PLATE_RELIEF_FEATURE_SCALE = 4.0  # Features across the map.
PLATE_RELIEF_OCTAVES = 6
PLATE_RELIEF_AMPLITUDE_RAW = 0.9
UPLIFT_PER_STEP_RAW = 2.0  # Scaled by the folding ratio.
TRENCH_DEPTH_FACTOR = 0.5
RIFT_DEPTH_FACTOR = 0.25
LITHOSPHERE_DIFFUSION_RATE = 0.25

# --- Elevation Post-Processing ---
THRESHOLD_SAMPLE_COUNT = 10000
SEA_LEVEL_PERCENTILE = 0.50
HILL_LEVEL_PERCENTILE = 0.75
MOUNTAIN_LEVEL_PERCENTILE = 0.90
PEAK_LEVEL_PERCENTILE = 0.98
# Spread used when every sampled cell has the same elevation.
FLAT_WORLD_EPSILON = 1e-3

GAUSSIAN_KERNEL_RADIUS = 2  # 5x5 kernel.
GAUSSIAN_SIGMA = 1.0
OCEAN_HARMONIZE_FACTOR = 0.3
SEA_DEPTH_EPSILON = 1e-6

# --- Temperature ---
TEMPERATURE_NOISE_OCTAVES = 8
TEMPERATURE_NOISE_FEATURE_SCALE = 8.0  # Features across the map.
TEMPERATURE_LATITUDE_WEIGHT = 12.0
TEMPERATURE_NOISE_WEIGHT = 1.0
MOUNTAIN_COOLING_RANGE_RAW = 30.0
MOUNTAIN_COOLING_FLOOR = 0.033

# Orbital parameter draws. Gaussian widths are given as half width at half
# maximum, matching how the original climate tables were authored.
AXIAL_TILT_HWHM = 0.07
AXIAL_TILT_LIMIT = 0.5
DISTANCE_TO_SUN_MEAN = 1.0
DISTANCE_TO_SUN_HWHM = 0.12
DISTANCE_TO_SUN_FLOOR = 0.1
HWHM_TO_SIGMA = 1.177410023  # sqrt(2 ln 2)

# --- Precipitation ---
PRECIPITATION_NOISE_OCTAVES = 6
PRECIPITATION_NOISE_FEATURE_SCALE = 2.67
PRECIPITATION_GAMMA = 2.0
PRECIPITATION_CURVE_BONUS = 0.2
PRECIPITATION_MIN_SPREAD = 1e-6
PRECIPITATION_LOW_PERCENTILE = 0.30
PRECIPITATION_MEDIUM_PERCENTILE = 0.70
PRECIPITATION_HIGH_PERCENTILE = 0.95

# --- Rain Shadow ---
RAIN_SHADOW_MAX_UPWIND_CELLS = 20
RAIN_SHADOW_BLOCKING_PER_CELL = 0.05
RAIN_SHADOW_MIN_FACTOR = 0.2
RAIN_SHADOW_MARGIN_FRACTION = 0.05
POLAR_CIRCLE_LATITUDE = 60.0
HORSE_LATITUDE = 30.0

# --- Coastal Moisture ---
COASTAL_MAX_BONUS = 0.8
COASTAL_DECAY_RANGE = 30.0
COASTAL_ELEVATION_RESISTANCE = 0.02

# --- Erosion ---
EROSION_RATE = 0.08
EROSION_DEPOSITION_BLEND = 0.25
EROSION_DEFAULT_PRECIPITATION = 0.5

# --- Pipeline Presets ---
DEFAULT_PIPELINE_MODE = "single_pass"
DEFAULT_ITERATION_COUNT = 3
MAX_PRESET_ITERATIONS = 5
