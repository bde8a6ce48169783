# world_pipeline/tectonics.py

"""
================================================================================
TECTONIC PLATE SIMULATION (MANAGED)
================================================================================
This module provides a pure NumPy/SciPy plate simulation. Plates are Voronoi
cells around seeded centre points; each plate is continental or oceanic and
drifts with a constant velocity. Convergent boundaries fold upwards into
mountain ranges (or sink into trenches where ocean meets continent),
divergent boundaries open rifts, and land relief is periodically diffused.

The simulation is stepped like the native lithosphere: create, step until
finished, read the heightmap and plates map.

Data Contract:
---------------
- Inputs:
    - PlateSimulationParams (seed, map size, plate count, folding ratio,
      erosion period, cycle count, target ocean fraction).
- Outputs:
    - heightmap (np.ndarray): float64 elevation in RAW units, clamped to
      [RAW_ELEVATION_MIN, RAW_ELEVATION_MAX]. The target ocean fraction of
      cells lies below SEA_LEVEL_RAW.
    - plates_map (np.ndarray): uint32 plate id per cell.
- Side Effects: None.
- Invariants: Given the same parameters, the output is bit-identical.
================================================================================
"""
import numpy as np
from scipy.spatial import cKDTree
from scipy.ndimage import uniform_filter

from . import config as DEFAULTS
from . import noise


def generate_plate_points(width: float, height: float, num_plates: int, seed: int) -> np.ndarray:
    """Generates the center points for tectonic plates deterministically."""
    rng = np.random.default_rng(seed)
    points_x = rng.uniform(0, width, num_plates)
    points_y = rng.uniform(0, height, num_plates)
    return np.column_stack((points_x, points_y))


def get_voronoi_data(plate_points: np.ndarray, height: int, width: int) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Assigns every cell centre to its nearest plate.

    Returns the nearest plate id, the second-nearest plate id, and the
    distances to both. With a single plate the second plate is the first one
    and its distance is infinite (no boundaries anywhere).
    """
    ys, xs = np.mgrid[0:height, 0:width]
    query_points = np.column_stack(((xs + 0.5).ravel(), (ys + 0.5).ravel()))
    tree = cKDTree(plate_points)

    if len(plate_points) == 1:
        dist, indices = tree.query(query_points, k=1)
        plate_ids = indices.reshape(height, width)
        return plate_ids, plate_ids.copy(), dist.reshape(height, width), np.full((height, width), np.inf)

    dist, indices = tree.query(query_points, k=2)
    plate_ids = indices[:, 0].reshape(height, width)
    neighbour_ids = indices[:, 1].reshape(height, width)
    dist1 = dist[:, 0].reshape(height, width)
    dist2 = dist[:, 1].reshape(height, width)
    return plate_ids, neighbour_ids, dist1, dist2


def calculate_influence_map(dist1: np.ndarray, dist2: np.ndarray, influence_radius: float) -> np.ndarray:
    """
    Calculates the boundary influence map from pre-computed Voronoi distances.
    1.0 on a plate boundary, falling to 0.0 at `influence_radius` cells away.
    """
    # 1. Half the difference in distances to the two nearest plate centres
    # approximates the distance to the Voronoi edge.
    boundary_dist = (dist2 - dist1) / 2.0

    # 2. Linear falloff over the radius.
    influence_map = 1.0 - np.clip(boundary_dist / influence_radius, 0.0, 1.0)

    # 3. Smooth the falloff with a cosine curve.
    return (1 - np.cos(influence_map * np.pi)) / 2


class Lithosphere:
    """
    Stepped plate simulation over a square map.

    The heavy geometric work (Voronoi assignment, boundary classification)
    happens once at construction; each step only accumulates uplift, and every
    `erosion_period` steps land relief is diffused.
    """

    def __init__(self, params):
        self.params = params
        size = params.map_size
        self.width = size
        self.height = size
        self.step_count = 0
        self.total_steps = params.cycle_count * DEFAULTS.STEPS_PER_CYCLE

        plate_seed = params.seed + DEFAULTS.TECTONIC_PLATE_SEED_OFFSET
        rng = np.random.default_rng(plate_seed)

        # 1. Plate geometry.
        self.plate_points = generate_plate_points(size, size, params.plate_count, plate_seed)
        plate_ids, neighbour_ids, dist1, dist2 = get_voronoi_data(self.plate_points, size, size)
        self.plates_map = plate_ids.astype(np.uint32)
        radius = max(1.0, size * DEFAULTS.PLATE_INFLUENCE_RADIUS_FRACTION)
        influence = calculate_influence_map(dist1, dist2, radius)

        # 2. Plate kinematics: one random unit velocity per plate.
        angles = rng.uniform(0.0, 2.0 * np.pi, params.plate_count)
        velocities = np.column_stack((np.cos(angles), np.sin(angles)))

        # 3. Plate crust types. Plates are made continental in random order
        # until the land share reaches the target (1 - ocean fraction).
        self.continental = self._assign_crust_types(plate_ids, rng)

        # 4. Boundary motion. Positive closing speed means the plates converge.
        centre_delta = self.plate_points[neighbour_ids] - self.plate_points[plate_ids]
        centre_dist = np.linalg.norm(centre_delta, axis=-1)
        direction = centre_delta / np.maximum(centre_dist, 1e-9)[..., None]
        relative_velocity = velocities[plate_ids] - velocities[neighbour_ids]
        closing_speed = np.sum(relative_velocity * direction, axis=-1)
        closing_speed = np.where(neighbour_ids == plate_ids, 0.0, closing_speed)

        own_continental = self.continental[plate_ids]
        other_continental = self.continental[neighbour_ids]
        subducting = ~own_continental & other_continental

        convergence = np.clip(closing_speed, 0.0, None) * influence
        divergence = np.clip(-closing_speed, 0.0, None) * influence
        uplift = np.where(subducting, -DEFAULTS.TRENCH_DEPTH_FACTOR * convergence, convergence)
        uplift -= DEFAULTS.RIFT_DEPTH_FACTOR * divergence
        self._uplift_per_step = uplift * DEFAULTS.UPLIFT_PER_STEP_RAW * params.folding_ratio

        # 5. Initial crust: per-plate base elevation plus fractal relief.
        base = np.where(own_continental, DEFAULTS.CONTINENTAL_BASE_RAW, DEFAULTS.OCEANIC_BASE_RAW)
        relief = noise.fractal_noise_map(
            size, size,
            seed=params.seed + DEFAULTS.PLATE_RELIEF_SEED_OFFSET,
            octaves=DEFAULTS.PLATE_RELIEF_OCTAVES,
            feature_scale=DEFAULTS.PLATE_RELIEF_FEATURE_SCALE,
        )
        self.heightmap = base + (relief - 0.5) * 2.0 * DEFAULTS.PLATE_RELIEF_AMPLITUDE_RAW

    def _assign_crust_types(self, plate_ids: np.ndarray, rng: np.random.Generator) -> np.ndarray:
        plate_count = self.params.plate_count
        areas = np.bincount(plate_ids.ravel(), minlength=plate_count) / plate_ids.size
        target_land = 1.0 - self.params.sea_level

        continental = np.zeros(plate_count, dtype=bool)
        land = 0.0
        for plate in rng.permutation(plate_count):
            if land >= target_land:
                break
            continental[plate] = True
            land += areas[plate]
        return continental

    def is_finished(self) -> bool:
        return self.step_count >= self.total_steps

    def step(self):
        if self.is_finished():
            return
        self.heightmap = self.heightmap + self._uplift_per_step
        self.step_count += 1

        if self.step_count % self.params.erosion_period == 0:
            land = self.heightmap > DEFAULTS.SEA_LEVEL_RAW
            smoothed = uniform_filter(self.heightmap, size=3, mode="nearest")
            rate = DEFAULTS.LITHOSPHERE_DIFFUSION_RATE
            self.heightmap = np.where(land, self.heightmap * (1 - rate) + smoothed * rate, self.heightmap)

    def get_heightmap(self) -> np.ndarray:
        """
        Returns the calibrated heightmap with the target ocean fraction of
        cells below SEA_LEVEL_RAW.

        Land above the pivot quantile is shifted rigidly and clamped at the
        top of the RAW range. The sea floor below it is rescaled onto
        [RAW_ELEVATION_MIN, SEA_LEVEL_RAW] instead of being clipped, so deep
        trenches never flatten the ocean into a single floor value.
        """
        heights = self.heightmap
        pivot = float(np.quantile(heights, self.params.sea_level))
        floor = float(heights.min())

        land = np.minimum(heights + (DEFAULTS.SEA_LEVEL_RAW - pivot), DEFAULTS.RAW_ELEVATION_MAX)
        if pivot > floor:
            scale = (DEFAULTS.SEA_LEVEL_RAW - DEFAULTS.RAW_ELEVATION_MIN) / (pivot - floor)
            sea = DEFAULTS.RAW_ELEVATION_MIN + (heights - floor) * scale
        else:
            sea = np.full_like(heights, DEFAULTS.SEA_LEVEL_RAW)

        calibrated = np.where(heights < pivot, sea, land)
        return np.clip(calibrated, DEFAULTS.RAW_ELEVATION_MIN, DEFAULTS.RAW_ELEVATION_MAX).astype(np.float64)

    def get_plates_map(self) -> np.ndarray:
        return self.plates_map.copy()
