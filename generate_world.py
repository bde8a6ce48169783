# generate_world.py

"""
================================================================================
WORLD GENERATION SCRIPT
================================================================================
This script is a command-line tool for running the world generation pipeline
for one or more seeds and logging a summary of each generated world. It
writes no files; it is meant for tuning parameters and checking timings.

Usage:
    python generate_world.py --config path/to/your/config.json
    python generate_world.py --seed 42 --seed 43 --mode iterative --iterations 4
================================================================================
"""
import sys
import json
import logging
import argparse
import time
from concurrent.futures import ThreadPoolExecutor, as_completed

from tqdm import tqdm

from world_pipeline import config as DEFAULTS
from world_pipeline.elevation import format_elevation, raw_to_meters
from world_pipeline.errors import WorldGenError
from world_pipeline.generator import WorldGenerator
from world_pipeline.native import NativePlateSimulator
from world_pipeline.plate_simulator import VoronoiPlateSimulator


def load_config(config_path: str, logger: logging.Logger) -> dict:
    """Returns the 'world_generation_parameters' section of a JSON config."""
    logger.info(f"Loading configuration from: {config_path}")
    with open(config_path, 'r') as f:
        config = json.load(f)
    return config.get('world_generation_parameters', {})


def make_simulator(kind: str, library_path: str, logger: logging.Logger):
    if kind == "native":
        return NativePlateSimulator(library_path=library_path, logger=logger)
    return VoronoiPlateSimulator(logger)


def generate_one(world_params: dict, seed: int, simulator_kind: str, library_path: str) -> dict:
    """Runs one generation and returns its summary."""
    logger = logging.getLogger(f"World-{seed}")
    params = dict(world_params, seed=seed)
    generator = WorldGenerator(
        config=params, logger=logger,
        plate_simulator=make_simulator(simulator_kind, library_path, logger),
    )

    start_time = time.perf_counter()
    result = generator.generate()
    duration = time.perf_counter() - start_time

    stats = result.statistics
    return {
        'seed': seed,
        'duration': duration,
        'thresholds': result.thresholds.as_dict(),
        'precipitation_thresholds': result.precipitation_thresholds.as_dict(),
        'axial_tilt': result.climate.axial_tilt,
        'distance_to_sun': result.climate.distance_to_sun,
        'peak_level_meters': float(raw_to_meters(
            result.thresholds.peak_level, result.min_elevation, result.max_elevation
        )),
        'ocean_fraction': stats.ocean_fraction,
        'mean_temperature': stats.mean_temperature,
        'mean_precipitation': stats.mean_precipitation,
        'erosion_passes': stats.erosion_passes,
    }


def generate_worlds(args) -> int:
    # 1. --- Setup Logging ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )
    logger = logging.getLogger("Generator")

    # 2. --- Load Configuration ---
    world_params = {}
    if args.config:
        try:
            world_params = load_config(args.config, logger)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            logger.critical(f"Failed to load or parse config file: {e}")
            return 2

    # Command-line flags override the file.
    if args.mode:
        world_params['pipeline_mode'] = args.mode
    if args.iterations is not None:
        world_params['iteration_count'] = args.iterations
    if args.size is not None:
        world_params['map_size'] = args.size
    if args.plates is not None:
        world_params['plate_count'] = args.plates

    seeds = args.seed or [world_params.get('seed', DEFAULTS.DEFAULT_SEED)]

    # 3. --- Generate (one thread per world) ---
    logger.info(f"Generating {len(seeds)} world(s) with {args.workers} worker thread(s)...")
    start_time = time.perf_counter()
    summaries = []
    failures = 0

    with ThreadPoolExecutor(max_workers=args.workers) as pool:
        futures = {
            pool.submit(generate_one, world_params, seed, args.simulator, args.library): seed
            for seed in seeds
        }
        for future in tqdm(as_completed(futures), total=len(futures), desc="Generating Worlds"):
            seed = futures[future]
            try:
                summaries.append(future.result())
            except WorldGenError as e:
                failures += 1
                logger.error(f"Seed {seed} failed: {e}")

    # 4. --- Summary ---
    end_time = time.perf_counter()
    logger.info(f"Generation complete! Total time: {end_time - start_time:.2f} seconds.")
    for summary in sorted(summaries, key=lambda s: s['seed']):
        t = summary['thresholds']
        logger.info(
            f"  - Seed {summary['seed']}: {summary['duration']:.2f}s, "
            f"ocean {summary['ocean_fraction']:.1%}, "
            f"sea/hill/mountain/peak = {t['sea_level']:.3f}/{t['hill_level']:.3f}/"
            f"{t['mountain_level']:.3f}/{t['peak_level']:.3f} "
            f"(peak level {format_elevation(summary['peak_level_meters'])}), "
            f"mean temperature {summary['mean_temperature']:.3f}, "
            f"mean precipitation {summary['mean_precipitation']:.3f}"
        )
    return 1 if failures else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Procedural world generation pipeline.")
    parser.add_argument("--config", type=str, help="Path to a JSON configuration file.")
    parser.add_argument("--seed", type=int, action="append", help="Seed to generate (repeatable).")
    parser.add_argument("--mode", choices=["single_pass", "iterative"], help="Pipeline topology.")
    parser.add_argument("--iterations", type=int, help="Feedback rounds in iterative mode.")
    parser.add_argument("--size", type=int, help="Map side length in cells.")
    parser.add_argument("--plates", type=int, help="Number of tectonic plates.")
    parser.add_argument("--simulator", choices=["voronoi", "native"], default="voronoi",
                        help="Plate simulation strategy.")
    parser.add_argument("--library", type=str, help="Path to the native plate simulation library.")
    parser.add_argument("--workers", type=int, default=1, help="Worlds generated concurrently.")
    parser.add_argument("--verbose", action="store_true", help="Log per-stage diagnostics.")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return generate_worlds(args)


# --- Command-Line Interface ---
if __name__ == "__main__":
    sys.exit(main())
