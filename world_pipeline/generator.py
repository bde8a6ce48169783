# world_pipeline/generator.py

"""
================================================================================
CORE WORLD GENERATOR
================================================================================
This module contains the WorldGenerator class, the entry point for callers
that configure generation with a plain dictionary (e.g. loaded from JSON).

Data Contract:
---------------
- Inputs (on initialization):
    - config (dict): Parameters which can override the internal defaults.
      Expected keys include 'seed', 'map_size', 'plate_count',
      'pipeline_mode', 'iteration_count'.
    - logger: A configured Python logging object for runtime messages.
    - plate_simulator (optional): The plate simulation strategy. Defaults to
      the managed Voronoi simulator.
- Outputs (from methods):
    - WorldGenerationResult.
- Side Effects: Logs messages using the provided logger.
- Invariants: Given the same seed and configuration, the output is deterministic.
================================================================================
"""

import logging

from . import config as DEFAULTS
from .builder import PipelineBuilder
from .params import ClimateParams, GenerationParams, PipelineMode
from .plate_simulator import PlateSimulator, VoronoiPlateSimulator


class WorldGenerator:
    """
    Builds GenerationParams and a pipeline from a configuration dictionary
    and runs generations with them.
    """

    def __init__(self, config: dict, logger: logging.Logger, plate_simulator: PlateSimulator = None):
        """
        Initializes the world generator.

        Args:
            config (dict): User-defined parameters to override defaults.
            logger (logging.Logger): The logger instance for all output.
            plate_simulator (PlateSimulator, optional): Simulation strategy.

        Raises:
            ConfigurationError: If the consolidated parameters are invalid.
        """
        self.logger = logger
        self.user_config = config
        self.logger.info("WorldGenerator initializing...")

        # --- Consolidate Configuration ---
        self.settings = {
            'seed': self.user_config.get('seed', DEFAULTS.DEFAULT_SEED),
            'map_size': self.user_config.get('map_size', DEFAULTS.DEFAULT_MAP_SIZE),
            'plate_count': self.user_config.get('plate_count', DEFAULTS.DEFAULT_PLATE_COUNT),
            'pipeline_mode': self.user_config.get('pipeline_mode', DEFAULTS.DEFAULT_PIPELINE_MODE),
            'iteration_count': self.user_config.get('iteration_count', DEFAULTS.DEFAULT_ITERATION_COUNT),

            'axial_tilt': self.user_config.get('axial_tilt'),
            'distance_to_sun': self.user_config.get('distance_to_sun'),

            'sea_level': self.user_config.get('sea_level', DEFAULTS.DEFAULT_SIMULATION_SEA_LEVEL),
            'erosion_period': self.user_config.get('erosion_period', DEFAULTS.DEFAULT_EROSION_PERIOD),
            'folding_ratio': self.user_config.get('folding_ratio', DEFAULTS.DEFAULT_FOLDING_RATIO),
            'aggr_overlap_abs': self.user_config.get('aggr_overlap_abs', DEFAULTS.DEFAULT_AGGR_OVERLAP_ABS),
            'aggr_overlap_rel': self.user_config.get('aggr_overlap_rel', DEFAULTS.DEFAULT_AGGR_OVERLAP_REL),
            'cycle_count': self.user_config.get('cycle_count', DEFAULTS.DEFAULT_CYCLE_COUNT),
            'max_steps': self.user_config.get('max_steps', DEFAULTS.MAX_SIMULATION_STEPS),
        }

        # --- Build the parameter record (validates) ---
        self.params = GenerationParams(
            seed=self.settings['seed'],
            map_size=self.settings['map_size'],
            plate_count=self.settings['plate_count'],
            climate=self._climate_from_settings(),
            pipeline_mode=PipelineMode.parse(self.settings['pipeline_mode']),
            iteration_count=self.settings['iteration_count'],
            sea_level=self.settings['sea_level'],
            erosion_period=self.settings['erosion_period'],
            folding_ratio=self.settings['folding_ratio'],
            aggr_overlap_abs=self.settings['aggr_overlap_abs'],
            aggr_overlap_rel=self.settings['aggr_overlap_rel'],
            cycle_count=self.settings['cycle_count'],
            max_steps=self.settings['max_steps'],
        )

        # --- Public Properties for easy access ---
        self.seed = self.params.seed
        self.plate_simulator = plate_simulator or VoronoiPlateSimulator(self.logger)

        self.pipeline = (PipelineBuilder(self.logger)
                         .use_plate_simulator(self.plate_simulator)
                         .use_mode(self.params.pipeline_mode, self.params.iteration_count)
                         .use_default_stages()
                         .build())

        self.logger.info(f"WorldGenerator initialized with seed: {self.seed}")
        self.logger.info(
            f"World: {self.params.map_size}x{self.params.map_size} cells, "
            f"{self.params.plate_count} plates, {self.params.pipeline_mode.value} mode "
            f"({self.plate_simulator.name} simulator)"
        )

    def _climate_from_settings(self):
        """Explicit orbital parameters from the config, or None to draw them from the seed."""
        tilt = self.settings['axial_tilt']
        distance = self.settings['distance_to_sun']
        if tilt is None and distance is None:
            return None
        return ClimateParams(
            axial_tilt=0.0 if tilt is None else float(tilt),
            distance_to_sun=1.0 if distance is None else float(distance),
        )

    def generate(self, cancel_token=None, progress=None):
        """
        Runs one full generation with the configured parameters.

        Args:
            cancel_token (CancellationToken, optional): Checked between stages.
            progress (callable, optional): progress(stage_name, completed, total).
        """
        return self.pipeline.run(self.params, cancel_token=cancel_token, progress=progress)
