# utils.py
"""
Utility functions for the entropy visualizer.

This module provides helper functions, such as logging setup and
configuration loading, that are used across different parts of the
application but do not belong to the entropy engine, the sampler or
rendering.
"""
import logging
import logging.handlers
import json
import os
import copy
from typing import Dict, Any

import constants

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary containing a "logging" key with "level",
#       "format", and "log_file" sub-keys. Missing keys use defaults.
#   - Outputs: None
#   - Side Effects: Configures the root Python logger. Creates a log
#     directory if it doesn't exist. Sets up a console handler and a
#     rotating file handler.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Inputs: path to a JSON file.
#   - Outputs: The parsed configuration merged over DEFAULT_CONFIG.
#   - Side Effects: Logs progress. Re-raises FileNotFoundError and
#     json.JSONDecodeError after logging them.
#
# merge_with_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
#   - Outputs: A new dictionary; section by section, user values override
#     DEFAULT_CONFIG. The input is never mutated.

DEFAULT_CONFIG: Dict[str, Any] = {
    "simulation_parameters": {
        "seed": None,
        "box_size": constants.DEFAULT_BOX_SIZE,
        "grid_n": constants.DEFAULT_GRID_N,
        "num_red": constants.DEFAULT_NUM_RED,
        "num_blue": constants.DEFAULT_NUM_BLUE,
        "particle_radius": constants.DEFAULT_PARTICLE_RADIUS,
        "initial_speed": constants.DEFAULT_INITIAL_SPEED,
        "max_placement_trials": constants.MAX_PLACEMENT_TRIALS,
        "delta_time": constants.DEFAULT_DELTA_TIME,
    },
    "run_control": {
        "max_steps": 5000,
        "log_throttle_steps": 100,
        "headless": False,
        "profile": False,
    },
    "visualization": {
        "cell_opacity": constants.DEFAULT_CELL_OPACITY,
        "color_stops": [list(c) for c in constants.DEFAULT_COLOR_STOPS],
        "panel_size": constants.DEFAULT_PANEL_SIZE,
    },
    "logging": {
        "level": "INFO",
        "format": "%(asctime)s - %(levelname)s - %(message)s",
        "log_file": "logs/simulation.log",
    },
}


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to both the console and a rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')
    log_file_path = log_config.get('log_file', 'logs/simulation.log')

    # Ensure the log directory exists
    log_dir = os.path.dirname(log_file_path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Rotates when the log reaches 1MB, keeps 5 backup logs.
    file_handler = logging.handlers.RotatingFileHandler(
        log_file_path, maxBytes=1024*1024, backupCount=5
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path}")


def merge_with_defaults(config: Dict[str, Any]) -> Dict[str, Any]:
    """Overlays a user configuration onto DEFAULT_CONFIG, one section at a time."""
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section, values in config.items():
        if isinstance(values, dict) and isinstance(merged.get(section), dict):
            merged[section].update(values)
        else:
            merged[section] = values
    return merged


def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file and fills in missing defaults."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        logging.info("Configuration loaded successfully.")
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise
    return merge_with_defaults(config)
