"""
Shared helper functions and utilities.

Logging setup and the JSON-backed configuration used by the command line.
"""

import copy
import json
import logging
import os


def setup_logging(level=logging.INFO):
    """Set up logging configuration.
    
    Args:
        level: Logging level (default: INFO)
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized")


DEFAULT_CONFIG = {
    'feature_detection': {
        'window_radius': 3,
        'min_distance': 10.0,
        'max_count': 500,
        'min_score': 1e-6,
        'quality_level': 0.01,  # Fraction of the strongest corner score
        'local_maxima_only': False,
    },

    'region_tracking': {
        # Base strategy: 'translation' or 'affine'
        'strategy': 'translation',
        'half_window_size': 4,
        'max_iterations': 200,
        'min_determinant': 1e-6,
        'min_update_distance': 1e-3,
        'deformation_damping': 0.1,

        # Coarse-to-fine
        'use_pyramid': True,
        'pyramid_levels': 3,

        # Forward-backward verification
        'use_retrack': True,
        'retrack_tolerance': 0.2,
    },

    'marker_tracking': {
        'half_search_window_size': 32,
    },
}


def get_config(config_path=None):
    """Load configuration from file or return defaults.
    
    Sections present in the file are merged key by key into the defaults.

    Args:
        config_path: Path to configuration file (optional)
        
    Returns:
        dict: Configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path and os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                loaded_config = json.load(f)
        except (OSError, ValueError) as e:
            logging.warning(f"Failed to load config from {config_path}: {e}")
            return config

        for key, value in loaded_config.items():
            if isinstance(value, dict) and isinstance(config.get(key), dict):
                config[key].update(value)
            else:
                config[key] = value
        logging.info(f"Configuration loaded from {config_path}")
    elif config_path:
        logging.warning(f"Config file {config_path} not found, using defaults")

    return config


def save_config(config, config_path):
    """Save configuration to file.
    
    Args:
        config: Configuration dictionary
        config_path: Path to save configuration file
        
    Returns:
        bool: True if save successful, False otherwise
    """
    try:
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=4)
        logging.info(f"Configuration saved to {config_path}")
        return True
    except OSError as e:
        logging.error(f"Failed to save config to {config_path}: {e}")
        return False


def validate_config(config):
    """Validate configuration parameters.
    
    Args:
        config: Configuration dictionary
        
    Returns:
        bool: True if valid, False otherwise
    """
    for key in DEFAULT_CONFIG:
        if not isinstance(config.get(key), dict):
            logging.error(f"Missing required config section: {key}")
            return False

    tracking = config['region_tracking']
    if tracking.get('half_window_size', 0) < 1:
        logging.error("half_window_size must be at least 1")
        return False
    if tracking.get('pyramid_levels', 0) < 1:
        logging.error("pyramid_levels must be at least 1")
        return False
    if tracking.get('strategy') not in ('translation', 'affine'):
        logging.error(f"Unknown tracking strategy: {tracking.get('strategy')}")
        return False

    search = config['marker_tracking'].get('half_search_window_size', 0)
    if search <= tracking['half_window_size']:
        logging.error("Search window must be larger than the tracking window")
        return False

    if config['feature_detection'].get('min_distance', -1) < 0:
        logging.error("min_distance must be non-negative")
        return False

    logging.info("Configuration validated successfully")
    return True
