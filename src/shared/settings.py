"""Collector configuration loading.

Settings come from config/collector.yaml, with the data directory
overridable through the COLLECTOR_DATA_DIR environment variable (which
may be set in a .env file). CLI flags are applied on top by run.py.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List

import yaml

from src.shared.constants import CRAWL, HTTP, LOGGING, PATHS
from src.shared.delays import select_delays

__all__ = [
    'DEFAULT_CONFIG',
    'get_path',
    'load_collector_config',
    'validate_config',
]


DEFAULT_CONFIG: Dict[str, Any] = {
    'data_dir': PATHS.DATA_DIR,
    'delays': {
        'min_delay': HTTP.MIN_DELAY,
        'max_delay': HTTP.MAX_DELAY,
    },
    'timeout': HTTP.TIMEOUT,
    'max_retries': HTTP.MAX_RETRIES,
    'fetch_details': CRAWL.FETCH_DETAILS,
    'log_file': LOGGING.LOG_FILE,
}


def load_collector_config(config_path: str = PATHS.CONFIG_FILE) -> Dict[str, Any]:
    """Load collector configuration from YAML, falling back to defaults.

    Args:
        config_path: Path to collector.yaml

    Returns:
        Configuration dict with every default key present
    """
    config = {key: (dict(value) if isinstance(value, dict) else value) for key, value in DEFAULT_CONFIG.items()}

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f)
    except FileNotFoundError:
        logging.warning(f"Config file {config_path} not found, using defaults")
        loaded = {}
    except yaml.YAMLError as e:
        logging.error(f"Error parsing {config_path}: {e}, using defaults")
        loaded = {}

    # Handle empty YAML files (safe_load returns None)
    loaded = loaded or {}
    if not isinstance(loaded, dict):
        logging.error(f"Config file {config_path} must contain a mapping, using defaults")
        loaded = {}

    collector_section = loaded.get('collector', loaded)
    if isinstance(collector_section, dict):
        for key, value in collector_section.items():
            if key == 'delays' and isinstance(value, dict):
                config['delays'].update(value)
            else:
                config[key] = value

    env_data_dir = os.getenv('COLLECTOR_DATA_DIR')
    if env_data_dir:
        logging.info(f"Using data directory from environment: {env_data_dir}")
        config['data_dir'] = env_data_dir

    return config


def validate_config(config: Dict[str, Any]) -> List[str]:
    """Check a loaded configuration for type and range errors.

    Args:
        config: Configuration dict from load_collector_config()

    Returns:
        List of validation errors (empty if config is valid)
    """
    errors = []

    delays = config.get('delays')
    if delays is not None and not isinstance(delays, dict):
        errors.append("'delays' must be a mapping")

    min_delay, max_delay = select_delays(config)
    for name, value in (('min_delay', min_delay), ('max_delay', max_delay)):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            errors.append(f"'{name}' must be a non-negative number")

    # Only compare when both values are numeric to avoid TypeError on invalid configs
    if isinstance(min_delay, (int, float)) and isinstance(max_delay, (int, float)):
        if min_delay > max_delay:
            errors.append(f"'min_delay' ({min_delay}) cannot be greater than 'max_delay' ({max_delay})")

    timeout = config.get('timeout')
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append("'timeout' must be a positive number")

    max_retries = config.get('max_retries')
    if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 1:
        errors.append("'max_retries' must be a positive integer")

    if not isinstance(config.get('fetch_details'), bool):
        errors.append("'fetch_details' must be true or false")

    data_dir = config.get('data_dir')
    if not isinstance(data_dir, str) or not data_dir.strip():
        errors.append("'data_dir' must be a non-empty path")

    return errors


def get_path(config: Dict[str, Any], relative: str) -> Path:
    """Resolve a file path inside the configured data directory."""
    return Path(config.get('data_dir') or PATHS.DATA_DIR) / relative
