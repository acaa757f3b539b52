"""Shared utilities for the collector"""

from .checkpoint import load_json_document, save_json_atomic
from .delays import DEFAULT_MAX_DELAY, DEFAULT_MIN_DELAY, random_delay, select_delays
from .errors import (
    CollectorError,
    ExtractionMiss,
    InputFormatError,
    InvariantViolation,
    TransientFetchFailure,
)
from .http import DEFAULT_USER_AGENTS, DirectoryFetcher, FetchResult, get_headers, get_with_retry
from .logging_config import setup_logging
from .settings import DEFAULT_CONFIG, get_path, load_collector_config, validate_config

__all__ = [
    # Persistence
    'load_json_document',
    'save_json_atomic',
    # Delays
    'DEFAULT_MAX_DELAY',
    'DEFAULT_MIN_DELAY',
    'random_delay',
    'select_delays',
    # Errors
    'CollectorError',
    'ExtractionMiss',
    'InputFormatError',
    'InvariantViolation',
    'TransientFetchFailure',
    # HTTP
    'DEFAULT_USER_AGENTS',
    'DirectoryFetcher',
    'FetchResult',
    'get_headers',
    'get_with_retry',
    # Logging and configuration
    'setup_logging',
    'DEFAULT_CONFIG',
    'get_path',
    'load_collector_config',
    'validate_config',
]
