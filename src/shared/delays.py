"""Delay utilities for courtesy throttling.

This module provides functions for adding delays between requests
to avoid overwhelming the directory site.
"""

import logging
import random
import time
from typing import Any, Dict, Tuple

from src.shared.constants import HTTP

__all__ = [
    'DEFAULT_MAX_DELAY',
    'DEFAULT_MIN_DELAY',
    'random_delay',
    'select_delays',
]


DEFAULT_MIN_DELAY = HTTP.MIN_DELAY
DEFAULT_MAX_DELAY = HTTP.MAX_DELAY


def random_delay(min_sec: float = None, max_sec: float = None) -> None:
    """Add randomized delay between requests.

    A range of (0, 0) disables the delay entirely, which tests rely on.

    Args:
        min_sec: Minimum delay in seconds (uses default if None)
        max_sec: Maximum delay in seconds (uses default if None)
    """
    min_sec = min_sec if min_sec is not None else DEFAULT_MIN_DELAY
    max_sec = max_sec if max_sec is not None else DEFAULT_MAX_DELAY
    if max_sec <= 0:
        return
    delay = random.uniform(min_sec, max_sec)
    time.sleep(delay)
    logging.debug(f"Delayed {delay:.2f} seconds")


def select_delays(config: Dict[str, Any]) -> Tuple[float, float]:
    """Select the courtesy delay range from collector configuration.

    Args:
        config: Collector configuration dict

    Returns:
        Tuple of (min_delay, max_delay)

    Examples:
        >>> select_delays({'delays': {'min_delay': 0.5, 'max_delay': 1.0}})
        (0.5, 1.0)
        >>> select_delays({'min_delay': 0, 'max_delay': 0})
        (0, 0)
    """
    if 'delays' in config and isinstance(config['delays'], dict):
        delays_config = config['delays']
        return (
            delays_config.get('min_delay', DEFAULT_MIN_DELAY),
            delays_config.get('max_delay', DEFAULT_MAX_DELAY)
        )

    # Flat min_delay/max_delay fields
    return (
        config.get('min_delay', DEFAULT_MIN_DELAY),
        config.get('max_delay', DEFAULT_MAX_DELAY)
    )
