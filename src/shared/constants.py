"""Centralized constants for the store directory collector.

This module provides frozen dataclass-based configuration groups for the
magic numbers used throughout the codebase. Using dataclasses provides:
- Type safety and IDE autocompletion
- Immutability (frozen=True prevents accidental modification)
- Clear documentation via docstrings

Usage:
    from src.shared.constants import HTTP, CRAWL, PATHS

    timeout = HTTP.TIMEOUT
    ledger_file = PATHS.LEDGER_FILE
"""

from dataclasses import dataclass

__all__ = [
    'CRAWL',
    'CrawlDefaults',
    'HTTP',
    'HttpDefaults',
    'LOGGING',
    'LoggingDefaults',
    'PATHS',
    'PathDefaults',
    'SERIALIZATION',
    'SerializationDefaults',
]


@dataclass(frozen=True)
class HttpDefaults:
    """HTTP request configuration defaults.

    These values control retry behavior, timeouts, and delays between requests.
    They can be overridden in config/collector.yaml.
    """

    MIN_DELAY: float = 1.5
    """Minimum courtesy delay between fetches in seconds."""

    MAX_DELAY: float = 2.0
    """Maximum courtesy delay between fetches in seconds."""

    MAX_RETRIES: int = 3
    """Maximum number of attempts for a single fetch."""

    TIMEOUT: int = 30
    """Request timeout in seconds."""

    RATE_LIMIT_BASE_WAIT: int = 30
    """Base wait time in seconds when receiving 429 (rate limit) responses."""

    SERVER_ERROR_WAIT: int = 10
    """Wait time in seconds after server errors (5xx) or timeouts before retry."""


@dataclass(frozen=True)
class CrawlDefaults:
    """Traversal defaults."""

    FETCH_DETAILS: bool = False
    """Visit facility pages to fill records missing a street address."""

    SUMMARY_LOG_LIMIT: int = 10
    """Maximum re-queued regions listed in the end-of-run summary."""


@dataclass(frozen=True)
class PathDefaults:
    """Default locations of the durable files, relative to the data directory."""

    DATA_DIR: str = "data/walmart"
    """Root directory for collector output."""

    STORE_FILE: str = "stores.json"
    """Record Store snapshot."""

    LEDGER_FILE: str = "checkpoints/collection_progress.json"
    """Checkpoint Ledger document."""

    ENRICHMENT_FILE: str = "phone-data.json"
    """Phone enrichment feed."""

    CONFIG_FILE: str = "config/collector.yaml"
    """YAML configuration file."""


@dataclass(frozen=True)
class SerializationDefaults:
    """Versioning of the persisted documents."""

    STORE_FORMAT_VERSION: int = 1
    """Current Record Store document version."""

    LEDGER_FORMAT_VERSION: int = 1
    """Current Checkpoint Ledger document version."""


@dataclass(frozen=True)
class LoggingDefaults:
    """Logging configuration.

    Controls log file rotation settings.
    """

    LOG_FILE: str = "logs/collector.log"
    """Default log file path."""

    MAX_BYTES: int = 10 * 1024 * 1024
    """Maximum log file size before rotation (10MB)."""

    BACKUP_COUNT: int = 5
    """Number of backup log files to keep."""


# Singleton instances for easy import
HTTP = HttpDefaults()
CRAWL = CrawlDefaults()
PATHS = PathDefaults()
SERIALIZATION = SerializationDefaults()
LOGGING = LoggingDefaults()
