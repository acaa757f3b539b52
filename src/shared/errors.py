"""Error taxonomy for the collector.

Transient fetch failures and extraction misses are recovered inside the
crawler. Invariant violations and input format errors abort the current
command before anything is written.
"""

from typing import Optional

__all__ = [
    'CollectorError',
    'ExtractionMiss',
    'InputFormatError',
    'InvariantViolation',
    'TransientFetchFailure',
]


class CollectorError(Exception):
    """Base class for all collector errors."""


class TransientFetchFailure(CollectorError):
    """A single fetch failed (network error, timeout, or non-success status)."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status = status
        super().__init__(f"Failed to fetch {url}: {reason}")


class ExtractionMiss(CollectorError):
    """Content was fetched but no record met the completeness threshold."""


class InvariantViolation(CollectorError):
    """Ledger or store state would become inconsistent."""


class InputFormatError(CollectorError):
    """A persisted document or input feed could not be parsed."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid input file {path}: {reason}")
