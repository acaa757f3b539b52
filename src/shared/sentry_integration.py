"""Sentry.io integration for error monitoring.

Sentry is only enabled when SENTRY_DSN is set. Every helper here is a
no-op otherwise, so callers never need to check.

Usage:
    from src.shared.sentry_integration import init_sentry, capture_collector_error

    init_sentry()
    capture_collector_error(exception, command="collect", extra={"region": "il"})
"""

import logging
import os
import re
from typing import Any, Dict, Optional

import sentry_sdk

__all__ = [
    'capture_collector_error',
    'flush',
    'init_sentry',
    'set_region_context',
]

_sentry_initialized = False

logger = logging.getLogger(__name__)


def init_sentry(
    dsn: Optional[str] = None,
    environment: Optional[str] = None,
    traces_sample_rate: float = 0.0,
) -> bool:
    """Initialize Sentry SDK with project configuration.

    Args:
        dsn: Sentry DSN (defaults to SENTRY_DSN env var)
        environment: Environment name (defaults to SENTRY_ENVIRONMENT or 'development')
        traces_sample_rate: Performance monitoring sample rate (0.0 to 1.0)

    Returns:
        True if Sentry was initialized, False if disabled
    """
    global _sentry_initialized

    if _sentry_initialized:
        return True

    dsn = dsn or os.getenv("SENTRY_DSN", "")
    if not dsn:
        logger.debug("SENTRY_DSN not set, Sentry disabled")
        return False

    environment = environment or os.getenv("SENTRY_ENVIRONMENT", "development")

    try:
        sentry_sdk.init(
            dsn=dsn,
            environment=environment,
            traces_sample_rate=traces_sample_rate,
            before_send=_before_send,
            send_default_pii=False,
            attach_stacktrace=True,
            max_breadcrumbs=50,
        )
    except Exception as e:  # pylint: disable=broad-except
        logger.warning(f"Failed to initialize Sentry: {e}")
        return False

    sentry_sdk.set_tag("project", "store-directory-collector")
    _sentry_initialized = True
    logger.info(f"Sentry initialized (environment={environment})")
    return True


def _before_send(event: Dict[str, Any], hint: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Scrub credentials from exception messages before sending."""
    for exception in event.get("exception", {}).get("values", []):
        if "value" in exception:
            exception["value"] = _scrub_sensitive_data(exception["value"])
    return event


def _scrub_sensitive_data(text: str) -> str:
    """Remove credentials embedded in URLs and query strings."""
    if not isinstance(text, str):
        return text
    text = re.sub(r"://[^:/@\s]+:[^@\s]+@", "://[REDACTED]@", text)
    return re.sub(r"(api[_-]?key|password|secret|token)=[^&\s]+", r"\1=[REDACTED]", text, flags=re.IGNORECASE)


def set_region_context(region: str) -> None:
    """Tag subsequent events with the region being crawled."""
    if _sentry_initialized:
        sentry_sdk.set_tag("region", region)


def capture_collector_error(
    exception: Exception,
    command: Optional[str] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> Optional[str]:
    """Capture an exception with collector context.

    Args:
        exception: The exception to capture
        command: CLI command that failed (collect, enrich, verify, export)
        extra: Additional context data (e.g., region, path)

    Returns:
        Sentry event ID if captured, None otherwise
    """
    if not _sentry_initialized:
        return None

    with sentry_sdk.new_scope() as scope:
        if command:
            scope.set_tag("command", command)
        if extra:
            scope.set_context("collector", {
                key: _scrub_sensitive_data(value) if isinstance(value, str) else value
                for key, value in extra.items()
            })
        return sentry_sdk.capture_exception(exception)


def flush(timeout: float = 2.0) -> None:
    """Flush pending events to Sentry before exit."""
    if _sentry_initialized:
        sentry_sdk.flush(timeout=timeout)
