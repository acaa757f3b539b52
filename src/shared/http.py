"""HTTP utility functions and the default fetch collaborator.

This module provides request helpers including retry logic, header
generation, and DirectoryFetcher, the requests-backed implementation of
the fetch(url) -> FetchResult interface the crawler depends on.
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Dict, List, Optional
from urllib.parse import urlparse

import requests

from src.shared.constants import HTTP
from src.shared.errors import TransientFetchFailure

__all__ = [
    'DEFAULT_USER_AGENTS',
    'DirectoryFetcher',
    'FetchResult',
    'get_headers',
    'get_with_retry',
]


def _sanitize_url(url: str) -> str:
    """Redact query parameters from URL for safe logging.

    Args:
        url: URL to sanitize

    Returns:
        URL with scheme, host and path, query replaced by [REDACTED]
    """
    try:
        parsed = urlparse(url)
        safe_url = f"{parsed.scheme}://{parsed.netloc}{parsed.path}"
        if parsed.query:
            safe_url += "?[REDACTED]"
        return safe_url
    except ValueError:
        return "[INVALID_URL]"


# Default user agents for rotation
DEFAULT_USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0",
]


def get_headers(user_agent: str = None, base_url: str = None, user_agents: Optional[List[str]] = None) -> Dict[str, str]:
    """Get headers dict with optional user agent rotation.

    Args:
        user_agent: User agent string (random if not provided)
        base_url: Base URL for Referer header (defaults to Google)
        user_agents: Pool to pick from when user_agent is not given

    Returns:
        Dictionary of HTTP headers
    """
    if user_agent is None:
        user_agent = random.choice(user_agents or DEFAULT_USER_AGENTS)

    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Accept-Encoding": "gzip, deflate, br",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Referer": base_url or "https://www.google.com",
    }


def get_with_retry(
    session: requests.Session,
    url: str,
    max_retries: int = None,
    timeout: int = None,
    rate_limit_base_wait: int = None,
    headers: Optional[Dict[str, str]] = None,
) -> Optional[requests.Response]:
    """Fetch URL with exponential backoff retry and proper error handling.

    Headers are passed per-request instead of mutating session.headers.
    The courtesy delay between distinct fetches is the caller's concern;
    this function only waits between retries of the same URL.

    Args:
        session: requests.Session to use
        url: URL to fetch
        max_retries: Maximum number of attempts
        timeout: Request timeout in seconds
        rate_limit_base_wait: Base wait time for 429/403 responses
        headers: Optional request headers (rotated defaults if None)

    Returns:
        Response object on success, None on failure
    """
    max_retries = max_retries if max_retries is not None else HTTP.MAX_RETRIES
    timeout = timeout if timeout is not None else HTTP.TIMEOUT
    rate_limit_base_wait = rate_limit_base_wait if rate_limit_base_wait is not None else HTTP.RATE_LIMIT_BASE_WAIT
    headers = headers if headers is not None else get_headers()

    safe_url = _sanitize_url(url)
    response = None

    for attempt in range(max_retries):
        try:
            response = session.get(url, headers=headers, timeout=timeout)

            if response is None:
                logging.warning(f"Received None response for {safe_url}")
                continue

            if response.status_code == 200:
                logging.debug(f"Successfully fetched {safe_url}")
                return response

            if response.status_code in (429, 403):  # Rate limited or blocked
                wait_time = (2 ** attempt) * rate_limit_base_wait
                logging.warning(
                    f"HTTP {response.status_code} for {safe_url}. "
                    f"Waiting {wait_time}s (attempt {attempt + 1}/{max_retries})..."
                )
                time.sleep(wait_time)

            elif response.status_code >= 500 or response.status_code == 408:
                wait_time = HTTP.SERVER_ERROR_WAIT
                logging.warning(
                    f"Server error ({response.status_code}) for {safe_url}. "
                    f"Waiting {wait_time}s (attempt {attempt + 1}/{max_retries})..."
                )
                time.sleep(wait_time)

            elif 400 <= response.status_code < 500:
                # 404, 401, 410, etc. won't succeed on retry
                logging.error(f"Client error ({response.status_code}) for {safe_url}. Failing immediately.")
                return None

            else:
                logging.warning(f"Unexpected HTTP {response.status_code} for {safe_url}")
                return None

        except requests.exceptions.RequestException as e:
            response = None
            wait_time = HTTP.SERVER_ERROR_WAIT
            logging.warning(
                f"Request error for {safe_url}: {e}. "
                f"Waiting {wait_time}s (attempt {attempt + 1}/{max_retries})..."
            )
            time.sleep(wait_time)

    final_status = response.status_code if response is not None else 'no response'
    logging.error(f"Failed to fetch {safe_url} after {max_retries} attempts (last status: {final_status})")
    return None


@dataclass
class FetchResult:
    """Outcome of a successful fetch."""
    url: str
    status: int
    content: str


class DirectoryFetcher:
    """Default fetch collaborator backed by requests.

    Usage:
        with DirectoryFetcher(timeout=30) as fetcher:
            result = fetcher.fetch("https://www.walmart.com/store-directory/il")
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: int = None,
        max_retries: int = None,
        base_url: Optional[str] = None,
        user_agents: Optional[List[str]] = None,
    ):
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else HTTP.TIMEOUT
        self.max_retries = max_retries if max_retries is not None else HTTP.MAX_RETRIES
        self.base_url = base_url
        self.user_agents = user_agents

    def fetch(self, url: str) -> FetchResult:
        """Fetch a page.

        Raises:
            TransientFetchFailure: If the page could not be retrieved
        """
        response = get_with_retry(
            self.session,
            url,
            max_retries=self.max_retries,
            timeout=self.timeout,
            headers=get_headers(base_url=self.base_url, user_agents=self.user_agents),
        )
        if response is None:
            raise TransientFetchFailure(url, f"no successful response after {self.max_retries} attempts")
        return FetchResult(url=url, status=response.status_code, content=response.text)

    def close(self) -> None:
        """Close the underlying session if this fetcher created it."""
        if self._owns_session and self.session is not None:
            self.session.close()

    def __enter__(self) -> "DirectoryFetcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
