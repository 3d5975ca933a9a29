"""HTTP helpers for the exchange-rate source: timeout, retry and backoff."""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10
DEFAULT_RETRIES = 3
BACKOFF_BASE = 2.0


class NetworkError(Exception):
    """Raised on unrecoverable HTTP / connectivity failures."""


class ParseError(Exception):
    """Raised when response content cannot be parsed."""


def _backoff(attempt: int) -> float:
    return BACKOFF_BASE ** attempt


def get(
    url: str,
    *,
    timeout: int = DEFAULT_TIMEOUT,
    retries: int = DEFAULT_RETRIES,
    params: dict[str, Any] | None = None,
    session: requests.Session | None = None,
) -> requests.Response:
    """GET with retry/backoff. Raises NetworkError once every attempt has failed."""
    client = session or requests.Session()
    attempts = max(1, retries)
    last_exc: Exception | None = None

    for attempt in range(attempts):
        try:
            resp = client.get(url, timeout=timeout, params=params, headers={"Accept": "application/json"})
            resp.raise_for_status()
            return resp
        except requests.exceptions.Timeout as exc:
            last_exc = exc
            logger.warning("Timeout on attempt %d/%d: %s", attempt + 1, attempts, url)
        except requests.exceptions.ConnectionError as exc:
            last_exc = exc
            logger.warning("Connection error on attempt %d/%d: %s", attempt + 1, attempts, url)
        except requests.exceptions.HTTPError as exc:
            last_exc = exc
            status = exc.response.status_code if exc.response is not None else "?"
            logger.warning("HTTP %s on attempt %d/%d: %s", status, attempt + 1, attempts, url)
            # 4xx other than 429 will not get better on retry
            if isinstance(status, int) and 400 <= status < 500 and status != 429:
                break

        if attempt < attempts - 1:
            wait = _backoff(attempt)
            logger.debug("Backing off %.1fs before retry…", wait)
            time.sleep(wait)

    raise NetworkError(f"Failed to GET {url} after {attempts} attempt(s): {last_exc}") from last_exc


def get_json(url: str, **kwargs: Any) -> Any:
    """GET *url* and return the decoded JSON body."""
    resp = get(url, **kwargs)
    try:
        return resp.json()
    except ValueError as exc:
        raise ParseError(f"Response from {url} is not valid JSON") from exc
