"""Live GBP→JPY exchange rate with an in-memory cache."""

from __future__ import annotations

import logging
import time as _time
from typing import Any

from .config import ExchangeRateConfig
from .http import NetworkError, ParseError, get_json

logger = logging.getLogger(__name__)

# (url, rate_path) → (rate, monotonic timestamp)
_cache: dict[tuple[str, str], tuple[float, float]] = {}


def clear_cache() -> None:
    _cache.clear()


def extract_rate(payload: Any, rate_path: str) -> float:
    """
    Walk a dotted *rate_path* (e.g. ``"rates.JPY"``) into a JSON payload.

    Raises:
        ParseError: the path is missing or the value is not a positive number.
    """
    node = payload
    for part in rate_path.split("."):
        if isinstance(node, dict) and part in node:
            node = node[part]
        elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        else:
            raise ParseError(f"Exchange-rate response has no '{rate_path}' (stopped at '{part}')")
    try:
        rate = float(node)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Exchange-rate value at '{rate_path}' is not numeric: {node!r}") from exc
    if rate <= 0:
        raise ParseError(f"Exchange-rate value at '{rate_path}' is not positive: {rate}")
    return rate


def fetch_rate(cfg: ExchangeRateConfig) -> float:
    """
    Download the current rate (yen per pound by default).

    Raises:
        NetworkError: the endpoint could not be reached.
        ParseError:   the response did not contain a usable rate.
    """
    logger.info("Fetching %s→%s exchange rate from %s", cfg.base, cfg.quote, cfg.url)
    payload = get_json(cfg.url, timeout=cfg.timeout, retries=cfg.retries)
    rate = extract_rate(payload, cfg.rate_path)
    logger.info("Latest exchange rate: 1 %s = %.4f %s", cfg.base, rate, cfg.quote)
    return rate


def get_rate(cfg: ExchangeRateConfig) -> float | None:
    """
    Return the configured override, a cached rate, or a freshly fetched one.

    Returns ``None`` when the rate cannot be obtained so callers can treat
    VAT as not applicable instead of failing.
    """
    if cfg.override is not None:
        return cfg.override if cfg.override > 0 else None

    now = _time.monotonic()
    key = (cfg.url, cfg.rate_path)
    cached = _cache.get(key)
    if cached is not None and (now - cached[1]) < cfg.cache_ttl_seconds:
        logger.debug("Exchange-rate cache hit for %s", cfg.url)
        return cached[0]

    try:
        rate = fetch_rate(cfg)
    except (NetworkError, ParseError) as exc:
        logger.warning("Exchange rate unavailable: %s", exc)
        return None

    _cache[key] = (rate, now)
    return rate
