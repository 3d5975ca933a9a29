"""Configuration loader with ENV:VAR_NAME resolution."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

_PACKAGE_DATA = Path(__file__).parent / "data"

DUTY_BASES = ("cost_shipping", "cost_shipping_fees")
VAT_BASES = ("selling_price", "vat_inclusive")


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""


def _resolve(value: Any) -> Any:
    """Recursively resolve ENV:VAR_NAME references."""
    if isinstance(value, str) and value.startswith("ENV:"):
        var = value[4:]
        resolved = os.environ.get(var)
        if resolved is None:
            logger.debug("Environment variable %s not set (value stays None)", var)
        return resolved
    if isinstance(value, dict):
        return {k: _resolve(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve(v) for v in value]
    return value


def _optional_float(value: Any, key: str) -> float | None:
    if value is None or value == "":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}") from exc
    if not math.isfinite(result):
        raise ConfigError(f"{key} must be finite, got {value!r}")
    return result


def _number(value: Any, key: str, cast: type = float) -> Any:
    if value is None or value == "" or isinstance(value, bool):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    try:
        result = cast(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}") from exc
    if not math.isfinite(result):
        raise ConfigError(f"{key} must be finite, got {value!r}")
    return result


@dataclass
class DataConfig:
    shipping_path: str = str(_PACKAGE_DATA / "shipping.json")
    category_fees_path: str = str(_PACKAGE_DATA / "categoryFees.json")


@dataclass
class ExchangeRateConfig:
    url: str = "https://open.er-api.com/v6/latest/GBP"
    base: str = "GBP"
    quote: str = "JPY"
    rate_path: str = "rates.JPY"
    override: float | None = None
    timeout: int = 10
    retries: int = 3
    cache_ttl_seconds: int = 3600


@dataclass
class TaxConfig:
    vat_threshold_gbp: float = 135.0
    vat_rate: float = 20.0
    customs_rate: float = 4.0
    platform_rate: float = 0.0
    duty_base: str = "cost_shipping"
    vat_base: str = "selling_price"


@dataclass
class RuntimeConfig:
    timezone: str = "Asia/Tokyo"
    log_level: str = "INFO"


@dataclass
class AppConfig:
    data: DataConfig = field(default_factory=DataConfig)
    exchange_rate: ExchangeRateConfig = field(default_factory=ExchangeRateConfig)
    tax: TaxConfig = field(default_factory=TaxConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)


def _resolve_data_path(raw: str | None, default: str, config_dir: Path) -> str:
    """Relative data paths are taken relative to the config file."""
    if not raw:
        return default
    path = Path(raw)
    if not path.is_absolute():
        path = config_dir / path
    return str(path)


def load_config(path: str | Path | None = None) -> AppConfig:
    """
    Load ``config.yaml`` into an :class:`AppConfig`.

    ``path=None`` returns the built-in defaults (bundled data files, public
    exchange-rate endpoint, UK VAT rules).  A path that is given but does not
    exist is a :class:`ConfigError`.
    """
    if path is None:
        cfg = AppConfig()
        logging.basicConfig(level=getattr(logging, cfg.runtime.log_level.upper(), logging.INFO))
        return cfg

    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as fh:
            raw: dict = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file is not valid YAML: {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file must contain a mapping at the top level: {path}")

    raw = _resolve(raw)
    config_dir = path.parent

    cfg = AppConfig()

    dat = raw.get("data", {}) or {}
    defaults = DataConfig()
    cfg.data = DataConfig(
        shipping_path=_resolve_data_path(dat.get("shipping_path"), defaults.shipping_path, config_dir),
        category_fees_path=_resolve_data_path(
            dat.get("category_fees_path"), defaults.category_fees_path, config_dir
        ),
    )

    fx = raw.get("exchange_rate", {}) or {}
    cfg.exchange_rate = ExchangeRateConfig(
        url=fx.get("url") or ExchangeRateConfig.url,
        base=str(fx.get("base", "GBP")).upper(),
        quote=str(fx.get("quote", "JPY")).upper(),
        rate_path=fx.get("rate_path", "rates.JPY"),
        override=_optional_float(fx.get("override"), "exchange_rate.override"),
        timeout=_number(fx.get("timeout", 10), "exchange_rate.timeout", int),
        retries=_number(fx.get("retries", 3), "exchange_rate.retries", int),
        cache_ttl_seconds=_number(fx.get("cache_ttl_seconds", 3600), "exchange_rate.cache_ttl_seconds", int),
    )

    tx = raw.get("tax", {}) or {}
    cfg.tax = TaxConfig(
        vat_threshold_gbp=_number(tx.get("vat_threshold_gbp", 135.0), "tax.vat_threshold_gbp"),
        vat_rate=_number(tx.get("vat_rate", 20.0), "tax.vat_rate"),
        customs_rate=_number(tx.get("customs_rate", 4.0), "tax.customs_rate"),
        platform_rate=_number(tx.get("platform_rate", 0.0), "tax.platform_rate"),
        duty_base=tx.get("duty_base", "cost_shipping"),
        vat_base=tx.get("vat_base", "selling_price"),
    )
    if cfg.tax.duty_base not in DUTY_BASES:
        raise ConfigError(f"tax.duty_base must be one of {DUTY_BASES}, got {cfg.tax.duty_base!r}")
    if cfg.tax.vat_base not in VAT_BASES:
        raise ConfigError(f"tax.vat_base must be one of {VAT_BASES}, got {cfg.tax.vat_base!r}")

    rt = raw.get("runtime", {}) or {}
    cfg.runtime = RuntimeConfig(
        timezone=rt.get("timezone", "Asia/Tokyo"),
        log_level=rt.get("log_level", "INFO"),
    )

    logging.basicConfig(level=getattr(logging, cfg.runtime.log_level.upper(), logging.INFO))
    return cfg
