"""Input cleaning: numeric form values, dimensions, and rate-table columns."""

from __future__ import annotations

import logging
import math
import re

import pandas as pd

logger = logging.getLogger(__name__)

_DIMS_SPLIT = re.compile(r"\s*[x×*,]\s*", re.IGNORECASE)
_THOUSANDS = re.compile(r"(?<=\d)[,_](?=\d{3}\b)")

# Canonical shipping-table columns.
SHIPPING_COLUMNS = [
    "method",
    "max_weight_g",
    "max_length_cm",
    "max_width_cm",
    "max_height_cm",
    "max_girth_cm",
    "max_sum_cm",
    "price_jpy",
]

# Column name variants found in rate tables → canonical names.
_SHIPPING_ALIASES: dict[str, str] = {
    "method": "method",
    "name": "method",
    "service": "method",
    "maxweightgrams": "max_weight_g",
    "max_weight_grams": "max_weight_g",
    "max_weight_g": "max_weight_g",
    "maxweight": "max_weight_g",
    "weight_limit_g": "max_weight_g",
    "maxlengthcm": "max_length_cm",
    "max_length_cm": "max_length_cm",
    "maxlength": "max_length_cm",
    "maxwidthcm": "max_width_cm",
    "max_width_cm": "max_width_cm",
    "maxwidth": "max_width_cm",
    "maxheightcm": "max_height_cm",
    "max_height_cm": "max_height_cm",
    "maxheight": "max_height_cm",
    "maxgirthcm": "max_girth_cm",
    "max_girth_cm": "max_girth_cm",
    "maxgirth": "max_girth_cm",
    "maxsumcm": "max_sum_cm",
    "max_sum_cm": "max_sum_cm",
    "maxtotalcm": "max_sum_cm",
    "pricejpy": "price_jpy",
    "price_jpy": "price_jpy",
    "price": "price_jpy",
}


def parse_amount(raw: object) -> float | None:
    """
    Parse a form value into a float, keeping "unset" distinct from zero.

    - ``None``, ``""`` and whitespace → ``None``
    - ``"1,200"`` → ``1200.0``
    - ``0`` / ``"0"`` → ``0.0``
    - NaN, infinities and unparseable text → ``None``
    """
    if raw is None:
        return None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        s = _THOUSANDS.sub("", str(raw).strip())
        if not s:
            return None
        try:
            value = float(s)
        except ValueError:
            logger.debug("parse_amount: cannot parse %r", raw)
            return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def parse_dimensions(raw: str | None) -> tuple[float, float, float]:
    """
    Parse ``"LxWxH"`` (cm) into a triple.

    Missing or unparseable parts become ``0`` ("not entered"), as do negative
    values, so a half-filled form never rules a shipping method out.
    """
    if raw is None or not str(raw).strip():
        return (0.0, 0.0, 0.0)
    parts = [p for p in _DIMS_SPLIT.split(str(raw).strip()) if p]
    values = [parse_amount(p) for p in parts[:3]]
    values += [None] * (3 - len(values))
    cleaned = [v if v is not None and v > 0 else 0.0 for v in values]
    return (cleaned[0], cleaned[1], cleaned[2])


def _alias_key(col: str) -> str:
    return str(col).strip().lower().replace(" ", "_").replace("-", "_")


def normalize_shipping_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename rate-table columns to canonical names and coerce numeric columns.

    Rows without a method name, weight cap or price are dropped; optional
    dimension caps stay ``NaN`` when absent.  Row order is preserved since it
    is the tie-break order.
    """
    mapping = {}
    for col in df.columns:
        key = _alias_key(col)
        target = _SHIPPING_ALIASES.get(key) or _SHIPPING_ALIASES.get(key.replace("_", ""))
        if target:
            mapping[col] = target
    df = df.rename(columns=mapping)

    for col in SHIPPING_COLUMNS:
        if col not in df.columns:
            logger.debug("Column '%s' not found in rate table — filling with None", col)
            df[col] = None
    df = df[SHIPPING_COLUMNS].copy()

    df["method"] = df["method"].map(lambda v: None if pd.isna(v) else str(v).strip() or None)
    for col in SHIPPING_COLUMNS[1:]:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    required = df["method"].notna() & df["max_weight_g"].notna() & df["price_jpy"].notna()
    dropped = int((~required).sum())
    if dropped:
        logger.warning("Rate table: dropped %d row(s) missing method, weight cap or price", dropped)
    return df.loc[required].reset_index(drop=True)


def normalize_categories(raw: object) -> list[str]:
    """Accept a list, a ``|``/``;``-separated string, or nothing."""
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return []
    if isinstance(raw, (list, tuple)):
        return [str(c).strip() for c in raw if str(c).strip()]
    return [c.strip() for c in re.split(r"[|;]", str(raw)) if c.strip()]
