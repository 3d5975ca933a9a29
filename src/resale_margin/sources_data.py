"""Load the shipping rate table and the category-fee list (JSON or CSV)."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

from .normalize import normalize_categories, normalize_shipping_frame, parse_amount
from .shipping import ShippingOption

logger = logging.getLogger(__name__)


class DataError(Exception):
    """Raised when a rate table or category-fee file is missing or malformed."""


@dataclass(frozen=True)
class CategoryFeeOption:
    label: str
    value: float
    categories: list[str] = field(default_factory=list)

    def matches(self, name: str) -> bool:
        key = name.strip().casefold()
        if self.label.casefold() == key:
            return True
        return any(c.casefold() == key for c in self.categories)

    def as_dict(self) -> dict:
        return {"label": self.label, "value": self.value, "categories": list(self.categories)}


def _read_frame(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise DataError(f"Data file not found: {path}")
    try:
        if path.suffix.lower() == ".csv":
            return pd.read_csv(path)
        with path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, ValueError) as exc:
        raise DataError(f"Cannot read {path}: {exc}") from exc

    # Either a bare array or {"options": [...]}
    if isinstance(raw, dict):
        raw = raw.get("options", raw.get("methods"))
    if not isinstance(raw, list):
        raise DataError(f"{path} must contain a list of entries")
    return pd.DataFrame(raw)


def _cap(value: object) -> float | None:
    if value is None or pd.isna(value):
        return None
    return float(value)


def load_shipping_table(path: str | Path) -> tuple[ShippingOption, ...]:
    """
    Load and validate the shipping rate table.

    Row order is kept as the tie-break priority.  Duplicate method labels are
    rejected since results are reported by label.

    Raises:
        DataError: file missing, unreadable, empty, or with duplicate methods.
    """
    path = Path(path)
    df = normalize_shipping_frame(_read_frame(path))
    if df.empty:
        raise DataError(f"Rate table {path} has no usable rows")

    dupes = sorted(df.loc[df["method"].duplicated(), "method"].unique())
    if dupes:
        raise DataError(f"Rate table {path} repeats method label(s): {', '.join(dupes)}")

    table = tuple(
        ShippingOption(
            method=row["method"],
            max_weight_g=float(row["max_weight_g"]),
            price_jpy=float(row["price_jpy"]),
            max_length_cm=_cap(row["max_length_cm"]),
            max_width_cm=_cap(row["max_width_cm"]),
            max_height_cm=_cap(row["max_height_cm"]),
            max_girth_cm=_cap(row["max_girth_cm"]),
            max_sum_cm=_cap(row["max_sum_cm"]),
        )
        for row in df.to_dict(orient="records")
    )
    logger.info("Loaded %d shipping option(s) from %s", len(table), path)
    return table


def load_category_fees(path: str | Path) -> tuple[CategoryFeeOption, ...]:
    """
    Load the marketplace category-fee list.

    Entries with a missing label or a fee outside 0–100 % are skipped with a
    warning.
    """
    path = Path(path)
    df = _read_frame(path)
    if "label" not in df.columns or "value" not in df.columns:
        raise DataError(f"{path} needs 'label' and 'value' fields")
    if "categories" not in df.columns:
        df["categories"] = None

    options: list[CategoryFeeOption] = []
    for row in df.to_dict(orient="records"):
        label = str(row["label"]).strip() if row["label"] is not None and not pd.isna(row["label"]) else ""
        value = parse_amount(row["value"])
        if not label or value is None or not 0 <= value <= 100:
            logger.warning("Skipping category fee entry %r (value %r)", row.get("label"), row.get("value"))
            continue
        options.append(CategoryFeeOption(label=label, value=value, categories=normalize_categories(row["categories"])))

    logger.info("Loaded %d category fee option(s) from %s", len(options), path)
    return tuple(options)


def find_category_fee(options: tuple[CategoryFeeOption, ...] | list[CategoryFeeOption], name: str) -> CategoryFeeOption | None:
    """Look up an option by its label or by one of its category names (case-insensitive)."""
    if not name or not name.strip():
        return None
    return next((opt for opt in options if opt.matches(name)), None)
