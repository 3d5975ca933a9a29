"""
UK low-value-consignment VAT rule.

Goods sold to UK buyers in consignments worth £135 or less have VAT collected
at the point of sale by the seller or marketplace, instead of at the border.
The classifier only compares a GBP amount against the threshold; converting
the JPY selling price is done by :func:`price_in_gbp`.
"""

from __future__ import annotations

import math

VAT_THRESHOLD_GBP = 135.0


def is_under_threshold(price_gbp: float | None, threshold: float = VAT_THRESHOLD_GBP) -> bool:
    """``True`` when *price_gbp* is at or below the threshold; ``False`` when unknown."""
    if price_gbp is None:
        return False
    return price_gbp <= threshold


def price_in_gbp(selling_price_jpy: float | None, rate_gbp_to_jpy: float | None) -> float | None:
    """Convert a JPY price at *rate_gbp_to_jpy* (yen per pound). ``None`` if not computable."""
    if selling_price_jpy is None or rate_gbp_to_jpy is None:
        return None
    if not (math.isfinite(selling_price_jpy) and math.isfinite(rate_gbp_to_jpy)) or rate_gbp_to_jpy <= 0:
        return None
    return selling_price_jpy / rate_gbp_to_jpy


def vat_applies(
    selling_price_jpy: float | None,
    rate_gbp_to_jpy: float | None,
    threshold: float = VAT_THRESHOLD_GBP,
) -> bool:
    return is_under_threshold(price_in_gbp(selling_price_jpy, rate_gbp_to_jpy), threshold)
