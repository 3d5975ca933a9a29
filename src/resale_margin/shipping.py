"""
Cheapest-shipping selection over a bracketed rate table.

A rate table is an ordered tuple of :class:`ShippingOption`.  An option is
eligible for a parcel when the parcel's weight and every entered dimension fit
under the option's caps.  Caps left unset are not checked, and a dimension of
``0`` means "not entered yet" so it never rules an option out.

Among eligible options the cheapest wins; on equal prices the option listed
first in the table wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dimensions:
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def is_entered(self) -> bool:
        return self.length > 0 or self.width > 0 or self.height > 0

    @property
    def girth(self) -> float:
        """Length plus girth: longest side plus twice the sum of the other two."""
        longest, mid, short = sorted((self.length, self.width, self.height), reverse=True)
        return longest + 2 * (mid + short)

    @property
    def total(self) -> float:
        return self.length + self.width + self.height

    def as_dict(self) -> dict[str, float]:
        return {"length": self.length, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class ShippingOption:
    method: str
    max_weight_g: float
    price_jpy: float
    max_length_cm: float | None = None
    max_width_cm: float | None = None
    max_height_cm: float | None = None
    max_girth_cm: float | None = None
    max_sum_cm: float | None = None

    def accepts(self, weight_g: float, dims: Dimensions) -> bool:
        if weight_g > self.max_weight_g:
            return False
        for value, cap in (
            (dims.length, self.max_length_cm),
            (dims.width, self.max_width_cm),
            (dims.height, self.max_height_cm),
        ):
            if cap is not None and value > 0 and value > cap:
                return False
        if self.max_girth_cm is not None and dims.is_entered and dims.girth > self.max_girth_cm:
            return False
        if self.max_sum_cm is not None and dims.total > self.max_sum_cm:
            return False
        return True

    def as_dict(self) -> dict:
        result = {
            "method": self.method,
            "max_weight_g": self.max_weight_g,
            "price_jpy": self.price_jpy,
        }
        for key in ("max_length_cm", "max_width_cm", "max_height_cm", "max_girth_cm", "max_sum_cm"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass(frozen=True)
class ShippingResult:
    """``price is None`` means no method can carry the parcel."""

    method: str
    price: float | None

    @property
    def found(self) -> bool:
        return self.price is not None


NO_ELIGIBLE_METHOD = ShippingResult(method="", price=None)


def eligible_options(
    table: Sequence[ShippingOption],
    weight_g: float,
    dimensions: Dimensions | None = None,
) -> list[ShippingOption]:
    """Every option that can carry the parcel, cheapest first (stable on ties)."""
    dims = dimensions or Dimensions()
    eligible = [opt for opt in table if opt.accepts(weight_g, dims)]
    return sorted(eligible, key=lambda opt: opt.price_jpy)


def select_cheapest(
    table: Sequence[ShippingOption],
    weight_g: float,
    dimensions: Dimensions | None = None,
) -> ShippingResult:
    """
    Return the cheapest eligible method for the parcel.

    Args:
        table:      Rate table in priority order.
        weight_g:   Actual parcel weight in grams (must be > 0; callers treat
                    an absent weight as "not yet computable").
        dimensions: Parcel size in cm; zeros are "not entered".

    Returns:
        :class:`ShippingResult` of the winning option, or
        :data:`NO_ELIGIBLE_METHOD` when nothing fits.
    """
    options = eligible_options(table, weight_g, dimensions)
    if not options:
        logger.info("No shipping method accepts %.0fg %s", weight_g, dimensions or Dimensions())
        return NO_ELIGIBLE_METHOD
    best = options[0]
    logger.debug("Cheapest of %d eligible method(s): %s (%s JPY)", len(options), best.method, best.price_jpy)
    return ShippingResult(method=best.method, price=best.price_jpy)
