"""
Quote evaluation: one immutable input snapshot in, every derived figure out.

Inputs arrive one at a time (a form, a CLI call, an API request) and any of
them may still be unset.  Each change produces a new :class:`QuoteInputs`
via :meth:`QuoteInputs.with_changes`; :func:`evaluate` then recomputes
everything from scratch in dependency order:

  VAT flag      ← selling price, exchange rate
  shipping      ← rate table, weight, dimensions
  profit        ← selling price, cost, rate, weight, shipping price, fee %
  final detail  ← profit, VAT flag, tax settings

A step whose inputs are incomplete yields ``None`` and the quote reports
``status="pending"`` with the names of the missing inputs, so an unset value
is never shown as a computed zero.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Callable, Sequence

from .config import AppConfig, TaxConfig
from .profit import CalcResult, FinalProfitDetail, calculate, final_profit_detail
from .shipping import Dimensions, ShippingOption, ShippingResult, select_cheapest
from .sources_data import CategoryFeeOption, find_category_fee, load_category_fees, load_shipping_table
from .vat_rule import VAT_THRESHOLD_GBP, is_under_threshold, price_in_gbp

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_PENDING = "pending"
STATUS_NO_SHIPPING = "no_shipping"


class InputError(ValueError):
    """Raised when a supplied input cannot be interpreted (e.g. unknown category)."""


@dataclass(frozen=True)
class QuoteInputs:
    """``None`` means "not entered"; ``0`` is a real value."""

    cost_price: float | None = None
    selling_price: float | None = None
    weight_g: float | None = None
    dimensions: Dimensions = field(default_factory=Dimensions)
    category_fee_pct: float | None = None
    category_label: str | None = None
    exchange_rate: float | None = None

    def with_changes(self, **changes) -> "QuoteInputs":
        return replace(self, **changes)

    def as_dict(self) -> dict:
        return {
            "cost_price": self.cost_price,
            "selling_price": self.selling_price,
            "weight_g": self.weight_g,
            "dimensions": self.dimensions.as_dict(),
            "category": self.category_label,
            "category_fee_pct": self.category_fee_pct,
            "exchange_rate": self.exchange_rate,
        }


@dataclass(frozen=True)
class Quote:
    inputs: QuoteInputs
    status: str
    missing: tuple[str, ...] = ()
    shipping: ShippingResult | None = None
    price_gbp: float | None = None
    include_vat: bool = False
    vat_threshold_gbp: float = VAT_THRESHOLD_GBP
    calc: CalcResult | None = None
    final: FinalProfitDetail | None = None

    def as_dict(self) -> dict:
        result: dict = {
            "status": self.status,
            "inputs": self.inputs.as_dict(),
            "vat": {
                "price_gbp": round(self.price_gbp, 2) if self.price_gbp is not None else None,
                "include_vat": self.include_vat,
                "threshold_gbp": self.vat_threshold_gbp,
            },
            "shipping": None,
            "profit": self.calc.as_dict() if self.calc else None,
            "final": self.final.as_dict() if self.final else None,
        }
        if self.missing:
            result["missing"] = list(self.missing)
        if self.shipping is not None:
            result["shipping"] = {"method": self.shipping.method or None, "price_jpy": self.shipping.price}
        return result


def _entered(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def evaluate(
    inputs: QuoteInputs,
    table: Sequence[ShippingOption] | None,
    tax: TaxConfig | None = None,
) -> Quote:
    """Derive every figure for *inputs*; pure, so equal inputs give equal quotes."""
    tax = tax or TaxConfig()

    price_gbp = price_in_gbp(inputs.selling_price, inputs.exchange_rate)
    include_vat = is_under_threshold(price_gbp, tax.vat_threshold_gbp)

    shipping: ShippingResult | None = None
    if table and _entered(inputs.weight_g) and inputs.weight_g > 0:
        shipping = select_cheapest(table, inputs.weight_g, inputs.dimensions)

    missing: list[str] = []
    if not _entered(inputs.selling_price):
        missing.append("selling_price")
    if not _entered(inputs.cost_price):
        missing.append("cost_price")
    if not _entered(inputs.exchange_rate) or inputs.exchange_rate <= 0:
        missing.append("exchange_rate")
    if not _entered(inputs.weight_g) or inputs.weight_g <= 0:
        missing.append("weight_g")
    elif not table:
        missing.append("shipping_table")
    if not _entered(inputs.category_fee_pct):
        missing.append("category_fee_pct")

    if shipping is not None and not shipping.found:
        status = STATUS_NO_SHIPPING
    elif missing:
        status = STATUS_PENDING
    else:
        status = STATUS_OK

    calc: CalcResult | None = None
    final: FinalProfitDetail | None = None
    if status == STATUS_OK:
        calc = calculate(
            selling_price=inputs.selling_price,
            cost_price=inputs.cost_price,
            shipping_jpy=shipping.price,
            fee_pct=inputs.category_fee_pct,
            method=shipping.method,
        )
        final = final_profit_detail(
            selling_price=inputs.selling_price,
            cost_price=inputs.cost_price,
            shipping_jpy=calc.shipping_jpy,
            category_fee_jpy=calc.category_fee_jpy,
            customs_rate=tax.customs_rate,
            platform_rate=tax.platform_rate,
            include_vat=include_vat,
            exchange_rate_gbp_to_jpy=inputs.exchange_rate,
            vat_rate=tax.vat_rate,
            duty_base=tax.duty_base,
            vat_base=tax.vat_base,
        )
    else:
        logger.debug("Quote not computable: status=%s missing=%s", status, missing)

    return Quote(
        inputs=inputs,
        status=status,
        missing=tuple(missing),
        shipping=shipping,
        price_gbp=price_gbp,
        include_vat=include_vat,
        vat_threshold_gbp=tax.vat_threshold_gbp,
        calc=calc,
        final=final,
    )


class Calculator:
    """Loaded tables + tax settings + a rate source, ready to quote."""

    def __init__(
        self,
        table: Sequence[ShippingOption],
        category_fees: Sequence[CategoryFeeOption] = (),
        tax: TaxConfig | None = None,
        rate_provider: Callable[[], float | None] | None = None,
    ) -> None:
        self.table = tuple(table)
        self.category_fees = tuple(category_fees)
        self.tax = tax or TaxConfig()
        self._rate_provider = rate_provider

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "Calculator":
        """Load both data files named in *cfg*; raises ``DataError`` if either is unusable."""
        from .sources_fx import get_rate

        return cls(
            table=load_shipping_table(cfg.data.shipping_path),
            category_fees=load_category_fees(cfg.data.category_fees_path),
            tax=cfg.tax,
            rate_provider=lambda: get_rate(cfg.exchange_rate),
        )

    def current_rate(self) -> float | None:
        return self._rate_provider() if self._rate_provider else None

    def resolve_category(self, name: str) -> CategoryFeeOption:
        option = find_category_fee(self.category_fees, name)
        if option is None:
            raise InputError(f"Unknown category: {name!r}")
        return option

    def build_inputs(
        self,
        *,
        cost_price: float | None = None,
        selling_price: float | None = None,
        weight_g: float | None = None,
        dimensions: Dimensions | None = None,
        category: str | None = None,
        category_fee_pct: float | None = None,
        exchange_rate: float | None = None,
    ) -> QuoteInputs:
        """
        Assemble a snapshot.  A category name is resolved to its fee unless an
        explicit ``category_fee_pct`` is given; a missing rate is filled from
        the rate provider.
        """
        label = None
        if category_fee_pct is None and category:
            option = self.resolve_category(category)
            category_fee_pct, label = option.value, option.label
        elif category:
            label = category

        if exchange_rate is None:
            exchange_rate = self.current_rate()

        return QuoteInputs(
            cost_price=cost_price,
            selling_price=selling_price,
            weight_g=weight_g,
            dimensions=dimensions or Dimensions(),
            category_fee_pct=category_fee_pct,
            category_label=label,
            exchange_rate=exchange_rate,
        )

    def evaluate(self, inputs: QuoteInputs) -> Quote:
        return evaluate(inputs, self.table, self.tax)

    def quote(self, **kwargs) -> Quote:
        return self.evaluate(self.build_inputs(**kwargs))
