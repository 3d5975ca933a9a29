"""
Profit arithmetic for a single listing, all amounts in JPY.

  category fee  = selling price × fee % / 100
  actual cost   = cost price + shipping + category fee
  gross profit  = selling price − actual cost
  profit margin = gross profit / selling price   (0.0 when price is 0)

The final detail stacks the cross-border deductions on top of gross profit:

  customs duty  = dutiable base × customs rate / 100
                  base "cost_shipping"      → cost + shipping
                  base "cost_shipping_fees" → cost + shipping + category fee
  VAT           = only when VAT applies and a GBP rate is known; the VAT base
                  is converted to GBP, taxed, and converted back
                  base "selling_price"  → VAT charged on top of the price
                  base "vat_inclusive"  → price already contains the VAT
  platform fee  = selling price × platform rate / 100
  net profit    = gross profit − customs duty − VAT − platform fee
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .config import DUTY_BASES, VAT_BASES

DEFAULT_VAT_RATE = 20.0


def category_fee(selling_price: float, fee_pct: float) -> float:
    return selling_price * fee_pct / 100


def actual_cost(cost_price: float, shipping_jpy: float, category_fee_jpy: float) -> float:
    return cost_price + shipping_jpy + category_fee_jpy


def gross_profit(selling_price: float, actual_cost_jpy: float) -> float:
    return selling_price - actual_cost_jpy


def profit_margin(gross_profit_jpy: float, selling_price: float) -> float:
    """Fraction of the selling price kept as profit; ``0.0`` for a zero price."""
    if selling_price == 0:
        return 0.0
    return gross_profit_jpy / selling_price


@dataclass(frozen=True)
class CalcResult:
    shipping_jpy: float
    category_fee_jpy: float
    actual_cost: float
    gross_profit: float
    profit_margin: float
    method: str

    def as_dict(self) -> dict:
        return {
            "method": self.method,
            "shipping_jpy": round(self.shipping_jpy, 2),
            "category_fee_jpy": round(self.category_fee_jpy, 2),
            "actual_cost": round(self.actual_cost, 2),
            "gross_profit": round(self.gross_profit, 2),
            "profit_margin": round(self.profit_margin, 4),
            "profit_margin_pct": round(self.profit_margin * 100, 1),
        }


def calculate(
    selling_price: float,
    cost_price: float,
    shipping_jpy: float,
    fee_pct: float,
    method: str = "",
) -> CalcResult:
    """Run the four profit steps in order and bundle the results."""
    fee = category_fee(selling_price, fee_pct)
    cost = actual_cost(cost_price, shipping_jpy, fee)
    gross = gross_profit(selling_price, cost)
    return CalcResult(
        shipping_jpy=shipping_jpy,
        category_fee_jpy=fee,
        actual_cost=cost,
        gross_profit=gross,
        profit_margin=profit_margin(gross, selling_price),
        method=method,
    )


@dataclass(frozen=True)
class FinalProfitDetail:
    selling_price: float
    cost_price: float
    shipping_jpy: float
    category_fee_jpy: float
    customs_rate: float
    dutiable_base_jpy: float
    customs_duty_jpy: float
    include_vat: bool
    vat_rate: float
    vat_base: str
    vat_jpy: float
    vat_gbp: float | None
    platform_rate: float
    platform_fee_jpy: float
    exchange_rate: float | None
    selling_price_gbp: float | None

    @property
    def actual_cost(self) -> float:
        return actual_cost(self.cost_price, self.shipping_jpy, self.category_fee_jpy)

    @property
    def gross_profit(self) -> float:
        return gross_profit(self.selling_price, self.actual_cost)

    @property
    def total_deductions_jpy(self) -> float:
        return self.customs_duty_jpy + self.vat_jpy + self.platform_fee_jpy

    @property
    def net_profit(self) -> float:
        return self.gross_profit - self.total_deductions_jpy

    @property
    def net_margin(self) -> float:
        return profit_margin(self.net_profit, self.selling_price)

    def as_dict(self) -> dict:
        result = {
            "selling_price": round(self.selling_price, 2),
            "cost_price": round(self.cost_price, 2),
            "shipping_jpy": round(self.shipping_jpy, 2),
            "category_fee_jpy": round(self.category_fee_jpy, 2),
            "actual_cost": round(self.actual_cost, 2),
            "gross_profit": round(self.gross_profit, 2),
            "customs_rate_pct": self.customs_rate,
            "dutiable_base_jpy": round(self.dutiable_base_jpy, 2),
            "customs_duty_jpy": round(self.customs_duty_jpy, 2),
            "include_vat": self.include_vat,
            "vat_rate_pct": self.vat_rate,
            "vat_base": self.vat_base,
            "vat_jpy": round(self.vat_jpy, 2),
            "platform_rate_pct": self.platform_rate,
            "platform_fee_jpy": round(self.platform_fee_jpy, 2),
            "total_deductions_jpy": round(self.total_deductions_jpy, 2),
            "net_profit": round(self.net_profit, 2),
            "net_margin": round(self.net_margin, 4),
            "net_margin_pct": round(self.net_margin * 100, 1),
        }
        # GBP figures only exist when a rate was known
        if self.exchange_rate is not None:
            result["exchange_rate_gbp_jpy"] = self.exchange_rate
            result["selling_price_gbp"] = (
                round(self.selling_price_gbp, 2) if self.selling_price_gbp is not None else None
            )
            result["vat_gbp"] = round(self.vat_gbp, 2) if self.vat_gbp is not None else None
        return result


def _vat_portion(base_gbp: float, vat_rate: float, vat_base: str) -> float:
    if vat_base == "vat_inclusive":
        return base_gbp * vat_rate / (100 + vat_rate)
    return base_gbp * vat_rate / 100


def final_profit_detail(
    selling_price: float,
    cost_price: float,
    shipping_jpy: float,
    category_fee_jpy: float,
    customs_rate: float,
    platform_rate: float = 0.0,
    include_vat: bool = False,
    exchange_rate_gbp_to_jpy: float | None = None,
    *,
    vat_rate: float = DEFAULT_VAT_RATE,
    duty_base: str = "cost_shipping",
    vat_base: str = "selling_price",
) -> FinalProfitDetail:
    """
    Compute the net profit after customs duty, VAT and the platform fee.

    Without a usable exchange rate no VAT is deducted and the GBP figures are
    ``None``; customs duty is charged in JPY and never needs the rate.

    Raises:
        ValueError: *duty_base* or *vat_base* is not a known base name.
    """
    if duty_base not in DUTY_BASES:
        raise ValueError(f"Unknown duty base {duty_base!r}; expected one of {DUTY_BASES}")
    if vat_base not in VAT_BASES:
        raise ValueError(f"Unknown VAT base {vat_base!r}; expected one of {VAT_BASES}")

    rate = exchange_rate_gbp_to_jpy
    if rate is not None and (not math.isfinite(rate) or rate <= 0):
        rate = None

    dutiable = cost_price + shipping_jpy
    if duty_base == "cost_shipping_fees":
        dutiable += category_fee_jpy
    duty = dutiable * customs_rate / 100

    price_gbp = selling_price / rate if rate is not None else None

    vat_gbp: float | None = None
    vat_jpy = 0.0
    if rate is not None:
        vat_gbp = _vat_portion(price_gbp, vat_rate, vat_base) if include_vat else 0.0
        vat_jpy = vat_gbp * rate

    return FinalProfitDetail(
        selling_price=selling_price,
        cost_price=cost_price,
        shipping_jpy=shipping_jpy,
        category_fee_jpy=category_fee_jpy,
        customs_rate=customs_rate,
        dutiable_base_jpy=dutiable,
        customs_duty_jpy=duty,
        include_vat=include_vat,
        vat_rate=vat_rate,
        vat_base=vat_base,
        vat_jpy=vat_jpy,
        vat_gbp=vat_gbp,
        platform_rate=platform_rate,
        platform_fee_jpy=selling_price * (platform_rate or 0.0) / 100,
        exchange_rate=rate,
        selling_price_gbp=price_gbp,
    )
