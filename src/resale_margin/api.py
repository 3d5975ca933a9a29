"""FastAPI Web API for Resale Margin."""

from __future__ import annotations

import logging
import math
import os
from functools import lru_cache
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from .config import AppConfig, ConfigError, load_config
from .pipeline import Calculator, InputError
from .shipping import Dimensions, eligible_options
from .sources_data import DataError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Resale Margin API",
    description=(
        "Cheapest shipping method, UK low-value VAT check and profit breakdown "
        "for items bought in Japan and sold to UK buyers."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.environ.get("CORS_ORIGINS", "*").split(","),
    allow_methods=["GET"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return load_config(os.environ.get("RESALE_MARGIN_CONFIG") or None)


@lru_cache(maxsize=1)
def get_calculator() -> Calculator:
    """Rate tables are loaded once per process."""
    try:
        return Calculator.from_config(get_config())
    except (ConfigError, DataError) as exc:
        logger.error("Cannot load rate tables: %s", exc)
        raise HTTPException(status_code=503, detail=f"Rate tables unavailable: {exc}") from exc


@app.on_event("startup")
def startup() -> None:
    try:
        calc = get_calculator()
        logger.info(
            "Resale Margin API started (%d shipping options, %d categories).",
            len(calc.table),
            len(calc.category_fees),
        )
    except HTTPException:
        logger.warning("Rate tables not loaded at startup; requests will return 503 until fixed.")


def _require_finite(**values: float | None) -> None:
    """Query floats accept "inf" and "nan"; neither is a usable amount."""
    bad = sorted(name for name, value in values.items() if value is not None and not math.isfinite(value))
    if bad:
        raise HTTPException(status_code=422, detail=f"Non-finite value for: {', '.join(bad)}")


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health", tags=["meta"])
def health() -> dict[str, str]:
    return {"status": "ok", "version": "1.0.0"}


# ── Reference data ────────────────────────────────────────────────────────────

@app.get("/categories", tags=["reference"])
def categories(calc: Calculator = Depends(get_calculator)) -> list[dict[str, Any]]:
    """Marketplace category fees, in file order."""
    return [opt.as_dict() for opt in calc.category_fees]


@app.get("/exchange-rate", tags=["reference"])
def exchange_rate(calc: Calculator = Depends(get_calculator)) -> dict[str, Any]:
    """Current GBP→JPY rate (cached; see `exchange_rate.cache_ttl_seconds`)."""
    rate = calc.current_rate()
    if rate is None:
        raise HTTPException(status_code=503, detail="Exchange rate is currently unavailable.")
    return {"base": "GBP", "quote": "JPY", "rate": rate}


# ── Shipping ──────────────────────────────────────────────────────────────────

@app.get("/shipping/cheapest", tags=["shipping"])
def shipping_cheapest(
    weight_g: float = Query(gt=0, description="Actual weight in grams"),
    length: float = Query(default=0, ge=0, description="Length in cm (0 = not entered)"),
    width: float = Query(default=0, ge=0, description="Width in cm (0 = not entered)"),
    height: float = Query(default=0, ge=0, description="Height in cm (0 = not entered)"),
    calc: Calculator = Depends(get_calculator),
) -> dict[str, Any]:
    """
    Return the cheapest method that can carry the parcel, plus every other
    eligible method cheapest-first.

    **Example:** `/shipping/cheapest?weight_g=500&length=20&width=15&height=5`
    """
    _require_finite(weight_g=weight_g, length=length, width=width, height=height)
    options = eligible_options(calc.table, weight_g, Dimensions(length, width, height))
    if not options:
        raise HTTPException(
            status_code=404,
            detail=f"No shipping method accepts a {weight_g:g}g parcel of {length:g}x{width:g}x{height:g}cm.",
        )
    return {
        "method": options[0].method,
        "price_jpy": options[0].price_jpy,
        "eligible": [opt.as_dict() for opt in options],
    }


# ── Quote ─────────────────────────────────────────────────────────────────────

@app.get("/quote", tags=["quote"])
def quote(
    cost_price: float | None = Query(default=None, ge=0, description="Cost price in JPY"),
    selling_price: float | None = Query(default=None, ge=0, description="Selling price in JPY"),
    weight_g: float | None = Query(default=None, ge=0, description="Actual weight in grams"),
    length: float = Query(default=0, ge=0),
    width: float = Query(default=0, ge=0),
    height: float = Query(default=0, ge=0),
    category: str | None = Query(default=None, description="Category label or category name"),
    category_fee_pct: float | None = Query(default=None, ge=0, le=100, description="Overrides `category`"),
    exchange_rate: float | None = Query(default=None, gt=0, description="GBP→JPY; live rate when omitted"),
    calc: Calculator = Depends(get_calculator),
) -> dict[str, Any]:
    """
    Full breakdown for one listing.  Missing inputs give `status: "pending"`
    with the names in `missing`; a parcel nothing can carry gives
    `status: "no_shipping"`.

    **Example:** `/quote?cost_price=3000&selling_price=10000&weight_g=500&category=Books&exchange_rate=190`
    """
    _require_finite(
        cost_price=cost_price,
        selling_price=selling_price,
        weight_g=weight_g,
        length=length,
        width=width,
        height=height,
        category_fee_pct=category_fee_pct,
        exchange_rate=exchange_rate,
    )
    try:
        result = calc.quote(
            cost_price=cost_price,
            selling_price=selling_price,
            weight_g=weight_g,
            dimensions=Dimensions(length, width, height),
            category=category,
            category_fee_pct=category_fee_pct,
            exchange_rate=exchange_rate,
        )
    except InputError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return result.as_dict()
