"""Quote rendering: plain-text panel, Markdown and JSON."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from dateutil import tz

from .pipeline import STATUS_NO_SHIPPING, STATUS_PENDING, Quote

logger = logging.getLogger(__name__)

PENDING = "pending…"
UNKNOWN = "unknown"

_DISCLAIMER = (
    "> **Disclaimer:** Estimates only. Shipping prices come from the configured rate table, the "
    "exchange rate is the latest fetched value, and customs duty / VAT follow the configured rates. "
    "Check the carrier and HMRC guidance before pricing a listing."
)

_MISSING_LABELS = {
    "selling_price": "selling price",
    "cost_price": "cost price",
    "exchange_rate": "exchange rate",
    "weight_g": "weight",
    "shipping_table": "shipping rate table",
    "category_fee_pct": "category",
}


def _now_local(timezone_str: str) -> datetime:
    local_tz = tz.gettz(timezone_str) or tz.tzlocal()
    return datetime.now(tz=local_tz)


def _yen(value: float | None) -> str:
    return PENDING if value is None else f"¥{value:,.0f}"


def _pct(value: float | None) -> str:
    return PENDING if value is None else f"{value * 100:.1f}%"


def vat_label(quote: Quote) -> str:
    if quote.price_gbp is None:
        return "not applicable (price or rate missing)"
    if quote.include_vat:
        return f"applies (£{quote.price_gbp:,.2f} ≤ £{quote.vat_threshold_gbp:g})"
    return f"not applicable (£{quote.price_gbp:,.2f} > £{quote.vat_threshold_gbp:g})"


def shipping_lines(quote: Quote) -> tuple[str, str]:
    """(method, price) display strings: pending / unknown / actual."""
    if quote.shipping is None:
        return PENDING, PENDING
    if not quote.shipping.found:
        return UNKNOWN, UNKNOWN
    return quote.shipping.method, _yen(quote.shipping.price)


def generate_text_report(quote: Quote) -> str:
    SEP = "-" * 60
    method, price = shipping_lines(quote)
    lines = [
        SEP,
        f"  VAT          : {vat_label(quote)}",
        f"  Shipping     : {method}",
        f"  Shipping cost: {price}",
        SEP,
    ]

    if quote.status == STATUS_NO_SHIPPING:
        lines.append("  No shipping method can carry this parcel.")
        lines.append(SEP)
        return "\n".join(lines)

    if quote.status == STATUS_PENDING:
        needed = ", ".join(_MISSING_LABELS.get(m, m) for m in quote.missing)
        lines.append(f"  Waiting for: {needed}")
        lines.append(SEP)
        return "\n".join(lines)

    calc, final = quote.calc, quote.final
    lines += [
        f"  Category fee : {_yen(calc.category_fee_jpy)}",
        f"  Actual cost  : {_yen(calc.actual_cost)}",
        f"  Gross profit : {_yen(calc.gross_profit)}",
        f"  Margin       : {_pct(calc.profit_margin)}",
        SEP,
        f"  Customs duty : {_yen(final.customs_duty_jpy)}  ({final.customs_rate:g}% of {_yen(final.dutiable_base_jpy)})",
        f"  VAT          : {_yen(final.vat_jpy)}"
        + (f"  (£{final.vat_gbp:,.2f})" if final.vat_gbp else ""),
        f"  Platform fee : {_yen(final.platform_fee_jpy)}",
        f"  Net profit   : {_yen(final.net_profit)}",
        f"  Net margin   : {_pct(final.net_margin)}",
        SEP,
    ]
    return "\n".join(lines)


def generate_markdown_report(quote: Quote, generated_at: str, timezone_str: str = "Asia/Tokyo") -> str:
    method, price = shipping_lines(quote)
    rows = [
        ("Shipping method", method),
        ("Shipping cost", price),
        ("VAT", vat_label(quote)),
    ]
    if quote.calc and quote.final:
        calc, final = quote.calc, quote.final
        rows += [
            ("Category fee", _yen(calc.category_fee_jpy)),
            ("Actual cost", _yen(calc.actual_cost)),
            ("Gross profit", _yen(calc.gross_profit)),
            ("Profit margin", _pct(calc.profit_margin)),
            ("Customs duty", _yen(final.customs_duty_jpy)),
            ("VAT amount", _yen(final.vat_jpy)),
            ("Platform fee", _yen(final.platform_fee_jpy)),
            ("**Net profit**", f"**{_yen(final.net_profit)}**"),
            ("Net margin", _pct(final.net_margin)),
        ]
    table = "| Item | Value |\n|---|---|\n" + "\n".join(f"| {k} | {v} |" for k, v in rows) + "\n"

    status_md = ""
    if quote.status == STATUS_PENDING:
        needed = ", ".join(_MISSING_LABELS.get(m, m) for m in quote.missing)
        status_md = f"\n_Pending: waiting for {needed}._\n"
    elif quote.status == STATUS_NO_SHIPPING:
        status_md = "\n_No shipping method can carry this parcel._\n"

    return f"""# Resale Margin — Quote

**Generated:** {generated_at} ({timezone_str})
**Status:** {quote.status}

---

{table}{status_md}
---

{_DISCLAIMER}
"""


def generate_json_report(quote: Quote, generated_at: str, timezone_str: str = "Asia/Tokyo") -> dict[str, Any]:
    return {
        "meta": {
            "generated_at": generated_at,
            "timezone": timezone_str,
        },
        "quote": quote.as_dict(),
    }


def write_reports(
    quote: Quote,
    reports_dir: str | Path,
    timezone_str: str = "Asia/Tokyo",
) -> tuple[Path, Path]:
    """Write Markdown + JSON renderings of *quote*. Returns (md_path, json_path)."""
    reports_dir = Path(reports_dir)
    reports_dir.mkdir(parents=True, exist_ok=True)

    now = _now_local(timezone_str)
    generated_at = now.isoformat(timespec="seconds")
    file_stem = f"quote_{now.strftime('%Y%m%d_%H%M%S')}"

    md_path = reports_dir / f"{file_stem}.md"
    json_path = reports_dir / f"{file_stem}.json"

    md_path.write_text(generate_markdown_report(quote, generated_at, timezone_str), encoding="utf-8")
    json_path.write_text(
        json.dumps(generate_json_report(quote, generated_at, timezone_str), indent=2, ensure_ascii=False, default=str),
        encoding="utf-8",
    )

    logger.info("Report written: %s", md_path)
    logger.info("Report written: %s", json_path)
    return md_path, json_path
