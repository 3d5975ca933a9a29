"""Command-line entry point for Resale Margin."""

from __future__ import annotations

import argparse
import json
import logging
import sys

logger = logging.getLogger(__name__)


def _add_config_arg(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: built-in settings and bundled rate tables)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resale-margin",
        description="Cheapest shipping, UK VAT check and profit breakdown for Japan → UK resale.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── quote ──────────────────────────────────────────────────────────────
    quote_cmd = sub.add_parser("quote", help="Compute shipping, VAT and the full profit breakdown.")
    _add_config_arg(quote_cmd)
    quote_cmd.add_argument("--cost", default=None, help="Cost price in JPY")
    quote_cmd.add_argument("--price", default=None, help="Selling price in JPY")
    quote_cmd.add_argument("--weight", default=None, help="Actual weight in grams")
    quote_cmd.add_argument("--dims", default=None, metavar="LxWxH", help="Parcel size in cm, e.g. 20x15x5")
    quote_cmd.add_argument("--category", default=None, help="Category label or category name (see `categories`)")
    quote_cmd.add_argument("--fee", default=None, help="Category fee %% (overrides --category lookup)")
    quote_cmd.add_argument("--rate", default=None, help="GBP→JPY rate (skips the live fetch)")
    quote_cmd.add_argument(
        "--json",
        dest="output_json",
        action="store_true",
        help="Output only machine-readable JSON.",
    )
    quote_cmd.add_argument("--save-dir", default=None, help="Also write Markdown + JSON reports here.")

    # ── shipping ───────────────────────────────────────────────────────────
    ship_cmd = sub.add_parser("shipping", help="List shipping methods that can carry a parcel, cheapest first.")
    _add_config_arg(ship_cmd)
    ship_cmd.add_argument("--weight", required=True, help="Actual weight in grams")
    ship_cmd.add_argument("--dims", default=None, metavar="LxWxH", help="Parcel size in cm, e.g. 20x15x5")
    ship_cmd.add_argument("--json", dest="output_json", action="store_true", help="Output JSON.")

    # ── categories ─────────────────────────────────────────────────────────
    cat_cmd = sub.add_parser("categories", help="List marketplace category fees.")
    _add_config_arg(cat_cmd)
    cat_cmd.add_argument("--json", dest="output_json", action="store_true", help="Output JSON.")

    # ── rate ───────────────────────────────────────────────────────────────
    rate_cmd = sub.add_parser("rate", help="Show the current GBP→JPY exchange rate.")
    _add_config_arg(rate_cmd)

    return parser


def _load(args: argparse.Namespace):
    """Load config and both data tables, exiting with code 2/3 on failure."""
    from .config import ConfigError, load_config
    from .pipeline import Calculator
    from .sources_data import DataError

    try:
        cfg = load_config(args.config)
    except ConfigError as exc:
        print(f"[ERROR] Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        calculator = Calculator.from_config(cfg)
    except DataError as exc:
        print(f"[ERROR] Data load failed: {exc}", file=sys.stderr)
        sys.exit(3)
    return cfg, calculator


def _number(raw: str | None, flag: str) -> float | None:
    from .normalize import parse_amount

    value = parse_amount(raw)
    if raw is not None and str(raw).strip() and value is None:
        print(f"[ERROR] {flag} must be a number, got {raw!r}", file=sys.stderr)
        sys.exit(2)
    return value


# ---------------------------------------------------------------------------
# Sub-command implementations
# ---------------------------------------------------------------------------

def _cmd_quote(args: argparse.Namespace) -> None:
    """Build one quote from the flags and print it."""
    from .normalize import parse_dimensions
    from .pipeline import STATUS_OK, InputError
    from .report import generate_text_report, write_reports
    from .shipping import Dimensions

    cfg, calculator = _load(args)

    length, width, height = parse_dimensions(args.dims)
    try:
        quote = calculator.quote(
            cost_price=_number(args.cost, "--cost"),
            selling_price=_number(args.price, "--price"),
            weight_g=_number(args.weight, "--weight"),
            dimensions=Dimensions(length, width, height),
            category=args.category,
            category_fee_pct=_number(args.fee, "--fee"),
            exchange_rate=_number(args.rate, "--rate"),
        )
    except InputError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        sys.exit(2)

    if args.output_json:
        print(json.dumps(quote.as_dict(), indent=2, ensure_ascii=False))
    else:
        print(generate_text_report(quote))

    if args.save_dir:
        md_path, json_path = write_reports(quote, args.save_dir, cfg.runtime.timezone)
        if not args.output_json:
            print(f"Report (MD):   {md_path}")
            print(f"Report (JSON): {json_path}")

    if quote.status != STATUS_OK:
        sys.exit(1)


def _cmd_shipping(args: argparse.Namespace) -> None:
    """List every eligible method for the parcel."""
    from .normalize import parse_dimensions
    from .shipping import Dimensions, eligible_options

    _, calculator = _load(args)

    weight = _number(args.weight, "--weight")
    if weight is None or weight <= 0:
        print("[ERROR] --weight must be a positive number of grams.", file=sys.stderr)
        sys.exit(2)
    dims = Dimensions(*parse_dimensions(args.dims))

    options = eligible_options(calculator.table, weight, dims)
    if not options:
        print(f"No shipping method accepts {weight:g}g {args.dims or ''}".rstrip(), file=sys.stderr)
        sys.exit(1)

    records = [opt.as_dict() for opt in options]
    if args.output_json:
        print(json.dumps(records, indent=2, ensure_ascii=False))
        return

    SEP = "-" * 60
    print(SEP)
    print(f"  {len(records)} method(s) for {weight:g}g, cheapest first")
    print(SEP)
    for rec in records:
        print(f"  {rec['method']:<32} ¥{rec['price_jpy']:>8,.0f}   (≤ {rec['max_weight_g']:g}g)")
    print(SEP)


def _cmd_categories(args: argparse.Namespace) -> None:
    _, calculator = _load(args)
    records = [opt.as_dict() for opt in calculator.category_fees]
    if args.output_json:
        print(json.dumps(records, indent=2, ensure_ascii=False))
        return
    for rec in records:
        covers = f"  — {', '.join(rec['categories'])}" if rec["categories"] else ""
        print(f"  {rec['label']} ({rec['value']:g}%){covers}")


def _cmd_rate(args: argparse.Namespace) -> None:
    from .config import ConfigError, load_config
    from .http import NetworkError, ParseError
    from .sources_fx import fetch_rate

    try:
        cfg = load_config(args.config)
    except ConfigError as exc:
        print(f"[ERROR] Configuration error: {exc}", file=sys.stderr)
        sys.exit(2)

    fx = cfg.exchange_rate
    if fx.override is not None and fx.override > 0:
        print(f"1 {fx.base} = {fx.override:.4f} {fx.quote} (fixed in config)")
        return

    try:
        rate = fetch_rate(fx)
    except (NetworkError, ParseError) as exc:
        print(f"[ERROR] Exchange rate fetch failed: {exc}", file=sys.stderr)
        sys.exit(3)
    print(f"1 {fx.base} = {rate:.4f} {fx.quote}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "quote":
        _cmd_quote(args)
    elif args.command == "shipping":
        _cmd_shipping(args)
    elif args.command == "categories":
        _cmd_categories(args)
    elif args.command == "rate":
        _cmd_rate(args)
    else:
        parser.print_help()
        sys.exit(0)

    sys.exit(0)


if __name__ == "__main__":
    main()
