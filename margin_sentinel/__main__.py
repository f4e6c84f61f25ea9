"""CLI entry point for margin-sentinel.

Usage:
    # List the data types files are detected as
    python -m margin_sentinel types

    # Import files (or directories of files) and show what was recognised
    python -m margin_sentinel import data/2026-02/
    python -m margin_sentinel import 売上.csv --type sales --year 2026 --month 2

    # Import then print per-store profit, budget progress and alerts
    python -m margin_sentinel report data/2026-02/
    python -m margin_sentinel report data/2026-02/ --store 1 --alerts rules.yaml

Exit status is 1 when the imported data has validation errors.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any


def _build_settings(args: argparse.Namespace):
    from .config import create_default_settings

    overrides: dict[str, Any] = {}
    if getattr(args, "year", None) is not None:
        overrides["target_year"] = args.year
    if getattr(args, "month", None) is not None:
        overrides["target_month"] = args.month
    if getattr(args, "alerts", None):
        overrides["alert_rules_path"] = args.alerts
    return create_default_settings(date.today(), **overrides)


def _collect_files(paths: list[str]) -> list[Path]:
    """Expand directories into their supported files, sorted by name."""
    from .imports.reader import SUPPORTED_EXTENSIONS

    files: list[Path] = []
    for p in paths:
        path = Path(p)
        if path.is_dir():
            files.extend(
                sorted(
                    f
                    for f in path.iterdir()
                    if f.is_file() and f.suffix.lower() in SUPPORTED_EXTENSIONS
                )
            )
        else:
            files.append(path)
    return files


def _run_import(args: argparse.Namespace, settings):
    from .imports.service import process_dropped_files, validate_imported_data
    from .models import DataType, create_empty_imported_data

    files = _collect_files(args.paths)
    missing = [f for f in files if not f.exists()]
    if missing:
        for f in missing:
            print(f"Error: Path not found: {f}", file=sys.stderr)
        sys.exit(1)

    override = DataType(args.type) if getattr(args, "type", None) else None

    def on_progress(current: int, total: int, filename: str) -> None:
        print(f"[{current}/{total}] {filename}")

    summary, data = asyncio.run(
        process_dropped_files(
            files,
            settings,
            create_empty_imported_data(),
            on_progress=on_progress,
            override_type=override,
        )
    )
    return summary, data, validate_imported_data(data)


def _print_import(summary, messages) -> None:
    print()
    print(f"Imported {summary.success_count} file(s), {summary.failure_count} failed")
    for r in summary.results:
        if r.ok:
            print(f"  ok  {r.filename:<40} {r.type_name}")
        else:
            print(f"  !!  {r.filename:<40} {r.error}")

    if messages:
        print()
        print(f"--- Validation ({len(messages)}) ---")
        for m in messages:
            print(f"  [{m.level.value}] {m.message}")


def _cmd_types(args: argparse.Namespace) -> None:
    """List data types."""
    from .imports.detection import get_data_type_name
    from .models import DataType

    print("Data types:")
    for t in DataType:
        print(f"  {t.value:<24} {get_data_type_name(t)}")


def _cmd_import(args: argparse.Namespace) -> None:
    """Import files and print the summary."""
    from .imports.service import has_validation_errors

    settings = _build_settings(args)
    summary, _, messages = _run_import(args, settings)
    _print_import(summary, messages)
    if has_validation_errors(messages):
        sys.exit(1)


def _print_store(result, name: str, projection) -> None:
    from .calculations.utils import format_currency, format_percent

    print(f"=== {name} ({result.store_id}) ===")
    print(f"  Sales                {format_currency(result.total_sales):>16}")
    print(f"  Core sales           {format_currency(result.total_core_sales):>16}")
    print(f"  Total cost           {format_currency(result.total_cost):>16}")
    if result.inv_method_gross_profit is not None:
        print(f"  Gross profit (inv)   {format_currency(result.inv_method_gross_profit):>16}"
              f"  {format_percent(result.inv_method_gross_profit_rate)}")
    else:
        print("  Gross profit (inv)   (needs opening and closing inventory)")
    print(f"  Est. margin          {format_currency(result.est_method_margin):>16}"
          f"  {format_percent(result.est_method_margin_rate)}")
    if result.est_method_closing_inventory is not None:
        print(f"  Est. closing inv.    {format_currency(result.est_method_closing_inventory):>16}")
    print(f"  Discount rate        {format_percent(result.discount_rate):>16}")
    print(f"  Core markup rate     {format_percent(result.core_markup_rate):>16}")
    print(f"  Budget               {format_currency(result.budget):>16}")
    print(f"  Achievement          {format_percent(result.budget_achievement_rate):>16}")
    print(f"  Progress vs accrued  {format_percent(result.budget_progress_rate):>16}")
    print(f"  Projected sales      {format_currency(result.projected_sales):>16}")
    if projection is not None:
        lower, upper = projection.confidence_interval
        print(f"  Month-end (DOW adj.) {format_currency(projection.dow_adjusted_projection):>16}"
              f"  95%: {format_currency(lower)} - {format_currency(upper)}")
    print()


def _cmd_report(args: argparse.Namespace) -> None:
    """Import files, then print store results and alerts."""
    from .assembly import aggregate_store_results, calculate_all_stores
    from .calculations.advanced_forecast import calculate_month_end_projection
    from .calculations.alerts import (
        DEFAULT_ALERT_RULES,
        evaluate_all_store_alerts,
        load_alert_rules,
    )
    from .imports.service import has_validation_errors

    settings = _build_settings(args)
    summary, data, messages = _run_import(args, settings)
    _print_import(summary, messages)
    print()

    results = calculate_all_stores(data, settings)
    if args.store:
        if args.store not in results:
            print(f"Error: Unknown store '{args.store}'", file=sys.stderr)
            print(f"Available: {', '.join(results) or '(none)'}", file=sys.stderr)
            sys.exit(1)
        results = {args.store: results[args.store]}

    names = {sid: s.name for sid, s in data.stores.items()}
    for store_id, result in results.items():
        projection = calculate_month_end_projection(
            settings.target_year, settings.target_month, result.daily_sales()
        )
        _print_store(result, names.get(store_id, store_id), projection)

    if len(results) > 1:
        overall = aggregate_store_results(list(results.values()), settings.days_in_month)
        _print_store(overall, "All stores", None)

    rules = (
        load_alert_rules(settings.alert_rules_path)
        if settings.alert_rules_path
        else DEFAULT_ALERT_RULES
    )
    alerts = evaluate_all_store_alerts(
        results,
        names,
        rules,
        settings.target_gross_profit_rate,
        prev_year_daily_sales=data.prev_year_daily_sales(),
    )
    print(f"--- Alerts ({len(alerts)}) ---")
    for a in alerts[:50]:
        where = a.store_name or a.store_id
        day = f" day {a.day}" if a.day is not None else ""
        print(f"  [{a.severity.value:<8}] {where}{day}: {a.message}")
    if len(alerts) > 50:
        print(f"  ... and {len(alerts) - 50} more")

    if has_validation_errors(messages):
        sys.exit(1)


def main(argv: list[str] | None = None) -> None:
    from .models import DataType

    parser = argparse.ArgumentParser(
        prog="margin_sentinel",
        description="Margin Sentinel: retail back-office imports and gross-profit analytics",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: MARGIN_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # types
    subparsers.add_parser("types", help="List data types")

    # import / report share their input options
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("paths", nargs="+", help="Files or directories to import")
    common.add_argument("--year", type=int, help="Target year (default: this year)")
    common.add_argument("--month", type=int, help="Target month (default: this month)")

    import_parser = subparsers.add_parser(
        "import", parents=[common], help="Import files and validate them"
    )
    import_parser.add_argument(
        "--type",
        choices=[t.value for t in DataType],
        help="Skip detection and import every file as this type",
    )

    report_parser = subparsers.add_parser(
        "report", parents=[common], help="Import files and print store results"
    )
    report_parser.add_argument("--store", help="Only report this store id")
    report_parser.add_argument("--alerts", help="YAML file with alert rules")

    args = parser.parse_args(argv)

    from .config import AppSettings

    logging.basicConfig(
        level=(args.log_level or AppSettings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "types":
        _cmd_types(args)
    elif args.command == "import":
        _cmd_import(args)
    elif args.command == "report":
        _cmd_report(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
