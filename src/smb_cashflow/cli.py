# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-Line Interface (CLI) for SMB CashFlow.

This module wires together the main building blocks of SMB CashFlow:

- application configuration (store, tax rate, data sources, display),
- CSV readers and DataFrame-backed providers,
- the monthly report pipeline (gathering, merge, forecast, summary),
- view helpers (tabular rendering and CSV export).

The CLI is intentionally thin: it does not implement any financial logic
itself.


High-level pipeline
-------------------

1) Load the TOML configuration (smb_cashflow_config.toml by default) and
   configure logging.

2) Determine the reporting month, year and "today" from the command line
   (--month, --year, --today), defaulting to the current month.

3) Read the configured CSV sources and wrap them into providers. Only the
   revenue file is mandatory. A source that is not configured counts as
   zero; one that is missing or unreadable also counts as zero and is
   reported as a warning.

4) Build the CashFlowReport for the store and month, then apply the
   marketing spend given with --marketing.

5) Render the ledger, the monthly summary, the forecast details and any
   source warnings as console tables and/or CSV files.


Examples
--------

    python -m smb_cashflow.cli --month 3 --year 2025
    python -m smb_cashflow.cli --today 2025-03-15 \\
        --marketing 2025-03-02 marketing_facebook 120 --display-mode both
"""

import argparse
import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .config import DISPLAY_MODES, AppConfig, load_app_config
from .gather import SourceWarning
from .io import (
    read_expenses,
    read_marketing_spend,
    read_payroll,
    read_revenue,
    read_supplier_costs,
)
from .periods import determine_month_from_args, month_period
from .records import MARKETING_FIELDS
from .service import CashFlowReport, apply_marketing_edits, build_cashflow_report
from .sources import (
    FrameExpenseProvider,
    FramePayrollProvider,
    FrameRevenueProvider,
    FrameSupplierCostProvider,
    marketing_from_frame,
)
from .views import (
    forecast_meta_to_dataframe,
    ledger_to_dataframe,
    summary_to_dataframe,
    warnings_to_lines,
)

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m smb_cashflow.cli",
        description=(
            "SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce "
            "stores. Builds the daily ledger of a month from revenue, expenses, "
            "payroll and supplier costs, and forecasts the month-end result."
        ),
    )

    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of smb_cashflow and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the TOML configuration file. "
            "If omitted, 'smb_cashflow_config.toml' in the current directory is used."
        ),
    )
    ap.add_argument(
        "--store-id",
        dest="store_id",
        type=int,
        help="Override the store id defined in the configuration file.",
    )

    # Month selection
    ap.add_argument("--month", type=int, help="Reporting month (1-12).")
    ap.add_argument("--year", type=int, help="Reporting year (2000-2100).")
    ap.add_argument(
        "--today",
        help=(
            "Reference date (YYYY-MM-DD) used instead of the system clock to "
            "decide which days of the month have elapsed."
        ),
    )

    # Edits
    ap.add_argument(
        "--marketing",
        nargs=3,
        action="append",
        metavar=("DATE", "FIELD", "VALUE"),
        default=[],
        help=(
            "Set one marketing expense for one day, e.g. "
            "'--marketing 2025-03-02 marketing_google 80'. "
            f"FIELD is one of: {', '.join(MARKETING_FIELDS)}. Repeatable."
        ),
    )

    # Display options
    ap.add_argument(
        "--no-forecast",
        dest="no_forecast",
        action="store_true",
        help="Do not compute or display the month-end forecast.",
    )
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=list(DISPLAY_MODES),
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. Defaults to 'data/output'."
        ),
    )
    ap.add_argument(
        "--log-level",
        dest="log_level",
        choices=list(LOG_LEVELS),
        help="Override the logging.level setting from the configuration file.",
    )

    return ap


def _read_required(
    reader: Callable[[Path], pd.DataFrame], path: Path
) -> pd.DataFrame:
    if not path.is_file():
        raise FileNotFoundError(f"Data file not found: {path}")
    return reader(path)


def _read_optional(
    reader: Callable[[Path], pd.DataFrame],
    path: Optional[Path],
    source: str,
    warnings: list[SourceWarning],
) -> Optional[pd.DataFrame]:
    """Read an optional source; a missing or invalid file counts as zero data."""
    if path is None:
        return None
    try:
        return _read_required(reader, path)
    except (FileNotFoundError, ValueError) as exc:
        message = f"{exc}, using zero-filled data"
        logger.warning("Source '%s' unavailable: %s", source, message)
        warnings.append(SourceWarning(source=source, message=message))
        return None


def _build_report(args: argparse.Namespace, config: AppConfig) -> CashFlowReport:
    """Read the configured sources and build the report for the chosen month."""
    month, year, today = determine_month_from_args(args)
    store_id = args.store_id if args.store_id is not None else config.store.id
    sources = config.sources

    if sources.revenue is None:
        raise ValueError("No revenue file configured ([sources].revenue).")

    revenue_df = _read_required(read_revenue, sources.revenue)

    read_warnings: list[SourceWarning] = []
    vat_df = _read_optional(
        read_expenses,
        sources.vat_deductible_expenses,
        "vat_deductible_expenses",
        read_warnings,
    )
    non_vat_df = _read_optional(
        read_expenses,
        sources.non_vat_deductible_expenses,
        "non_vat_deductible_expenses",
        read_warnings,
    )
    payroll_df = _read_optional(read_payroll, sources.payroll, "payroll", read_warnings)
    supplier_df = _read_optional(
        read_supplier_costs, sources.supplier_costs, "supplier_costs", read_warnings
    )
    marketing_df = _read_optional(
        read_marketing_spend, sources.marketing, "marketing", read_warnings
    )

    supplier_provider = (
        FrameSupplierCostProvider(supplier_df) if supplier_df is not None else None
    )
    marketing = marketing_from_frame(marketing_df, store_id, month_period(month, year))

    report = build_cashflow_report(
        store_id=store_id,
        month=month,
        year=year,
        now=today,
        revenue_provider=FrameRevenueProvider(revenue_df),
        expense_provider=FrameExpenseProvider(vat_df, non_vat_df),
        payroll_provider=FramePayrollProvider(payroll_df),
        supplier_cost_provider=supplier_provider,
        marketing=marketing,
        statuses=sources.statuses,
        vat_rate=config.vat_rate,
        timeout=config.timeout_seconds,
    )

    if read_warnings:
        report = replace(report, warnings=[*read_warnings, *report.warnings])
    if args.marketing:
        report = apply_marketing_edits(report, args.marketing)
    return report


def main(argv: Optional[list[str]] = None) -> None:
    """Entry point for the SMB CashFlow CLI.

    This function parses command-line arguments, loads the configuration,
    reads the data sources, builds the monthly report, applies marketing
    edits and renders the result as console tables and/or CSV files.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"smb_cashflow version {__version__}")
        return

    # 1) Load configuration and set up logging.
    try:
        config = load_app_config(args.config_path)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=args.log_level or config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.debug("Loaded configuration for store %s", config.store.id)

    # 2-4) Read sources and build the report.
    try:
        report = _build_report(args, config)
    except (FileNotFoundError, ValueError) as exc:
        parser.error(str(exc))

    forecast = None if args.no_forecast else report.forecast

    ledger_df = ledger_to_dataframe(
        report.records,
        totals=report.totals,
        forecast=forecast,
        decimals=config.decimals,
    )
    summary_df = summary_to_dataframe(report.summary, decimals=config.decimals)
    forecast_df = None
    if forecast is not None and forecast.meta is not None:
        forecast_df = forecast_meta_to_dataframe(forecast.meta, config.decimals)

    display_mode = args.display_mode or config.display_mode

    print(
        f"Store: {config.store.name} (#{report.store_id}) | "
        f"Period: {report.period.label} "
        f"({report.period.start.isoformat()} → {report.period.end.isoformat()}) | "
        f"Currency: {config.store.currency}"
    )
    for line in warnings_to_lines(report.warnings):
        print(line)

    # 5) Render to console (table mode).
    if display_mode in {"table", "both"}:
        print()
        print("=== Daily cash-flow ledger ===")
        print(ledger_df.to_string(index=False))

        print()
        print("=== Monthly summary ===")
        print(summary_df.to_string(index=False))

        if forecast_df is not None:
            print()
            print("=== Forecast details ===")
            print(forecast_df.to_string(index=False))

    # 6) Render to CSV files (csv mode).
    if display_mode in {"csv", "both"}:
        output_dir = Path(args.output_dir) if args.output_dir else Path("data/output")
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        label = report.period.label

        outputs = [("ledger", ledger_df), ("summary", summary_df)]
        if forecast_df is not None:
            outputs.append(("forecast", forecast_df))

        for name, df in outputs:
            path = output_dir / f"{name}_{label}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


if __name__ == "__main__":
    main()
