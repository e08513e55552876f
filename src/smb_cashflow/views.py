# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for SMB CashFlow.

This module turns the immutable records produced by the computation core
into pandas DataFrames ready for display or CSV export. Rounding happens
here and only here: the core keeps full precision.

The main views are:

- ledger:   one row per day, plus optional "total" and "forecast" rows,
- forecast: the metadata behind a month-end forecast,
- summary:  the monthly VAT and payroll split.
"""

from collections.abc import Iterable, Sequence
from typing import Optional, Union

import pandas as pd

from .gather import SourceWarning
from .records import (
    EXPENSE_FIELDS,
    DailyFinancialRecord,
    ForecastMeta,
    ForecastResult,
    PeriodTotals,
)
from .service import MonthlySummary

LEDGER_COLUMNS: list[str] = [
    "date",
    "row_type",
    "revenue",
    "order_count",
    "product_count",
    *EXPENSE_FIELDS,
    "expenses_total",
    "profit",
    "roi",
]

_AMOUNT_COLUMNS = [
    "revenue",
    *EXPENSE_FIELDS,
    "expenses_total",
    "profit",
    "roi",
]


def _row(
    record: Union[PeriodTotals, DailyFinancialRecord], row_type: str, label: str
) -> dict[str, object]:
    row: dict[str, object] = {
        "date": label,
        "row_type": row_type,
        "revenue": record.revenue,
        "order_count": record.order_count,
        "product_count": record.product_count,
    }
    for name in EXPENSE_FIELDS:
        row[name] = getattr(record.expenses, name)
    row["expenses_total"] = record.expenses.total
    row["profit"] = record.profit
    row["roi"] = record.roi
    return row


def ledger_to_dataframe(
    records: Sequence[DailyFinancialRecord],
    totals: Optional[PeriodTotals] = None,
    forecast: Optional[ForecastResult] = None,
    decimals: int = 2,
) -> pd.DataFrame:
    """
    Convert a daily ledger into a DataFrame.

    Rows are ordered by date. When given, a "total" row and then a
    "forecast" row are appended after the daily rows.

    Args:
        records: Daily records of the ledger.
        totals: Optional ledger totals (``merger.ledger_totals``).
        forecast: Optional month-end forecast.
        decimals: Number of decimal places for currency amounts and ROI.

    Returns:
        A DataFrame with the columns listed in ``LEDGER_COLUMNS``.
    """
    rows = [
        _row(r, "day", r.date.isoformat())
        for r in sorted(records, key=lambda r: r.date)
    ]
    if totals is not None:
        rows.append(_row(totals, "total", "TOTAL"))
    if forecast is not None:
        label = f"FORECAST {forecast.date.isoformat()}"
        rows.append(_row(forecast, "forecast", label))

    if not rows:
        return pd.DataFrame(columns=LEDGER_COLUMNS)

    df = pd.DataFrame(rows)
    df[_AMOUNT_COLUMNS] = df[_AMOUNT_COLUMNS].astype(float).round(decimals)
    return df[LEDGER_COLUMNS]


def forecast_meta_to_dataframe(meta: ForecastMeta, decimals: int = 2) -> pd.DataFrame:
    """
    Describe a forecast as a (key, value) table.

    Day counts come first, then the daily averages and the existing totals
    of revenue, expenses and profit.
    """
    rows: list[tuple[str, object]] = [
        ("days_in_month", meta.days_in_month),
        ("days_with_data", meta.days_with_data),
        ("days_remaining", meta.days_remaining),
        ("actual_days", meta.actual_days),
    ]
    for prefix, figures in (
        ("daily_avg", meta.daily_avg),
        ("existing", meta.existing_totals),
    ):
        rows.extend(
            [
                (f"{prefix}_revenue", round(figures.revenue, decimals)),
                (f"{prefix}_order_count", round(figures.order_count, decimals)),
                (f"{prefix}_expenses", round(figures.expenses.total, decimals)),
                (f"{prefix}_profit", round(figures.profit, decimals)),
            ]
        )
    return pd.DataFrame(rows, columns=["key", "value"])


def summary_to_dataframe(summary: MonthlySummary, decimals: int = 2) -> pd.DataFrame:
    """Convert a MonthlySummary into a (label, amount) table."""
    labels = [
        ("Revenue (incl. VAT)", summary.revenue),
        ("VAT on revenue", summary.revenue_vat),
        ("VAT-deductible expenses", summary.vat_deductible_expenses),
        ("Deductible VAT", summary.deductible_vat),
        ("Net VAT", summary.net_vat),
        ("Non-VAT-deductible expenses", summary.non_vat_deductible_expenses),
        ("Gross salaries", summary.salary_gross),
        ("Employer costs", summary.salary_employer_costs),
        ("Total expenses", summary.expenses_total),
        ("Profit", summary.profit),
        ("ROI (%)", summary.roi),
    ]
    return pd.DataFrame(
        [(label, round(value, decimals)) for label, value in labels],
        columns=["label", "amount"],
    )


def warnings_to_lines(warnings: Iterable[SourceWarning]) -> list[str]:
    return [f"Warning: {w}" for w in warnings]
