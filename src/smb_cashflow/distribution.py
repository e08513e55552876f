# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Distribution of monthly lump sums across days.

VAT-deductible expenses, non-VAT-deductible expenses and payroll are only
known per month. For the daily ledger they are spread uniformly across every
day of the range, whatever that day's revenue or order volume. This is the
documented behavior of the dashboard (see DESIGN.md, open questions) and is
kept as is.

Product cost and shipping cost are NOT handled here: they are daily facts
from the supplier-cost provider and are used directly by the merger.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Optional

from .records import MonthlyExpenseTotals, PayrollTotals, to_number


@dataclass(frozen=True)
class DailyShares:
    """Per-day share of each monthly lump sum."""

    vat_deductible: float = 0.0
    non_vat_deductible: float = 0.0
    salary: float = 0.0


def distribute_evenly(total: float, day_count: int) -> float:
    """Return ``total / day_count``, or 0.0 when there is no day to spread on."""
    if day_count <= 0:
        return 0.0
    return to_number(total) / day_count


def sum_amounts(items: Optional[Iterable[Any]], key: str = "amount") -> float:
    """
    Sum the ``key`` amount of raw expense items.

    Items may be mappings (``{"amount": "12.50", ...}``) or objects exposing
    an attribute of that name. String amounts are parsed; missing, NaN or
    unparseable amounts count as 0.
    """
    if not items:
        return 0.0

    total = 0.0
    for item in items:
        if isinstance(item, Mapping):
            raw = item.get(key)
        else:
            raw = getattr(item, key, None)
        total += to_number(raw)
    return total


def build_monthly_totals(
    store_id: int,
    month: int,
    year: int,
    vat_items: Optional[Iterable[Any]] = None,
    non_vat_items: Optional[Iterable[Any]] = None,
    payroll: Optional[PayrollTotals] = None,
) -> MonthlyExpenseTotals:
    """Collapse raw expense items and payroll into monthly lump sums."""
    return MonthlyExpenseTotals(
        store_id=store_id,
        month=month,
        year=year,
        vat_deductible=sum_amounts(vat_items),
        non_vat_deductible=sum_amounts(non_vat_items),
        payroll=payroll if payroll is not None else PayrollTotals(),
    )


def daily_shares(totals: MonthlyExpenseTotals, day_count: int) -> DailyShares:
    """Uniform per-day shares of the monthly lump sums."""
    return DailyShares(
        vat_deductible=distribute_evenly(totals.vat_deductible, day_count),
        non_vat_deductible=distribute_evenly(totals.non_vat_deductible, day_count),
        salary=distribute_evenly(totals.payroll.total, day_count),
    )
