# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Value objects for the cash-flow ledger.

Every entity in this module is an immutable dataclass. Derived amounts
(``ExpenseBreakdown.total``, ``profit`` and ``roi``) are not constructor
arguments: they are computed in ``__post_init__`` from the other fields, so a
record can never carry a total that disagrees with its constituents.

Main types
----------
- ExpenseBreakdown :
    The nine additive expense categories of one day (or of a period) and
    their total.

- DailyFinancialRecord :
    One calendar day for one store: revenue, order/product counts, expenses
    and the derived profit / ROI.

- PeriodTotals :
    Same shape without a date. Used for ledger totals, forecast baselines and
    daily averages.

- MonthlyExpenseTotals / PayrollTotals :
    Lump sums known only at month granularity.

- DailyCost / MarketingSpend :
    Per-day facts coming from the supplier-cost provider and from user input.

- ForecastMeta / ForecastResult :
    The projected end-of-month row and the figures used to justify it.

Numeric hygiene
---------------
All amounts go through ``to_number()``: strings are parsed, and anything that
is not a finite number (None, NaN, inf, garbage strings) becomes 0.0.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

EXPENSE_FIELDS: tuple[str, ...] = (
    "vat_deductible",
    "non_vat_deductible",
    "salary",
    "vat",
    "marketing_facebook",
    "marketing_google",
    "marketing_tiktok",
    "shipping",
    "product_cost",
)

MARKETING_FIELDS: tuple[str, ...] = (
    "marketing_facebook",
    "marketing_google",
    "marketing_tiktok",
)


def to_number(value: Any) -> float:
    """Convert ``value`` to a finite float, falling back to 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0

    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0

    if not math.isfinite(number):
        return 0.0
    return number


def compute_roi(profit: float, expenses_total: float) -> float:
    """ROI in percent, or 0.0 when there are no expenses."""
    if expenses_total > 0:
        return profit / expenses_total * 100
    return 0.0


@dataclass(frozen=True)
class ExpenseBreakdown:
    """
    Expense categories for one day (or one aggregated period).

    Attributes
    ----------
    vat_deductible, non_vat_deductible, salary :
        Shares of monthly lump sums.
    vat :
        Net VAT liability (output VAT minus deductible input VAT). May be
        negative on a refund day.
    marketing_facebook, marketing_google, marketing_tiktok :
        User-entered marketing spend.
    shipping, product_cost :
        Daily facts from the supplier-cost provider.
    total :
        Sum of the nine fields above. Not settable.
    """

    vat_deductible: float = 0.0
    non_vat_deductible: float = 0.0
    salary: float = 0.0
    vat: float = 0.0
    marketing_facebook: float = 0.0
    marketing_google: float = 0.0
    marketing_tiktok: float = 0.0
    shipping: float = 0.0
    product_cost: float = 0.0
    total: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        running = 0.0
        for name in EXPENSE_FIELDS:
            value = to_number(getattr(self, name))
            object.__setattr__(self, name, value)
            running += value
        object.__setattr__(self, "total", running)

    def as_dict(self) -> dict[str, float]:
        """Return the nine categories plus ``total``."""
        out = {name: getattr(self, name) for name in EXPENSE_FIELDS}
        out["total"] = self.total
        return out


def _empty_expenses() -> ExpenseBreakdown:
    return ExpenseBreakdown()


@dataclass(frozen=True)
class DailyFinancialRecord:
    """One calendar day of the cash-flow ledger for one store."""

    date: date
    revenue: float = 0.0
    order_count: float = 0
    product_count: float = 0
    expenses: ExpenseBreakdown = field(default_factory=_empty_expenses)
    profit: float = field(init=False, default=0.0)
    roi: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        revenue = to_number(self.revenue)
        object.__setattr__(self, "revenue", revenue)
        object.__setattr__(self, "order_count", _to_count(self.order_count))
        object.__setattr__(self, "product_count", _to_count(self.product_count))
        if not isinstance(self.expenses, ExpenseBreakdown):
            object.__setattr__(self, "expenses", ExpenseBreakdown())

        profit = revenue - self.expenses.total
        object.__setattr__(self, "profit", profit)
        object.__setattr__(self, "roi", compute_roi(profit, self.expenses.total))


@dataclass(frozen=True)
class PeriodTotals:
    """
    Aggregated (or averaged) figures over several days.

    Counts stay floats here because daily averages are fractional.
    """

    revenue: float = 0.0
    order_count: float = 0.0
    product_count: float = 0.0
    expenses: ExpenseBreakdown = field(default_factory=_empty_expenses)
    profit: float = field(init=False, default=0.0)
    roi: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        revenue = to_number(self.revenue)
        object.__setattr__(self, "revenue", revenue)
        object.__setattr__(self, "order_count", to_number(self.order_count))
        object.__setattr__(self, "product_count", to_number(self.product_count))
        if not isinstance(self.expenses, ExpenseBreakdown):
            object.__setattr__(self, "expenses", ExpenseBreakdown())

        profit = revenue - self.expenses.total
        object.__setattr__(self, "profit", profit)
        object.__setattr__(self, "roi", compute_roi(profit, self.expenses.total))


def _to_count(value: Any) -> float:
    # Keep integers as int so that ledgers print "3" and not "3.0".
    number = to_number(value)
    if number.is_integer():
        return int(number)
    return number


@dataclass(frozen=True)
class PayrollTotals:
    """Monthly payroll for one store: gross salaries and employer costs."""

    gross_total: float = 0.0
    employer_costs_total: float = 0.0
    total: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        gross = to_number(self.gross_total)
        employer = to_number(self.employer_costs_total)
        object.__setattr__(self, "gross_total", gross)
        object.__setattr__(self, "employer_costs_total", employer)
        object.__setattr__(self, "total", gross + employer)


@dataclass(frozen=True)
class MonthlyExpenseTotals:
    """Lump sums for one store and one calendar month."""

    store_id: int
    month: int
    year: int
    vat_deductible: float = 0.0
    non_vat_deductible: float = 0.0
    payroll: PayrollTotals = field(default_factory=PayrollTotals)

    def __post_init__(self) -> None:
        object.__setattr__(self, "vat_deductible", to_number(self.vat_deductible))
        object.__setattr__(
            self, "non_vat_deductible", to_number(self.non_vat_deductible)
        )


@dataclass(frozen=True)
class DailyCost:
    """Product and shipping cost for one day."""

    product_cost: float = 0.0
    shipping: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "product_cost", to_number(self.product_cost))
        object.__setattr__(self, "shipping", to_number(self.shipping))


@dataclass(frozen=True)
class MarketingSpend:
    """Marketing spend entered by the user for one day."""

    facebook: float = 0.0
    google: float = 0.0
    tiktok: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "facebook", to_number(self.facebook))
        object.__setattr__(self, "google", to_number(self.google))
        object.__setattr__(self, "tiktok", to_number(self.tiktok))


@dataclass(frozen=True)
class ForecastMeta:
    """
    Figures behind a month-end forecast.

    Attributes
    ----------
    days_in_month :
        Calendar length of the target month.
    days_with_data :
        Days considered elapsed, derived from the target month and "now".
    days_remaining :
        ``days_in_month - days_with_data``.
    daily_avg :
        Average of each field over the actual subset (days with activity).
    existing_totals :
        Sum of each field over all records, placeholders included.
    actual_days :
        Number of days in the actual subset.
    """

    days_in_month: int
    days_with_data: int
    days_remaining: int
    daily_avg: PeriodTotals
    existing_totals: PeriodTotals
    actual_days: int = 0


@dataclass(frozen=True)
class ForecastResult(DailyFinancialRecord):
    """Projected end-of-month row, dated on the last day of the month."""

    meta: Optional[ForecastMeta] = None
