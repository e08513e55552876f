# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Monthly cash-flow report orchestration.

This module provides the high-level entry point used to compute every output
of the dashboard for one store and one month in a single pass:

1. Validate the store id, month and year.
2. Gather the inputs of the month concurrently (gather.py). Callers that
   already run an event loop await ``build_cashflow_report_async``;
   ``build_cashflow_report`` runs it with ``asyncio.run``. Failing sources
   are degraded to zero-filled data and reported as warnings.
3. Merge them into one DailyFinancialRecord per calendar day (merger.py).
4. Compute the ledger totals, the month-end forecast (forecast.py) and the
   monthly VAT summary.

The result is a CashFlowReport, an immutable bundle that the CLI (or any
other presentation layer) turns into tables with views.py.

Editing
-------
Marketing spend is entered by the user after the report has been built.
``apply_marketing_edits`` applies a batch of single-field edits: each edit
rebuilds one record only, then totals, forecast and summary are refreshed
from the edited ledger.
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Optional, Union

from .errors import ValidationError
from .forecast import forecast
from .gather import (
    DEFAULT_TIMEOUT_SECONDS,
    MonthInputs,
    SourceWarning,
    gather_month_inputs,
)
from .merger import (
    index_by_date,
    ledger_totals,
    merge_daily_records,
    replace_record,
    update_expense,
)
from .periods import Period, as_date, month_period, validate_month_year
from .records import (
    MARKETING_FIELDS,
    DailyFinancialRecord,
    ForecastResult,
    MarketingSpend,
    PayrollTotals,
    PeriodTotals,
)
from .sources import (
    ExpenseProvider,
    PayrollProvider,
    RevenueProvider,
    SupplierCostProvider,
)
from .tax import VAT_RATE, extract_tax

logger = logging.getLogger(__name__)

# (date, expense field, value)
MarketingEdit = tuple[Union[date, str], str, Any]


@dataclass(frozen=True)
class MonthlySummary:
    """
    Month-level VAT and payroll figures.

    Attributes
    ----------
    revenue :
        Tax-inclusive revenue of the month.
    revenue_vat :
        Output VAT contained in ``revenue``.
    vat_deductible_expenses :
        Tax-inclusive VAT-deductible expenses of the month.
    deductible_vat :
        Input VAT contained in ``vat_deductible_expenses``.
    net_vat :
        ``revenue_vat - deductible_vat``. Negative when a refund is due.
    non_vat_deductible_expenses, salary_gross, salary_employer_costs :
        Other lump sums, for reference.
    expenses_total, profit, roi :
        Month totals of the ledger.
    """

    revenue: float
    revenue_vat: float
    vat_deductible_expenses: float
    deductible_vat: float
    net_vat: float
    non_vat_deductible_expenses: float
    salary_gross: float
    salary_employer_costs: float
    expenses_total: float
    profit: float
    roi: float


@dataclass(frozen=True)
class CashFlowReport:
    """Everything the dashboard shows for one store and one month."""

    store_id: int
    period: Period
    records: list[DailyFinancialRecord]
    totals: PeriodTotals
    forecast: Optional[ForecastResult]
    summary: MonthlySummary
    now: date
    payroll: PayrollTotals = field(default_factory=PayrollTotals)
    vat_rate: float = VAT_RATE
    warnings: list[SourceWarning] = field(default_factory=list)

    @property
    def month(self) -> int:
        return self.period.start.month

    @property
    def year(self) -> int:
        return self.period.start.year


def build_month_summary(
    records: Iterable[DailyFinancialRecord],
    vat_rate: float = VAT_RATE,
    payroll: Optional[PayrollTotals] = None,
) -> MonthlySummary:
    """Compute the VAT split on the month totals (not summed per day)."""
    totals = ledger_totals(records)
    payroll = payroll if payroll is not None else PayrollTotals()

    revenue_vat = extract_tax(totals.revenue, vat_rate)
    deductible_vat = extract_tax(totals.expenses.vat_deductible, vat_rate)

    return MonthlySummary(
        revenue=totals.revenue,
        revenue_vat=revenue_vat,
        vat_deductible_expenses=totals.expenses.vat_deductible,
        deductible_vat=deductible_vat,
        net_vat=revenue_vat - deductible_vat,
        non_vat_deductible_expenses=totals.expenses.non_vat_deductible,
        salary_gross=payroll.gross_total,
        salary_employer_costs=payroll.employer_costs_total,
        expenses_total=totals.expenses.total,
        profit=totals.profit,
        roi=totals.roi,
    )


def _validate_store_id(store_id: Any) -> int:
    if isinstance(store_id, bool) or not isinstance(store_id, int) or store_id <= 0:
        raise ValidationError(
            f"Invalid store id: {store_id!r} (expected a positive integer)."
        )
    return store_id


async def build_cashflow_report_async(
    store_id: int,
    month: int,
    year: int,
    now: Union[date, datetime],
    revenue_provider: RevenueProvider,
    expense_provider: ExpenseProvider,
    payroll_provider: PayrollProvider,
    supplier_cost_provider: Optional[SupplierCostProvider] = None,
    marketing: Optional[Mapping[date, MarketingSpend]] = None,
    statuses: Optional[Sequence[str]] = None,
    vat_rate: float = VAT_RATE,
    timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
) -> CashFlowReport:
    """Build the daily ledger, totals, forecast and summary of one month.

    Coroutine version for callers that already run an event loop. Sources
    are gathered on the caller's loop.

    Args:
        store_id: Positive store identifier.
        month: Target month (1-12).
        year: Target year.
        now: Reference date for the forecast; never read from the clock here.
        revenue_provider, expense_provider, payroll_provider: Data sources.
        supplier_cost_provider: Optional product/shipping cost source.
        marketing: Optional marketing spend by day.
        statuses: Optional order-status filter for revenue.
        vat_rate: Consumption-tax rate.
        timeout: Per-source timeout in seconds.

    Returns:
        A CashFlowReport. Source failures are listed in ``warnings``.

    Raises:
        ValidationError: if the store id, month or year is invalid.
    """
    _validate_store_id(store_id)
    validate_month_year(month, year)
    now_date = as_date(now)
    period = month_period(month, year)

    inputs = await gather_month_inputs(
        store_id=store_id,
        month=month,
        year=year,
        period=period,
        revenue_provider=revenue_provider,
        expense_provider=expense_provider,
        payroll_provider=payroll_provider,
        supplier_cost_provider=supplier_cost_provider,
        statuses=statuses,
        timeout=timeout,
    )
    return _assemble_report(store_id, period, now_date, inputs, marketing, vat_rate)


def build_cashflow_report(*args: Any, **kwargs: Any) -> CashFlowReport:
    """Synchronous wrapper around ``build_cashflow_report_async``.

    Must not be called from a running event loop; await
    ``build_cashflow_report_async`` there instead.
    """
    return asyncio.run(build_cashflow_report_async(*args, **kwargs))


def _assemble_report(
    store_id: int,
    period: Period,
    now_date: date,
    inputs: MonthInputs,
    marketing: Optional[Mapping[date, MarketingSpend]],
    vat_rate: float,
) -> CashFlowReport:
    month, year = period.start.month, period.start.year
    records = merge_daily_records(
        period=period,
        revenue=inputs.revenue,
        monthly_totals=inputs.monthly_totals,
        daily_costs=inputs.daily_costs,
        marketing=marketing,
        vat_rate=vat_rate,
    )
    payroll = inputs.monthly_totals.payroll
    totals = ledger_totals(records)
    projected = forecast(records, month, year, now_date)
    summary = build_month_summary(records, vat_rate, payroll)

    logger.info(
        "Store %s, %s: revenue %.2f, expenses %.2f, profit %.2f (%d warning(s))",
        store_id,
        period.label,
        totals.revenue,
        totals.expenses.total,
        totals.profit,
        len(inputs.warnings),
    )
    if projected is not None and projected.meta is not None:
        logger.debug(
            "Forecast %s: %d/%d days elapsed, %d active, projected profit %.2f",
            period.label,
            projected.meta.days_with_data,
            projected.meta.days_in_month,
            projected.meta.actual_days,
            projected.profit,
        )

    return CashFlowReport(
        store_id=store_id,
        period=period,
        records=records,
        totals=totals,
        forecast=projected,
        summary=summary,
        now=now_date,
        payroll=payroll,
        vat_rate=vat_rate,
        warnings=list(inputs.warnings),
    )


def apply_marketing_edits(
    report: CashFlowReport, edits: Iterable[MarketingEdit]
) -> CashFlowReport:
    """Apply user-entered marketing spend to a report.

    Each edit is ``(day, field, value)`` where ``field`` is one of
    marketing_facebook, marketing_google or marketing_tiktok.

    Raises:
        ValidationError: if a day is outside the report month or a field is
        not a marketing category.
    """
    records = list(report.records)
    positions = index_by_date(records)
    applied = 0

    for raw_day, field_name, value in edits:
        try:
            day = as_date(raw_day)
        except ValueError as exc:
            raise ValidationError(f"Invalid date {raw_day!r}.") from exc
        if field_name not in MARKETING_FIELDS:
            raise ValidationError(
                f"Unknown marketing field {field_name!r}. "
                f"Expected one of: {', '.join(MARKETING_FIELDS)}."
            )
        if day not in positions:
            raise ValidationError(
                f"Date {day.isoformat()} is outside {report.period.label}."
            )

        edited = update_expense(records[positions[day]], field_name, value)
        records = replace_record(records, edited, positions)
        applied += 1

    if not applied:
        return report

    logger.debug("Applied %d marketing edit(s) to %s", applied, report.period.label)
    return replace(
        report,
        records=records,
        totals=ledger_totals(records),
        forecast=forecast(records, report.month, report.year, report.now),
        summary=build_month_summary(records, report.vat_rate, report.payroll),
    )
