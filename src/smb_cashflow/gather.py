# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Concurrent gathering of the inputs of one month.

Revenue, VAT-deductible expenses, non-VAT-deductible expenses, payroll and
(optionally) supplier costs are independent, read-only sources. They are
fetched concurrently: each provider call runs in a worker thread through
``asyncio.to_thread`` and is bounded by ``asyncio.wait_for``.

Graceful degradation
--------------------
A source that raises or times out does not abort the computation. Its value
is replaced by the zero value of that category (zero-filled revenue, no
expense items, empty payroll, no supplier costs) and a SourceWarning is
recorded and logged. Revenue entries without a usable date are dropped one
by one, with a single warning for the source. The merge and forecast steps
then run on complete, well-formed inputs.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, TypeVar, Union

from .distribution import build_monthly_totals
from .errors import UpstreamFetchError
from .merger import revenue_fields
from .periods import Period
from .records import (
    DailyCost,
    DailyFinancialRecord,
    MonthlyExpenseTotals,
    PayrollTotals,
)
from .sources import (
    ExpenseProvider,
    PayrollProvider,
    RevenueProvider,
    SupplierCostProvider,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0

T = TypeVar("T")


@dataclass(frozen=True)
class SourceWarning:
    """Non-fatal notice that one source was replaced by zero-filled data."""

    source: str
    message: str

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"


@dataclass(frozen=True)
class MonthInputs:
    """Everything the merger needs for one store and one month."""

    revenue: list[DailyFinancialRecord]
    monthly_totals: MonthlyExpenseTotals
    daily_costs: dict[date, DailyCost]
    warnings: list[SourceWarning] = field(default_factory=list)


async def _fetch(
    source: str,
    call: Callable[[], T],
    fallback: Callable[[], T],
    expected: Union[type, tuple[type, ...]],
    timeout: Optional[float],
    warnings: list[SourceWarning],
) -> T:
    try:
        value = await asyncio.wait_for(asyncio.to_thread(call), timeout=timeout)
        if not isinstance(value, expected):
            raise UpstreamFetchError(
                source, f"unexpected result of type {type(value).__name__}"
            )
        return value
    except asyncio.TimeoutError:
        message = f"timed out after {timeout}s, using zero-filled data"
    except UpstreamFetchError as exc:
        message = f"{exc.message}, using zero-filled data"
    except Exception as exc:  # noqa: BLE001
        message = f"{type(exc).__name__}: {exc}, using zero-filled data"

    logger.warning("Source '%s' unavailable: %s", source, message)
    warnings.append(SourceWarning(source=source, message=message))
    return fallback()


def _drop_malformed_revenue(
    entries: Sequence[Any], warnings: list[SourceWarning]
) -> list[Any]:
    kept: list[Any] = []
    errors: list[str] = []
    for entry in entries:
        try:
            revenue_fields(entry)
        except ValueError as exc:
            errors.append(str(exc))
            continue
        kept.append(entry)

    if errors:
        message = f"{len(errors)} malformed entries ignored (first: {errors[0]})"
        logger.warning("Source 'revenue' partially unusable: %s", message)
        warnings.append(SourceWarning(source="revenue", message=message))
    return kept


async def gather_month_inputs(
    store_id: int,
    month: int,
    year: int,
    period: Period,
    revenue_provider: RevenueProvider,
    expense_provider: ExpenseProvider,
    payroll_provider: PayrollProvider,
    supplier_cost_provider: Optional[SupplierCostProvider] = None,
    statuses: Optional[Sequence[str]] = None,
    timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
) -> MonthInputs:
    """Fetch all sources of one month concurrently.

    Args:
        store_id: Store whose data is requested.
        month, year: Month used for payroll totals.
        period: Range of days used for daily sources.
        revenue_provider, expense_provider, payroll_provider: Required sources.
        supplier_cost_provider: Optional source of product/shipping costs.
        statuses: Optional order-status filter passed to the revenue provider.
        timeout: Per-source timeout in seconds (None disables it).

    Returns:
        MonthInputs. Failed sources are zero-filled and listed in ``warnings``.
    """
    warnings: list[SourceWarning] = []

    def zero_revenue() -> list[DailyFinancialRecord]:
        return [DailyFinancialRecord(date=day) for day in period.days()]

    def no_items() -> list[dict[str, Any]]:
        return []

    def no_costs() -> dict[date, DailyCost]:
        return {}

    tasks = [
        _fetch(
            "revenue",
            lambda: revenue_provider.get_daily_revenue(store_id, period, statuses),
            zero_revenue,
            (list, tuple),
            timeout,
            warnings,
        ),
        _fetch(
            "vat_deductible_expenses",
            lambda: expense_provider.get_vat_deductible(store_id, period),
            no_items,
            (list, tuple),
            timeout,
            warnings,
        ),
        _fetch(
            "non_vat_deductible_expenses",
            lambda: expense_provider.get_non_vat_deductible(store_id, period),
            no_items,
            (list, tuple),
            timeout,
            warnings,
        ),
        _fetch(
            "payroll",
            lambda: payroll_provider.get_monthly_totals(store_id, month, year),
            PayrollTotals,
            PayrollTotals,
            timeout,
            warnings,
        ),
    ]
    if supplier_cost_provider is not None:
        tasks.append(
            _fetch(
                "supplier_costs",
                lambda: supplier_cost_provider.get_daily_costs(store_id, period),
                no_costs,
                Mapping,
                timeout,
                warnings,
            )
        )

    results = await asyncio.gather(*tasks)
    revenue, vat_items, non_vat_items, payroll = results[:4]
    revenue = _drop_malformed_revenue(revenue, warnings)
    daily_costs = results[4] if len(results) > 4 else {}

    totals = build_monthly_totals(
        store_id=store_id,
        month=month,
        year=year,
        vat_items=vat_items,
        non_vat_items=non_vat_items,
        payroll=payroll,
    )
    logger.debug(
        "Gathered %s for store %s: %d revenue days, %d + %d expense items, "
        "payroll %.2f",
        period.label,
        store_id,
        len(revenue),
        len(vat_items),
        len(non_vat_items),
        totals.payroll.total,
    )

    return MonthInputs(
        revenue=list(revenue),
        monthly_totals=totals,
        daily_costs=dict(daily_costs),
        warnings=warnings,
    )


def collect_month_inputs(*args: Any, **kwargs: Any) -> MonthInputs:
    """Synchronous wrapper around ``gather_month_inputs``."""
    return asyncio.run(gather_month_inputs(*args, **kwargs))
