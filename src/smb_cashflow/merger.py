# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Daily ledger construction for SMB CashFlow.

The merger joins four per-day inputs into one DailyFinancialRecord per
calendar day of a period:

1. Revenue time series
   --------------------
   ``{date, revenue, order_count, product_count}`` entries (records or
   mappings). Days without orders are zero-filled, several entries for the
   same day are summed and entries outside the period are ignored.

2. Distributed lump sums
   ----------------------
   VAT-deductible, non-VAT-deductible and payroll monthly totals, spread
   uniformly by ``distribution.daily_shares``.

3. Supplier costs
   ---------------
   Optional ``{date: DailyCost}`` map. Values may also be mappings with
   ``product_cost``/``productCost`` and ``shipping``/``shipping_cost`` keys and
   keys may be ISO date strings. Missing days (or a missing map, when
   the supplier-cost provider is unavailable) count as zero.

4. Marketing spend
   ----------------
   Optional ``{date: MarketingSpend}`` map (or mappings with facebook, google
   and tiktok keys) entered by the user; zero by default.

For every day the net VAT liability is computed as output VAT on revenue
minus input VAT on that day's VAT-deductible share. Totals, profit and ROI
follow from the record types (records.py).

Editing
-------
Records are immutable. A single-field edit goes through ``update_expense``
(localized recompute of one record) and the caller swaps the new record into
the ledger with ``replace_record``, which locates it by date.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from datetime import date
from typing import Any, Optional, Union

from .distribution import daily_shares
from .periods import Period, as_date
from .records import (
    EXPENSE_FIELDS,
    DailyCost,
    DailyFinancialRecord,
    ExpenseBreakdown,
    MarketingSpend,
    MonthlyExpenseTotals,
    PeriodTotals,
    to_number,
)
from .tax import VAT_RATE, net_vat

logger = logging.getLogger(__name__)

RevenueEntry = Union[DailyFinancialRecord, Mapping[str, Any]]

_EMPTY_COST = DailyCost()
_EMPTY_MARKETING = MarketingSpend()


def revenue_fields(entry: RevenueEntry) -> tuple[date, float, float, float]:
    """Extract (date, revenue, order_count, product_count) from an entry.

    Raises:
        ValueError: if the entry is not a record or a mapping with a usable
        ``date``.
    """
    if isinstance(entry, DailyFinancialRecord):
        return entry.date, entry.revenue, entry.order_count, entry.product_count
    if not isinstance(entry, Mapping):
        raise ValueError(f"revenue entry of type {type(entry).__name__}")
    if entry.get("date") is None:
        raise ValueError("revenue entry without a date")

    try:
        day = as_date(entry["date"])
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid revenue date {entry['date']!r}") from exc

    orders = entry.get("order_count", entry.get("orderCount"))
    products = entry.get("product_count", entry.get("productCount"))
    return (
        day,
        to_number(entry.get("revenue")),
        to_number(orders),
        to_number(products),
    )


def _revenue_by_day(
    revenue: Optional[Iterable[RevenueEntry]], period: Period
) -> dict[date, tuple[float, float, float]]:
    by_day: dict[date, tuple[float, float, float]] = {}
    skipped = 0
    invalid = 0

    for entry in revenue or ():
        try:
            day, amount, orders, products = revenue_fields(entry)
        except ValueError as exc:
            invalid += 1
            logger.debug("Skipped revenue entry: %s", exc)
            continue
        if not period.contains(day):
            skipped += 1
            continue
        prev = by_day.get(day, (0.0, 0.0, 0.0))
        by_day[day] = (prev[0] + amount, prev[1] + orders, prev[2] + products)

    if invalid:
        logger.warning(
            "Ignored %d malformed revenue entries for %s", invalid, period.label
        )
    if skipped:
        logger.debug(
            "Ignored %d revenue entries outside %s", skipped, period.label
        )
    return by_day


def _first(values: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if values.get(key) is not None:
            return values[key]
    return None


def _keyed_by_date(values: Optional[Mapping[Any, Any]], what: str) -> dict[date, Any]:
    out: dict[date, Any] = {}
    for key, value in (values or {}).items():
        try:
            out[as_date(key)] = value
        except (TypeError, ValueError):
            logger.warning("Ignored %s entry with invalid date %r", what, key)
    return out


def as_daily_cost(value: Any) -> DailyCost:
    """Normalize a supplier-cost value (DailyCost or mapping) for one day.

    Anything else counts as no cost.
    """
    if isinstance(value, DailyCost):
        return value
    if isinstance(value, Mapping):
        return DailyCost(
            product_cost=_first(value, "product_cost", "productCost"),
            shipping=_first(value, "shipping", "shipping_cost", "shippingCost"),
        )
    logger.warning("Ignored supplier cost of type %s", type(value).__name__)
    return _EMPTY_COST


def as_marketing_spend(value: Any) -> MarketingSpend:
    """Normalize a marketing value (MarketingSpend or mapping) for one day."""
    if isinstance(value, MarketingSpend):
        return value
    if isinstance(value, Mapping):
        return MarketingSpend(
            facebook=_first(value, "facebook", "marketing_facebook"),
            google=_first(value, "google", "marketing_google"),
            tiktok=_first(value, "tiktok", "marketing_tiktok"),
        )
    logger.warning("Ignored marketing spend of type %s", type(value).__name__)
    return _EMPTY_MARKETING


def merge_daily_records(
    period: Period,
    revenue: Optional[Iterable[RevenueEntry]],
    monthly_totals: MonthlyExpenseTotals,
    daily_costs: Optional[Mapping[date, Any]] = None,
    marketing: Optional[Mapping[date, Any]] = None,
    vat_rate: float = VAT_RATE,
) -> list[DailyFinancialRecord]:
    """Build the daily cash-flow ledger for ``period``.

    Args:
        period: Range of calendar days to produce (normally one month).
        revenue: Daily revenue entries; missing days are zero-filled.
        monthly_totals: Lump sums to spread uniformly across the period.
        daily_costs: Optional product/shipping costs by day.
        marketing: Optional user-entered marketing spend by day.
        vat_rate: Consumption-tax rate used to extract VAT.

    Returns:
        One DailyFinancialRecord per day of the period, ascending by date.
    """
    days = period.days()
    shares = daily_shares(monthly_totals, len(days))
    by_day = _revenue_by_day(revenue, period)
    costs = _keyed_by_date(daily_costs, "supplier cost")
    spends = _keyed_by_date(marketing, "marketing")

    records: list[DailyFinancialRecord] = []
    for day in days:
        amount, orders, products = by_day.get(day, (0.0, 0, 0))
        cost = as_daily_cost(costs.get(day, _EMPTY_COST))
        spend = as_marketing_spend(spends.get(day, _EMPTY_MARKETING))

        expenses = ExpenseBreakdown(
            vat_deductible=shares.vat_deductible,
            non_vat_deductible=shares.non_vat_deductible,
            salary=shares.salary,
            vat=net_vat(amount, shares.vat_deductible, vat_rate),
            marketing_facebook=spend.facebook,
            marketing_google=spend.google,
            marketing_tiktok=spend.tiktok,
            shipping=cost.shipping,
            product_cost=cost.product_cost,
        )
        records.append(
            DailyFinancialRecord(
                date=day,
                revenue=amount,
                order_count=orders,
                product_count=products,
                expenses=expenses,
            )
        )

    return records


def recompute_record(record: DailyFinancialRecord) -> DailyFinancialRecord:
    """Return ``record`` with expenses total, profit and ROI recomputed."""
    expenses = replace(record.expenses)
    return replace(record, expenses=expenses)


def update_expense(
    record: DailyFinancialRecord, field_name: str, value: Any
) -> DailyFinancialRecord:
    """Set one expense field of ``record`` and recompute that record only.

    Raises:
        ValueError: if ``field_name`` is not an expense category.
    """
    if field_name not in EXPENSE_FIELDS:
        raise ValueError(
            f"Unknown expense field {field_name!r}. "
            f"Expected one of: {', '.join(EXPENSE_FIELDS)}."
        )
    expenses = replace(record.expenses, **{field_name: to_number(value)})
    return replace(record, expenses=expenses)


def index_by_date(records: Sequence[DailyFinancialRecord]) -> dict[date, int]:
    """Map each record's date to its position in the ledger."""
    return {record.date: idx for idx, record in enumerate(records)}


def replace_record(
    records: Sequence[DailyFinancialRecord],
    record: DailyFinancialRecord,
    index: Optional[Mapping[date, int]] = None,
) -> list[DailyFinancialRecord]:
    """Return a new ledger where the record for ``record.date`` is replaced.

    Raises:
        KeyError: if the ledger has no record for that date.
    """
    positions = index if index is not None else index_by_date(records)
    position = positions[record.date]
    out = list(records)
    out[position] = record
    return out


def ledger_totals(
    records: Iterable[Union[DailyFinancialRecord, PeriodTotals]],
) -> PeriodTotals:
    """Elementwise sum of a ledger; profit and ROI are recomputed on the sums."""
    revenue = 0.0
    orders = 0.0
    products = 0.0
    sums = {name: 0.0 for name in EXPENSE_FIELDS}

    for record in records:
        revenue += to_number(record.revenue)
        orders += to_number(record.order_count)
        products += to_number(record.product_count)
        for name in EXPENSE_FIELDS:
            sums[name] += to_number(getattr(record.expenses, name, 0.0))

    return PeriodTotals(
        revenue=revenue,
        order_count=orders,
        product_count=products,
        expenses=ExpenseBreakdown(**sums),
    )
