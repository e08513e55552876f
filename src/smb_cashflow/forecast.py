# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
End-of-month forecast for the daily cash-flow ledger.

The forecast extrapolates month-to-date activity to the last day of the
month:

1. Elapsed days
   -------------
   ``days_with_data`` depends only on the target month and the injected
   "now": a past month is fully elapsed, the current month is elapsed up to
   today's day of month, a future month has no elapsed day. The content of
   the ledger plays no role here.

2. Daily averages
   ---------------
   Averages are taken over the *actual subset*: days showing revenue, orders
   or any positive expense. Zero placeholder days are excluded from the
   denominator.

3. Projection
   -----------
   ``forecast[field] = existing_total[field] + daily_avg[field] * days_remaining``
   where ``existing_total`` sums every record of the ledger. Order and
   product counts are rounded to integers; currency amounts are not.
   Profit and ROI are recomputed from the projected revenue and expenses.

Edge cases
----------
- empty ledger                -> None,
- no remaining day (terminal) -> plain sum of the ledger,
- no actual day               -> all-zero forecast with complete metadata.

The function is pure and never reads the system clock.
"""

import math
from collections.abc import Sequence
from datetime import date, datetime
from typing import Optional, Union

from .merger import ledger_totals
from .periods import days_in_month, elapsed_days
from .records import (
    EXPENSE_FIELDS,
    DailyFinancialRecord,
    ExpenseBreakdown,
    ForecastMeta,
    ForecastResult,
    PeriodTotals,
    to_number,
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def has_activity(record: DailyFinancialRecord) -> bool:
    """True when the day shows revenue, orders or any positive expense."""
    if to_number(record.revenue) > 0 or to_number(record.order_count) > 0:
        return True
    return any(
        to_number(getattr(record.expenses, name, 0.0)) > 0 for name in EXPENSE_FIELDS
    )


def daily_average(records: Sequence[DailyFinancialRecord]) -> PeriodTotals:
    """Per-field average over ``records`` (all zeros for an empty sequence)."""
    if not records:
        return PeriodTotals()

    count = len(records)
    totals = ledger_totals(records)
    return PeriodTotals(
        revenue=totals.revenue / count,
        order_count=totals.order_count / count,
        product_count=totals.product_count / count,
        expenses=ExpenseBreakdown(
            **{
                name: getattr(totals.expenses, name) / count
                for name in EXPENSE_FIELDS
            }
        ),
    )


def forecast(
    records: Sequence[DailyFinancialRecord],
    month: int,
    year: int,
    now: Union[date, datetime],
) -> Optional[ForecastResult]:
    """Project the ledger of (month, year) to the end of the month.

    Args:
        records: Daily ledger of the target month, ascending by date.
        month: Target month (1-12).
        year: Target year.
        now: Reference date used to decide how many days have elapsed.

    Returns:
        A ForecastResult dated on the last day of the month, or None when
        ``records`` is empty.
    """
    if not records:
        return None

    total_days = days_in_month(year, month)
    with_data = elapsed_days(month, year, now)
    remaining = total_days - with_data

    existing = ledger_totals(records)
    actual = [record for record in records if has_activity(record)]
    avg = daily_average(actual)

    meta = ForecastMeta(
        days_in_month=total_days,
        days_with_data=with_data,
        days_remaining=remaining,
        daily_avg=avg,
        existing_totals=existing,
        actual_days=len(actual),
    )
    last_day = date(year, month, total_days)

    if remaining <= 0:
        return ForecastResult(
            date=last_day,
            revenue=existing.revenue,
            order_count=existing.order_count,
            product_count=existing.product_count,
            expenses=existing.expenses,
            meta=meta,
        )

    if not actual:
        return ForecastResult(date=last_day, meta=meta)

    projected_expenses = ExpenseBreakdown(
        **{
            name: getattr(existing.expenses, name)
            + getattr(avg.expenses, name) * remaining
            for name in EXPENSE_FIELDS
        }
    )
    return ForecastResult(
        date=last_day,
        revenue=existing.revenue + avg.revenue * remaining,
        order_count=_round_half_up(existing.order_count + avg.order_count * remaining),
        product_count=_round_half_up(
            existing.product_count + avg.product_count * remaining
        ),
        expenses=projected_expenses,
        meta=meta,
    )
