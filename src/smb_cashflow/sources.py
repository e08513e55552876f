# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Data providers for SMB CashFlow.

The computation core is agnostic of where its inputs come from. This module
defines the provider interfaces it consumes and a set of implementations
backed by pandas DataFrames (typically loaded with the readers in io.py).

Interfaces
----------
- RevenueProvider.get_daily_revenue(store_id, period, statuses=None)
    -> list[DailyFinancialRecord], zero-filled for days without orders.
- ExpenseProvider.get_vat_deductible(store_id, period)
- ExpenseProvider.get_non_vat_deductible(store_id, period)
    -> list of {"date", "amount", "description"} items.
- PayrollProvider.get_monthly_totals(store_id, month, year)
    -> PayrollTotals.
- SupplierCostProvider.get_daily_costs(store_id, period)
    -> {date: DailyCost}. Optional: the dashboard works without it.

Any other source (an e-commerce API, an ad platform, a database) can be
plugged in by implementing the matching interface. Providers signal a failure
by raising UpstreamFetchError (or any exception); gather.py turns failures
into warnings and zero-filled data.
"""

from collections.abc import Sequence
from datetime import date
from typing import Any, Optional, Protocol

import pandas as pd

from .errors import UpstreamFetchError
from .periods import Period, filter_frame_by_period
from .records import DailyCost, DailyFinancialRecord, MarketingSpend, PayrollTotals


class RevenueProvider(Protocol):
    def get_daily_revenue(
        self,
        store_id: int,
        period: Period,
        statuses: Optional[Sequence[str]] = None,
    ) -> list[DailyFinancialRecord]: ...


class ExpenseProvider(Protocol):
    def get_vat_deductible(
        self, store_id: int, period: Period
    ) -> list[dict[str, Any]]: ...

    def get_non_vat_deductible(
        self, store_id: int, period: Period
    ) -> list[dict[str, Any]]: ...


class PayrollProvider(Protocol):
    def get_monthly_totals(
        self, store_id: int, month: int, year: int
    ) -> PayrollTotals: ...


class SupplierCostProvider(Protocol):
    def get_daily_costs(
        self, store_id: int, period: Period
    ) -> dict[date, DailyCost]: ...


def _check_columns(frame: pd.DataFrame, required: set[str], source: str) -> None:
    missing = required - set(frame.columns)
    if missing:
        raise UpstreamFetchError(
            source, f"missing column(s) {', '.join(sorted(missing))}"
        )


def _select_store(frame: pd.DataFrame, store_id: int) -> pd.DataFrame:
    """Rows for ``store_id`` plus rows not bound to any store."""
    if "store_id" not in frame.columns:
        return frame
    mask = frame["store_id"].isna() | frame["store_id"].eq(store_id).fillna(False)
    return frame.loc[mask.astype(bool)]


def _sum_by_day(frame: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    if frame.empty:
        return pd.DataFrame(columns=columns)
    return frame.groupby(frame["date"].dt.date)[columns].sum()


class FrameRevenueProvider:
    """Revenue from a DataFrame produced by ``io.read_revenue``."""

    source = "revenue"

    def __init__(self, frame: pd.DataFrame) -> None:
        _check_columns(
            frame, {"date", "revenue", "order_count", "product_count"}, self.source
        )
        self.frame = frame

    def get_daily_revenue(
        self,
        store_id: int,
        period: Period,
        statuses: Optional[Sequence[str]] = None,
    ) -> list[DailyFinancialRecord]:
        d = filter_frame_by_period(_select_store(self.frame, store_id), period)

        # Status filtering only applies to order-level rows.
        if statuses is not None and "status" in d.columns:
            allowed = d["status"].isna() | d["status"].isin(list(statuses)).fillna(
                False
            )
            d = d.loc[allowed.astype(bool)]

        by_day = _sum_by_day(d, ["revenue", "order_count", "product_count"])

        records: list[DailyFinancialRecord] = []
        for day in period.days():
            if day in by_day.index:
                row = by_day.loc[day]
                records.append(
                    DailyFinancialRecord(
                        date=day,
                        revenue=row["revenue"],
                        order_count=row["order_count"],
                        product_count=row["product_count"],
                    )
                )
            else:
                records.append(DailyFinancialRecord(date=day))
        return records


class FrameExpenseProvider:
    """VAT-deductible and non-VAT-deductible expenses from two DataFrames."""

    source = "expenses"

    def __init__(
        self,
        vat_deductible: Optional[pd.DataFrame] = None,
        non_vat_deductible: Optional[pd.DataFrame] = None,
    ) -> None:
        for frame in (vat_deductible, non_vat_deductible):
            if frame is not None:
                _check_columns(frame, {"date", "amount"}, self.source)
        self.vat_deductible = vat_deductible
        self.non_vat_deductible = non_vat_deductible

    @staticmethod
    def _items(
        frame: Optional[pd.DataFrame], store_id: int, period: Period
    ) -> list[dict[str, Any]]:
        if frame is None:
            return []
        d = filter_frame_by_period(_select_store(frame, store_id), period)
        items: list[dict[str, Any]] = []
        for row in d.itertuples(index=False):
            items.append(
                {
                    "date": row.date.date(),
                    "amount": float(row.amount),
                    "description": str(getattr(row, "description", "") or ""),
                }
            )
        return items

    def get_vat_deductible(self, store_id: int, period: Period) -> list[dict[str, Any]]:
        return self._items(self.vat_deductible, store_id, period)

    def get_non_vat_deductible(
        self, store_id: int, period: Period
    ) -> list[dict[str, Any]]:
        return self._items(self.non_vat_deductible, store_id, period)


class FramePayrollProvider:
    """Monthly payroll totals from a DataFrame produced by ``io.read_payroll``."""

    source = "payroll"

    def __init__(self, frame: Optional[pd.DataFrame] = None) -> None:
        if frame is not None:
            _check_columns(
                frame, {"month", "year", "gross_salary", "employer_costs"}, self.source
            )
        self.frame = frame

    def get_monthly_totals(self, store_id: int, month: int, year: int) -> PayrollTotals:
        if self.frame is None:
            return PayrollTotals()
        d = _select_store(self.frame, store_id)
        d = d.loc[(d["month"] == month) & (d["year"] == year)]
        return PayrollTotals(
            gross_total=float(d["gross_salary"].sum()),
            employer_costs_total=float(d["employer_costs"].sum()),
        )


class FrameSupplierCostProvider:
    """Daily product/shipping costs from ``io.read_supplier_costs`` output."""

    source = "supplier_costs"

    def __init__(self, frame: pd.DataFrame) -> None:
        _check_columns(
            frame, {"date", "product_cost", "shipping_cost"}, self.source
        )
        self.frame = frame

    def get_daily_costs(self, store_id: int, period: Period) -> dict[date, DailyCost]:
        d = filter_frame_by_period(_select_store(self.frame, store_id), period)
        by_day = _sum_by_day(d, ["product_cost", "shipping_cost"])
        return {
            day: DailyCost(
                product_cost=row["product_cost"], shipping=row["shipping_cost"]
            )
            for day, row in by_day.iterrows()
        }


def marketing_from_frame(
    frame: Optional[pd.DataFrame], store_id: int, period: Period
) -> dict[date, MarketingSpend]:
    """Marketing spend by day from ``io.read_marketing_spend`` output."""
    if frame is None:
        return {}
    d = filter_frame_by_period(_select_store(frame, store_id), period)
    by_day = _sum_by_day(d, ["facebook", "google", "tiktok"])
    return {
        day: MarketingSpend(
            facebook=row["facebook"], google=row["google"], tiktok=row["tiktok"]
        )
        for day, row in by_day.iterrows()
    }
