import time
from datetime import date

import pytest

from smb_cashflow.errors import UpstreamFetchError
from smb_cashflow.gather import collect_month_inputs
from smb_cashflow.periods import month_period
from smb_cashflow.records import DailyCost, DailyFinancialRecord, PayrollTotals


class StubRevenue:
    def get_daily_revenue(self, store_id, period, statuses=None):
        return [
            DailyFinancialRecord(date=day, revenue=100, order_count=1)
            for day in period.days()
        ]


class StubExpenses:
    def get_vat_deductible(self, store_id, period):
        return [{"date": period.start, "amount": 1180}]

    def get_non_vat_deductible(self, store_id, period):
        return [{"date": period.start, "amount": "310"}]


class StubPayroll:
    def get_monthly_totals(self, store_id, month, year):
        return PayrollTotals(gross_total=9000, employer_costs_total=1500)


class StubSupplierCosts:
    def get_daily_costs(self, store_id, period):
        return {period.start: DailyCost(product_cost=95, shipping=20)}


class FailingRevenue:
    def get_daily_revenue(self, store_id, period, statuses=None):
        raise UpstreamFetchError("revenue", "HTTP 503")


class CrashingExpenses:
    def get_vat_deductible(self, store_id, period):
        raise RuntimeError("connection reset")

    def get_non_vat_deductible(self, store_id, period):
        return []


class SlowPayroll:
    def get_monthly_totals(self, store_id, month, year):
        time.sleep(1.0)
        return PayrollTotals(gross_total=1)


class MalformedPayroll:
    def get_monthly_totals(self, store_id, month, year):
        return {"gross_total": 9000}


class UndatedRevenue:
    def get_daily_revenue(self, store_id, period, statuses=None):
        return [
            {"revenue": 100},
            {"date": "2025-03-02", "revenue": 250, "order_count": 1},
        ]


def _collect(**overrides):
    kwargs = dict(
        store_id=1,
        month=3,
        year=2025,
        period=month_period(3, 2025),
        revenue_provider=StubRevenue(),
        expense_provider=StubExpenses(),
        payroll_provider=StubPayroll(),
        supplier_cost_provider=StubSupplierCosts(),
    )
    kwargs.update(overrides)
    return collect_month_inputs(**kwargs)


def test_collects_all_sources() -> None:
    inputs = _collect()

    assert inputs.warnings == []
    assert len(inputs.revenue) == 31
    assert inputs.monthly_totals.vat_deductible == pytest.approx(1180.0)
    assert inputs.monthly_totals.non_vat_deductible == pytest.approx(310.0)
    assert inputs.monthly_totals.payroll.total == pytest.approx(10500.0)
    assert inputs.daily_costs[date(2025, 3, 1)].product_cost == 95.0


def test_failing_revenue_is_zero_filled_with_a_warning(caplog) -> None:
    inputs = _collect(revenue_provider=FailingRevenue())

    assert len(inputs.revenue) == 31
    assert all(r.revenue == 0.0 for r in inputs.revenue)
    assert [w.source for w in inputs.warnings] == ["revenue"]
    assert "HTTP 503" in inputs.warnings[0].message
    assert "revenue" in caplog.text
    # Other sources are unaffected.
    assert inputs.monthly_totals.payroll.total == pytest.approx(10500.0)


def test_unexpected_exception_degrades_only_that_source() -> None:
    inputs = _collect(expense_provider=CrashingExpenses())

    assert [w.source for w in inputs.warnings] == ["vat_deductible_expenses"]
    assert "RuntimeError" in inputs.warnings[0].message
    assert inputs.monthly_totals.vat_deductible == 0.0
    assert len(inputs.revenue) == 31


def test_timed_out_source_is_replaced_by_zero() -> None:
    inputs = _collect(payroll_provider=SlowPayroll(), timeout=0.2)

    assert [w.source for w in inputs.warnings] == ["payroll"]
    assert "timed out" in inputs.warnings[0].message
    assert inputs.monthly_totals.payroll.total == 0.0


def test_malformed_result_is_treated_as_a_failure() -> None:
    inputs = _collect(payroll_provider=MalformedPayroll())

    assert [w.source for w in inputs.warnings] == ["payroll"]
    assert "dict" in inputs.warnings[0].message
    assert inputs.monthly_totals.payroll.total == 0.0


def test_supplier_costs_are_optional() -> None:
    inputs = _collect(supplier_cost_provider=None)

    assert inputs.daily_costs == {}
    assert inputs.warnings == []


def test_revenue_entries_without_a_date_are_dropped_with_a_warning() -> None:
    inputs = _collect(revenue_provider=UndatedRevenue())

    assert [w.source for w in inputs.warnings] == ["revenue"]
    assert "1 malformed entries ignored" in inputs.warnings[0].message
    assert "without a date" in inputs.warnings[0].message
    assert inputs.revenue == [{"date": "2025-03-02", "revenue": 250, "order_count": 1}]
