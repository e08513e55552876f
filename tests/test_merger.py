from datetime import date

import pytest

from smb_cashflow.merger import (
    index_by_date,
    ledger_totals,
    merge_daily_records,
    recompute_record,
    replace_record,
    update_expense,
)
from smb_cashflow.periods import month_period
from smb_cashflow.records import (
    EXPENSE_FIELDS,
    DailyCost,
    DailyFinancialRecord,
    ExpenseBreakdown,
    MarketingSpend,
    MonthlyExpenseTotals,
    PayrollTotals,
)


@pytest.fixture
def march_totals() -> MonthlyExpenseTotals:
    return MonthlyExpenseTotals(
        store_id=1,
        month=3,
        year=2025,
        vat_deductible=3100.0,
        non_vat_deductible=620.0,
        payroll=PayrollTotals(gross_total=26000, employer_costs_total=5000),
    )


def test_merge_produces_one_record_per_day(march_totals) -> None:
    """Missing revenue days are zero-filled and records are sorted by date."""
    period = month_period(3, 2025)
    revenue = [
        {"date": "2025-03-05", "revenue": 1180, "orderCount": 2, "productCount": 3},
        {"date": "2025-03-01T10:00:00", "revenue": "590", "order_count": 1},
    ]

    records = merge_daily_records(period, revenue, march_totals)

    assert len(records) == 31
    assert [r.date for r in records] == period.days()
    assert records[0].revenue == pytest.approx(590.0)
    assert records[0].order_count == 1
    assert records[4].order_count == 2
    assert records[4].product_count == 3
    assert records[1].revenue == 0.0
    assert records[1].order_count == 0


def test_same_day_entries_are_summed_and_out_of_period_ignored(march_totals) -> None:
    period = month_period(3, 2025)
    revenue = [
        DailyFinancialRecord(date=date(2025, 3, 2), revenue=100, order_count=1),
        DailyFinancialRecord(date=date(2025, 3, 2), revenue=50, order_count=2),
        DailyFinancialRecord(date=date(2025, 4, 1), revenue=999, order_count=9),
    ]

    records = merge_daily_records(period, revenue, march_totals)
    totals = ledger_totals(records)

    assert records[1].revenue == pytest.approx(150.0)
    assert records[1].order_count == 3
    assert totals.revenue == pytest.approx(150.0)


def test_lump_sums_are_spread_uniformly(march_totals) -> None:
    records = merge_daily_records(month_period(3, 2025), [], march_totals)

    for r in records:
        assert r.expenses.vat_deductible == pytest.approx(100.0)
        assert r.expenses.non_vat_deductible == pytest.approx(20.0)
        assert r.expenses.salary == pytest.approx(1000.0)

    totals = ledger_totals(records)
    assert totals.expenses.vat_deductible == pytest.approx(3100.0)
    assert totals.expenses.salary == pytest.approx(31000.0)


def test_daily_vat_is_output_minus_input_vat() -> None:
    totals = MonthlyExpenseTotals(store_id=1, month=4, year=2025, vat_deductible=35400)
    revenue = [{"date": "2025-04-01", "revenue": 2360}]

    records = merge_daily_records(month_period(4, 2025), revenue, totals)

    # 1180 / day deductible -> 180 input VAT; 2360 revenue -> 360 output VAT.
    assert records[0].expenses.vat == pytest.approx(180.0)
    assert records[1].expenses.vat == pytest.approx(-180.0)


def test_supplier_costs_and_marketing_are_placed_on_their_day(march_totals) -> None:
    period = month_period(3, 2025)
    costs = {date(2025, 3, 3): DailyCost(product_cost=95, shipping=20)}
    marketing = {date(2025, 3, 3): MarketingSpend(facebook=50, google=30, tiktok=5)}

    records = merge_daily_records(period, [], march_totals, costs, marketing)

    day = records[2].expenses
    assert day.product_cost == 95.0
    assert day.shipping == 20.0
    assert day.marketing_facebook == 50.0
    assert day.marketing_google == 30.0
    assert day.marketing_tiktok == 5.0
    assert records[3].expenses.product_cost == 0.0


def test_every_record_satisfies_the_breakdown_invariant(march_totals) -> None:
    period = month_period(3, 2025)
    revenue = [{"date": "2025-03-10", "revenue": 4000, "order_count": 4}]
    costs = {date(2025, 3, 10): DailyCost(product_cost=700, shipping=80)}

    for r in merge_daily_records(period, revenue, march_totals, costs):
        parts = sum(getattr(r.expenses, name) for name in EXPENSE_FIELDS)
        assert r.expenses.total == pytest.approx(parts)
        assert r.profit == pytest.approx(r.revenue - r.expenses.total)
        if r.expenses.total > 0:
            assert r.roi == pytest.approx(r.profit / r.expenses.total * 100)


def test_update_expense_recomputes_only_that_record(march_totals) -> None:
    records = merge_daily_records(month_period(3, 2025), [], march_totals)
    target = records[4]

    edited = update_expense(target, "marketing_google", "80")
    ledger = replace_record(records, edited)

    assert edited.expenses.marketing_google == 80.0
    assert edited.expenses.total == pytest.approx(target.expenses.total + 80)
    assert edited.profit == pytest.approx(target.profit - 80)
    assert ledger[4] is edited
    assert records[4] is target
    assert all(a is b for i, (a, b) in enumerate(zip(records, ledger)) if i != 4)


def test_update_expense_rejects_unknown_field() -> None:
    record = DailyFinancialRecord(date=date(2025, 3, 1))

    with pytest.raises(ValueError):
        update_expense(record, "coffee", 10)


def test_replace_record_requires_an_existing_date() -> None:
    records = [DailyFinancialRecord(date=date(2025, 3, 1))]
    index = index_by_date(records)

    assert index == {date(2025, 3, 1): 0}
    with pytest.raises(KeyError):
        replace_record(records, DailyFinancialRecord(date=date(2025, 3, 2)), index)


def test_ledger_totals_recompute_roi_on_sums() -> None:
    """Totals ROI comes from summed profit and expenses, not averaged ROIs."""
    records = merge_daily_records(
        month_period(2, 2025),
        [{"date": "2025-02-01", "revenue": 300}],
        MonthlyExpenseTotals(store_id=1, month=2, year=2025, non_vat_deductible=280),
    )
    totals = ledger_totals(records)

    assert totals.revenue == pytest.approx(300.0)
    assert totals.expenses.non_vat_deductible == pytest.approx(280.0)
    assert totals.profit == pytest.approx(300.0 - totals.expenses.total)
    assert totals.roi == pytest.approx(totals.profit / totals.expenses.total * 100)


def test_recompute_record_keeps_values() -> None:
    record = DailyFinancialRecord(
        date=date(2025, 3, 1), revenue=500, expenses=ExpenseBreakdown(salary=100)
    )

    again = recompute_record(record)

    assert again == record
    assert again.profit == pytest.approx(400.0)


def test_mapping_supplier_costs_and_marketing_are_normalized(march_totals) -> None:
    """Plain dicts (snake or camel case) keyed by ISO strings are accepted."""
    period = month_period(3, 2025)
    costs = {
        "2025-03-03": {"productCost": "95", "shippingCost": 20},
        date(2025, 3, 4): {"product_cost": 40, "shipping": 5},
        "not-a-date": {"product_cost": 999},
    }
    marketing = {"2025-03-03": {"facebook": 50, "marketing_google": 30}}

    records = merge_daily_records(period, [], march_totals, costs, marketing)

    assert len(records) == 31
    assert records[2].expenses.product_cost == 95.0
    assert records[2].expenses.shipping == 20.0
    assert records[2].expenses.marketing_facebook == 50.0
    assert records[2].expenses.marketing_google == 30.0
    assert records[2].expenses.marketing_tiktok == 0.0
    assert records[3].expenses.product_cost == 40.0
    assert records[3].expenses.shipping == 5.0
    assert ledger_totals(records).expenses.product_cost == pytest.approx(135.0)


def test_unusable_cost_values_count_as_zero(march_totals, caplog) -> None:
    costs = {date(2025, 3, 3): 120}

    records = merge_daily_records(month_period(3, 2025), [], march_totals, costs)

    assert records[2].expenses.product_cost == 0.0
    assert "Ignored supplier cost of type int" in caplog.text


def test_malformed_revenue_entries_are_skipped(march_totals, caplog) -> None:
    """Entries without a usable date do not abort the merge."""
    revenue = [
        {"revenue": 100},
        {"date": None, "revenue": 100},
        {"date": "yesterday", "revenue": 100},
        ["2025-03-01", 100],
        {"date": "2025-03-02", "revenue": 250, "order_count": 1},
    ]

    records = merge_daily_records(month_period(3, 2025), revenue, march_totals)

    assert len(records) == 31
    assert records[1].revenue == pytest.approx(250.0)
    assert ledger_totals(records).revenue == pytest.approx(250.0)
    assert "Ignored 4 malformed revenue entries for 2025-03" in caplog.text
