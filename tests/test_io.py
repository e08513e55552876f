import logging

import pandas as pd
import pytest

from smb_cashflow.io import (
    read_expenses,
    read_marketing_spend,
    read_payroll,
    read_revenue,
    read_supplier_costs,
)


def _write(tmp_path, name: str, content: str):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_read_revenue_daily_aggregates(tmp_path) -> None:
    path = _write(
        tmp_path,
        "revenue.csv",
        "Date, Revenue ,order_count,product_count\n"
        "2025-03-01,1180,2,3\n"
        "2025-03-02,590,1,1\n",
    )

    df = read_revenue(path)

    assert list(df.columns) == [
        "date",
        "store_id",
        "revenue",
        "order_count",
        "product_count",
        "status",
    ]
    assert df["revenue"].tolist() == [1180.0, 590.0]
    assert df["date"].iloc[0] == pd.Timestamp("2025-03-01")
    assert df["status"].isna().all()
    assert df["store_id"].isna().all()


def test_read_revenue_order_rows(tmp_path) -> None:
    """One row per order: revenue=total, order_count=1, product_count=quantity."""
    path = _write(
        tmp_path,
        "orders.csv",
        "date,store_id,total,quantity,status\n"
        "2025-03-01T09:12:00,1,236.00,2, completed\n"
        "2025-03-01T14:40:00,2,118.00,1,cancelled\n",
    )

    df = read_revenue(path)

    assert df["date"].tolist() == [pd.Timestamp("2025-03-01")] * 2
    assert df["revenue"].tolist() == [236.0, 118.0]
    assert df["order_count"].tolist() == [1.0, 1.0]
    assert df["product_count"].tolist() == [2.0, 1.0]
    assert df["status"].tolist() == ["completed", "cancelled"]
    assert df["store_id"].tolist() == [1, 2]


def test_read_revenue_rejects_unknown_structure(tmp_path) -> None:
    path = _write(tmp_path, "bad.csv", "day,amount\n2025-03-01,10\n")

    with pytest.raises(ValueError):
        read_revenue(path)


def test_invalid_dates_raise(tmp_path) -> None:
    path = _write(tmp_path, "bad_dates.csv", "date,amount\nnot-a-date,10\n")

    with pytest.raises(ValueError):
        read_expenses(path)


def test_read_expenses_coerces_bad_amounts(tmp_path, caplog) -> None:
    path = _write(
        tmp_path,
        "expenses.csv",
        "date,amount,description\n"
        "2025-03-01,1180,Rent\n"
        "2025-03-02,abc,Broken\n"
        "2025-03-03,,\n",
    )

    with caplog.at_level(logging.WARNING, logger="smb_cashflow.io"):
        df = read_expenses(path)

    assert df["amount"].tolist() == [1180.0, 0.0, 0.0]
    assert df["description"].tolist() == ["Rent", "Broken", ""]
    assert "replaced by 0" in caplog.text


def test_read_expenses_requires_amount(tmp_path) -> None:
    path = _write(tmp_path, "expenses.csv", "date,description\n2025-03-01,Rent\n")

    with pytest.raises(ValueError, match="amount"):
        read_expenses(path)


def test_read_payroll(tmp_path) -> None:
    path = _write(
        tmp_path,
        "payroll.csv",
        "month,year,employee,gross_salary,employer_costs\n"
        "3,2025,A,9000,1500\n"
        "3,2025,B,7500,1250\n",
    )

    df = read_payroll(path)

    assert df["gross_salary"].sum() == pytest.approx(16500.0)
    assert df["employer_costs"].sum() == pytest.approx(2750.0)
    assert df["month"].tolist() == [3, 3]


def test_read_payroll_rejects_invalid_month(tmp_path) -> None:
    path = _write(
        tmp_path,
        "payroll.csv",
        "month,year,gross_salary,employer_costs\n13,2025,9000,1500\n",
    )

    with pytest.raises(ValueError, match="month"):
        read_payroll(path)


def test_read_supplier_costs_accepts_shipping_alias(tmp_path) -> None:
    path = _write(
        tmp_path,
        "supplier.csv",
        "date,product_cost,shipping\n2025-03-01,95,20\n",
    )

    df = read_supplier_costs(path)

    assert df["product_cost"].tolist() == [95.0]
    assert df["shipping_cost"].tolist() == [20.0]


def test_read_marketing_spend_missing_platforms_are_zero(tmp_path) -> None:
    path = _write(tmp_path, "marketing.csv", "date,facebook\n2025-03-01,50\n")

    df = read_marketing_spend(path)

    assert df["facebook"].tolist() == [50.0]
    assert df["google"].tolist() == [0.0]
    assert df["tiktok"].tolist() == [0.0]
