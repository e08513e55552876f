# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for SMB CashFlow.

This module reads the CSV files feeding the cash-flow dashboard and
normalizes them into pandas DataFrames with a stable schema. Column names are
case-insensitive and surrounding spaces are ignored.

Common rules
------------
- ``date`` columns are parsed strictly: an invalid date raises ValueError.
  Timestamps are truncated to the day.
- Amount columns are coerced: values that cannot be parsed (empty cells,
  "n/a", ...) become 0 and a warning is logged with the number of affected
  rows.
- An optional ``store_id`` column restricts a row to one store. Rows without
  a store id apply to every store.

Supported files
---------------

1) Revenue (``read_revenue``)
   Either a daily aggregate:
       date, revenue, order_count, product_count
   or one row per order:
       date, total[, quantity, status]
   Order rows are normalized to revenue=total, order_count=1,
   product_count=quantity. The provider layer groups them per day.

2) Expenses (``read_expenses``)
       date, amount[, description]
   Used for both VAT-deductible and non-VAT-deductible expenses.

3) Payroll (``read_payroll``)
       month, year, gross_salary, employer_costs[, employee]

4) Supplier costs (``read_supplier_costs``)
       date, product_cost, shipping_cost   ('shipping' is accepted too)

5) Marketing spend (``read_marketing_spend``)
       date[, facebook, google, tiktok]

If a file does not match its expected structure, a clear ValueError is raised.
"""

import logging
import os
from typing import Union

import pandas as pd

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def _read_csv(path: PathLike) -> pd.DataFrame:
    df = pd.read_csv(path)
    df.columns = [str(c).lower().strip() for c in df.columns]
    return df


def _require(df: pd.DataFrame, required: set[str], what: str, path: PathLike) -> None:
    missing = required - set(df.columns)
    if missing:
        raise ValueError(
            f"Invalid {what} file {path}: missing column(s) "
            f"{', '.join(sorted(missing))}."
        )


def _parse_dates(d: pd.DataFrame, column: str = "date") -> None:
    try:
        d[column] = pd.to_datetime(d[column], errors="raise").dt.normalize()
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Invalid values in '{column}' column.") from exc


def _coerce_amounts(d: pd.DataFrame, columns: list[str], what: str) -> None:
    """Convert columns to float in place, replacing bad values with 0."""
    for col in columns:
        if col not in d.columns:
            d[col] = 0.0
            continue
        values = pd.to_numeric(d[col], errors="coerce")
        bad = int(values.isna().sum())
        if bad:
            logger.warning(
                "%s: %d non-numeric value(s) in '%s' replaced by 0", what, bad, col
            )
        d[col] = values.fillna(0.0).astype(float)


def _normalize_store_id(d: pd.DataFrame) -> None:
    if "store_id" in d.columns:
        d["store_id"] = pd.to_numeric(d["store_id"], errors="coerce").astype("Int64")
    else:
        d["store_id"] = pd.array([pd.NA] * len(d), dtype="Int64")


def read_revenue(path: PathLike) -> pd.DataFrame:
    """
    Read revenue data (daily aggregates or individual orders).

    Returns
    -------
    pandas.DataFrame
        Columns: date, store_id, revenue, order_count, product_count, status.
        ``status`` is NA for daily aggregates.

    Raises
    ------
    ValueError
        If neither supported structure is found or dates are invalid.
    """
    df = _read_csv(path)
    cols = set(df.columns)
    d = df.copy()

    if {"date", "revenue"}.issubset(cols):
        _parse_dates(d)
        _coerce_amounts(d, ["revenue", "order_count", "product_count"], "revenue")
        d["status"] = pd.NA
    elif {"date", "total"}.issubset(cols):
        _parse_dates(d)
        _coerce_amounts(d, ["total", "quantity"], "orders")
        d["revenue"] = d["total"]
        d["order_count"] = 1.0
        d["product_count"] = d["quantity"]
        if "status" in d.columns:
            d["status"] = d["status"].astype("string").str.strip()
        else:
            d["status"] = pd.NA
    else:
        raise ValueError(
            f"Invalid revenue file {path}. Expected either:\n"
            "  - date, revenue, order_count, product_count\n"
            "  - date, total[, quantity, status] (one row per order)"
        )

    _normalize_store_id(d)
    return d[
        ["date", "store_id", "revenue", "order_count", "product_count", "status"]
    ].reset_index(drop=True)


def read_expenses(path: PathLike) -> pd.DataFrame:
    """
    Read an expenses file.

    Returns columns: date, store_id, amount, description.
    """
    d = _read_csv(path)
    _require(d, {"date", "amount"}, "expenses", path)
    _parse_dates(d)
    _coerce_amounts(d, ["amount"], "expenses")
    if "description" in d.columns:
        d["description"] = d["description"].fillna("").astype(str)
    else:
        d["description"] = ""
    _normalize_store_id(d)
    return d[["date", "store_id", "amount", "description"]].reset_index(drop=True)


def read_payroll(path: PathLike) -> pd.DataFrame:
    """
    Read a payroll file (one row per employee and month).

    Returns columns: month, year, store_id, employee, gross_salary,
    employer_costs.
    """
    d = _read_csv(path)
    _require(d, {"month", "year", "gross_salary", "employer_costs"}, "payroll", path)

    for col in ("month", "year"):
        values = pd.to_numeric(d[col], errors="coerce")
        if values.isna().any():
            raise ValueError(f"Invalid values in '{col}' column.")
        d[col] = values.astype(int)
    if not d["month"].between(1, 12).all():
        raise ValueError("Invalid values in 'month' column (expected 1-12).")

    _coerce_amounts(d, ["gross_salary", "employer_costs"], "payroll")
    if "employee" in d.columns:
        d["employee"] = d["employee"].fillna("").astype(str)
    else:
        d["employee"] = ""
    _normalize_store_id(d)
    return d[
        ["month", "year", "store_id", "employee", "gross_salary", "employer_costs"]
    ].reset_index(drop=True)


def read_supplier_costs(path: PathLike) -> pd.DataFrame:
    """
    Read daily product and shipping costs.

    Returns columns: date, store_id, product_cost, shipping_cost.
    """
    d = _read_csv(path)
    if "shipping" in d.columns and "shipping_cost" not in d.columns:
        d = d.rename(columns={"shipping": "shipping_cost"})
    _require(d, {"date", "product_cost", "shipping_cost"}, "supplier costs", path)
    _parse_dates(d)
    _coerce_amounts(d, ["product_cost", "shipping_cost"], "supplier costs")
    _normalize_store_id(d)
    return d[["date", "store_id", "product_cost", "shipping_cost"]].reset_index(
        drop=True
    )


def read_marketing_spend(path: PathLike) -> pd.DataFrame:
    """
    Read user-entered marketing spend per day.

    Missing platform columns count as 0.
    Returns columns: date, store_id, facebook, google, tiktok.
    """
    d = _read_csv(path)
    _require(d, {"date"}, "marketing", path)
    _parse_dates(d)
    _coerce_amounts(d, ["facebook", "google", "tiktok"], "marketing")
    _normalize_store_id(d)
    return d[["date", "store_id", "facebook", "google", "tiktok"]].reset_index(
        drop=True
    )
