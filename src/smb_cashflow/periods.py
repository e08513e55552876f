# SMB CashFlow - Cash-flow ledger & forecast for SMB e-commerce stores
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for SMB CashFlow.

This module defines a Period value object and helpers to derive the
reporting month from CLI arguments, to position a month relative to "today"
(past / current / future) and to filter DataFrames by period.

"Today" is always passed explicitly to the computation functions. Only
``determine_month_from_args`` falls back to the system clock, through
``_today()`` which is isolated for easier testing.
"""

from calendar import monthrange
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Literal, Optional, Union

import pandas as pd

from .errors import ValidationError

MIN_YEAR = 2000
MAX_YEAR = 2100

MonthPosition = Literal["past", "current", "future"]


@dataclass(frozen=True)
class Period:
    """Represents a reporting period with a human-readable label."""

    start: date
    end: date
    label: str

    @property
    def day_count(self) -> int:
        """Number of calendar days in the period (inclusive)."""
        if self.end < self.start:
            return 0
        return (self.end - self.start).days + 1

    def days(self) -> list[date]:
        """All calendar days of the period, in ascending order."""
        return [self.start + timedelta(days=i) for i in range(self.day_count)]

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def _today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


def as_date(value: Union[date, datetime, str]) -> date:
    """Normalize a date, datetime or ISO string ("YYYY-MM-DD...") to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    # Order APIs return full timestamps ("2025-03-01T10:22:00"); keep the day.
    return date.fromisoformat(text[:10])


def days_in_month(year: int, month: int) -> int:
    """Number of days in (year, month), leap-year aware."""
    return monthrange(year, month)[1]


def month_period(month: int, year: int) -> Period:
    """Full calendar month as a Period."""
    last_day = days_in_month(year, month)
    return Period(
        start=date(year, month, 1),
        end=date(year, month, last_day),
        label=f"{year}-{month:02d}",
    )


def validate_month_year(month: int, year: int) -> None:
    """Raise ValidationError unless month is 1..12 and year in range."""
    if not isinstance(month, int) or isinstance(month, bool) or not 1 <= month <= 12:
        raise ValidationError(f"Invalid month: {month!r} (expected 1-12).")
    if (
        not isinstance(year, int)
        or isinstance(year, bool)
        or not MIN_YEAR <= year <= MAX_YEAR
    ):
        raise ValidationError(
            f"Invalid year: {year!r} (expected {MIN_YEAR}-{MAX_YEAR})."
        )


def month_position(
    month: int, year: int, today: Union[date, datetime]
) -> MonthPosition:
    """Position of (month, year) relative to the month containing ``today``."""
    today = as_date(today)
    target = (year, month)
    current = (today.year, today.month)
    if target < current:
        return "past"
    if target == current:
        return "current"
    return "future"


def elapsed_days(month: int, year: int, today: Union[date, datetime]) -> int:
    """
    Number of days of (month, year) considered elapsed as of ``today``.

    - past month    -> every day of the month,
    - current month -> today's day of month,
    - future month  -> 0.

    The result never exceeds the length of the month.
    """
    total = days_in_month(year, month)
    position = month_position(month, year, today)
    if position == "past":
        elapsed = total
    elif position == "current":
        elapsed = as_date(today).day
    else:
        elapsed = 0
    return min(elapsed, total)


def determine_month_from_args(args) -> tuple[int, int, date]:
    """
    Determine the reporting month, year and "today" from CLI args.

    Priority:
        1. args.today (YYYY-MM-DD) overrides the system clock,
        2. args.month / args.year, each defaulting to today's month/year.

    Returns:
        (month, year, today)

    Raises:
        ValidationError: if the month/year are out of range or today is not
        a valid ISO date.
    """
    raw_today: Optional[str] = getattr(args, "today", None)
    if raw_today:
        try:
            today = date.fromisoformat(raw_today)
        except ValueError as exc:
            raise ValidationError(
                f"Invalid --today value {raw_today!r}, expected YYYY-MM-DD."
            ) from exc
    else:
        today = _today()

    month = getattr(args, "month", None)
    year = getattr(args, "year", None)
    if month is None:
        month = today.month
    if year is None:
        year = today.year

    validate_month_year(month, year)
    return month, year, today


def filter_frame_by_period(frame: pd.DataFrame, period: Period) -> pd.DataFrame:
    """
    Keep only the rows of ``frame`` whose 'date' lies within the period.

    The 'date' column is expected to be of type datetime64[ns] (as produced
    by the readers in io.py). Bounds are inclusive.
    """
    mask = (frame["date"] >= pd.Timestamp(period.start)) & (
        frame["date"] <= pd.Timestamp(period.end)
    )
    return frame.loc[mask].copy()
