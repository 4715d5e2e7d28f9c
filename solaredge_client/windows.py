# solaredge_client/windows.py
"""Date window ceilings and calendar arithmetic.

Month and year steps use dateutil's relativedelta, which clamps to the last
day of the target month (Jan 31 + 1 month == Feb 28/29).
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional, TypeVar, Union

from dateutil.relativedelta import relativedelta

from solaredge_client.errors import ValidationError, WindowError
from solaredge_client.validators import validate_choice

DateLike = TypeVar("DateLike", date, datetime)


class PeriodClass(str, Enum):
    WEEK = "Week"
    MONTH = "Month"
    YEAR = "Year"

    @property
    def increment(self) -> relativedelta:
        if self is PeriodClass.WEEK:
            return relativedelta(days=7)
        if self is PeriodClass.MONTH:
            return relativedelta(months=1)
        return relativedelta(years=1)


PERIOD_LENGTHS = ("Day", "Week", "Month", "Year")


def add_days(value: DateLike, days: int) -> DateLike:
    return value + relativedelta(days=days)


def add_months(value: DateLike, months: int) -> DateLike:
    return value + relativedelta(months=months)


def add_years(value: DateLike, years: int) -> DateLike:
    return value + relativedelta(years=years)


def window_limit(start: DateLike, period: PeriodClass) -> DateLike:
    return start + period.increment


def validate_window(
    start: DateLike,
    end: DateLike,
    period: Optional[PeriodClass],
    name: str = "window",
) -> tuple[DateLike, DateLike]:
    """Check ordering and, when a period class applies, the maximum span."""
    if end < start:
        raise WindowError(name, f"end {end.isoformat()} is before start {start.isoformat()}")
    if period is None:
        return start, end
    limit = window_limit(start, period)
    if end > limit:
        max_days = (limit - start).days
        raise WindowError(
            name,
            f"span from {start.isoformat()} to {end.isoformat()} exceeds one "
            f"{period.value.lower()} (at most {max_days} days from start)",
        )
    return start, end


def split_window(
    start: DateLike,
    end: DateLike,
    period: Optional[PeriodClass],
) -> list[tuple[DateLike, DateLike]]:
    """Cut [start, end] into consecutive windows that each pass validate_window."""
    if end < start:
        raise WindowError("window", f"end {end.isoformat()} is before start {start.isoformat()}")
    if period is None or end <= window_limit(start, period):
        return [(start, end)]

    windows = []
    step = 1
    cursor = start
    while cursor < end:
        # Step from the original start so month-end clamping does not drift.
        upper = min(start + period.increment * step, end)
        windows.append((cursor, upper))
        cursor = upper
        step += 1
    return windows


def period_window(anchor: Union[date, datetime], period_length: str) -> tuple[date, date]:
    """Return the [start, end) calendar window of one period length.

    Day and Week start at the anchor date; Month starts on the first of the
    anchor's month; Year starts on January 1st of the anchor's year.
    """
    length = validate_choice(period_length, "period_length", PERIOD_LENGTHS)
    if isinstance(anchor, datetime):
        anchor = anchor.date()
    if not isinstance(anchor, date):
        raise ValidationError("anchor", f"expected a date, got {type(anchor).__name__}")

    if length == "Day":
        return anchor, add_days(anchor, 1)
    if length == "Week":
        return anchor, add_days(anchor, 7)
    if length == "Month":
        start = anchor.replace(day=1)
        return start, add_months(start, 1)
    start = anchor.replace(month=1, day=1)
    return start, add_years(start, 1)


def period_label(start: date, period_length: str) -> str:
    """Short text naming a period: 2024, 2024-03 or 2024-03-05."""
    if period_length == "Year":
        return f"{start.year:04d}"
    if period_length == "Month":
        return f"{start.year:04d}-{start.month:02d}"
    return start.isoformat()
