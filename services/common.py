"""
Common utilities and shared functions.
Calendar-day date normalization, month arithmetic, and profitability math.
"""

import calendar
import logging
from datetime import date, datetime, timezone
from typing import List, Tuple, Union

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime, str]


def to_calendar_date(value: DateLike) -> date:
    """
    Truncate a date, datetime or ISO-8601 string to its calendar day.

    Any time component is discarded as written; no timezone conversion
    is applied.

    Examples:
        >>> to_calendar_date("2024-01-20T23:59:00-03:00")
        datetime.date(2024, 1, 20)
        >>> to_calendar_date(date(2024, 1, 20))
        datetime.date(2024, 1, 20)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            raise ValueError(f"Invalid ISO date: {value!r}") from None
    raise TypeError(f"Unsupported date value: {value!r}")


def to_utc_datetime(value: DateLike) -> datetime:
    """
    Get the instant of a date or date-time as an aware UTC datetime.

    Bare dates are UTC midnight and naive values are already UTC.

    Examples:
        >>> to_utc_datetime("2024-01-31T23:00:00-03:00").isoformat()
        '2024-02-01T02:00:00+00:00'
    """
    if isinstance(value, str):
        text = value.strip()
        if len(text) <= 10:
            return datetime.combine(to_calendar_date(text), datetime.min.time(), timezone.utc)
        try:
            value = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise ValueError(f"Invalid ISO date-time: {value!r}") from None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time(), timezone.utc)
    raise TypeError(f"Unsupported date value: {value!r}")


def utc_year_month(value: DateLike) -> Tuple[int, int]:
    """
    Get the (year, month) of a date in UTC.

    Naive values and bare dates are taken as UTC already; offset-aware
    date-times are converted first, so "2023-12-31T22:00:00-03:00" lands in
    January 2024.
    """
    moment = to_utc_datetime(value)
    return moment.year, moment.month


def utc_today() -> date:
    """Current calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def month_end(year: int, month: int) -> date:
    """Last calendar day of the given month."""
    return date(year, month, calendar.monthrange(year, month)[1])


def trailing_month_ends(today: date, months: int) -> List[date]:
    """
    Month-end dates for the trailing window, oldest first.
    The current month is included as the last element.
    """
    ends = []
    for offset in range(months - 1, -1, -1):
        index = today.year * 12 + (today.month - 1) - offset
        ends.append(month_end(index // 12, index % 12 + 1))
    return ends


def profitability_pct(profit: float, invested: float) -> float:
    """Profit as a percentage of invested capital; 0 when nothing is invested."""
    if invested > 0:
        return profit / invested * 100
    return 0.0
