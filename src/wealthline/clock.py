"""Time helpers shared by the event store, snapshots and analysis.

All instants handled by the core are naive datetimes in UTC, matching what SQLite
hands back for ``DateTime`` columns.
"""

from __future__ import annotations

from calendar import monthrange
from datetime import date, datetime, time, timezone
from typing import Callable, Iterator

Clock = Callable[[], datetime]

END_OF_DAY = time(23, 59, 59, 999999)


def utcnow() -> datetime:
    """Return the current instant as a naive UTC datetime."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime | date) -> datetime:
    """Normalize a datetime (or date, read as end of that day) to naive UTC."""

    if not isinstance(value, datetime):
        return end_of_day(value)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, END_OF_DAY)


def month_end(year: int, month: int) -> datetime:
    """Return the last representable instant of the given month."""

    last_day = monthrange(year, month)[1]
    return datetime.combine(date(year, month, last_day), END_OF_DAY)


def add_months(value: datetime, months: int) -> datetime:
    """Shift by whole months, clamping the day to the target month's length."""

    month = value.month - 1 + months
    year = value.year + month // 12
    month = month % 12 + 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def month_ends_between(start: datetime, now: datetime) -> Iterator[datetime]:
    """Yield every month end from ``start``'s month that lies strictly before ``now``."""

    year, month = start.year, start.month
    while True:
        boundary = month_end(year, month)
        if boundary >= now:
            return
        yield boundary
        month += 1
        if month > 12:
            year, month = year + 1, 1
