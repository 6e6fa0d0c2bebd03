# src/gist_planner/planner/timeutil.py

"""
Date/time helpers.

The planner works in local wall-clock time: instants in memory are naive
datetimes in the user's zone, and only the wire format uses epoch milliseconds.
`tz=None` means "the process's local zone".
"""

from __future__ import annotations

import time as _time
from collections.abc import Iterator
from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .models import Weekday


def now_ms() -> int:
    return int(_time.time() * 1000)


def resolve_tz(name: str | None) -> tzinfo | None:
    """IANA zone name -> tzinfo. Empty or unknown names fall back to local time."""
    if not name or not name.strip():
        return None
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError):
        return None


def from_epoch_ms(ms: int | float, tz: tzinfo | None = None) -> datetime:
    if tz is None:
        return datetime.fromtimestamp(float(ms) / 1000.0)
    return datetime.fromtimestamp(float(ms) / 1000.0, tz).replace(tzinfo=None)


def to_epoch_ms(dt: datetime, tz: tzinfo | None = None) -> int:
    if dt.tzinfo is None and tz is not None:
        dt = dt.replace(tzinfo=tz)
    return int(round(dt.timestamp() * 1000))


def day_key(dt: datetime | date) -> str:
    return f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"


def start_of_day(dt: datetime | date) -> datetime:
    d = dt.date() if isinstance(dt, datetime) else dt
    return datetime.combine(d, time.min)


def end_of_day(dt: datetime | date) -> datetime:
    d = dt.date() if isinstance(dt, datetime) else dt
    return datetime.combine(d, time.max)


def each_day(start: datetime, end: datetime) -> Iterator[date]:
    """Calendar days from start's day through end's day, inclusive."""
    current = start.date()
    last = end.date()
    while current <= last:
        yield current
        current += timedelta(days=1)


def at_time_of(day: date, base: datetime) -> datetime:
    return datetime.combine(day, time(base.hour, base.minute))


def day_window(anchor: datetime) -> tuple[datetime, datetime]:
    return start_of_day(anchor), end_of_day(anchor)


def week_window(anchor: datetime, week_starts_on: Weekday = Weekday.SUN) -> tuple[datetime, datetime]:
    offset = (anchor.weekday() - week_starts_on.index) % 7
    first = anchor.date() - timedelta(days=offset)
    return start_of_day(first), end_of_day(first + timedelta(days=6))


def month_window(anchor: datetime) -> tuple[datetime, datetime]:
    first = anchor.date().replace(day=1)
    if first.month == 12:
        next_first = first.replace(year=first.year + 1, month=1)
    else:
        next_first = first.replace(month=first.month + 1)
    return start_of_day(first), end_of_day(next_first - timedelta(days=1))
