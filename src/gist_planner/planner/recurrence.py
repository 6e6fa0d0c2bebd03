# src/gist_planner/planner/recurrence.py

from __future__ import annotations

"""
Recurrence expansion.

Turns task definitions into concrete occurrences over a date window:
- undated tasks with a legacy weekday -> one all-day occurrence per matching day
- one-time tasks -> their start instant, if in range
- daily / weekly / biweekly -> one occurrence per matching calendar day,
  at the start instant's time of day

Recurring occurrences never appear before the day the task was created, skip
excluded day keys, and stop at repeat_until.

Pure and deterministic: no clock reads, safe to call on every render.
"""

from collections.abc import Iterable, Iterator
from datetime import datetime, tzinfo

from .models import Occurrence, Repeat, Task, Weekday
from .timeutil import at_time_of, day_key, each_day, from_epoch_ms, start_of_day


def _creation_cutoff(task: Task, tz: tzinfo | None) -> datetime:
    return start_of_day(from_epoch_ms(task.created_at, tz))


def _expand_legacy_day(
    task: Task, day: Weekday, range_start: datetime, range_end: datetime, cutoff: datetime
) -> Iterator[datetime]:
    want = day.index
    for d in each_day(range_start, range_end):
        if d.weekday() != want:
            continue
        when = start_of_day(d)
        if when < cutoff or day_key(d) in task.exclude_dates:
            continue
        yield when


def _expand_recurring(
    task: Task, base: datetime, range_start: datetime, range_end: datetime, cutoff: datetime
) -> Iterator[datetime]:
    base_day = base.date()
    weekday = base.weekday()

    for d in each_day(range_start, range_end):
        if task.repeat is not Repeat.DAILY and d.weekday() != weekday:
            continue
        if task.repeat is Repeat.BIWEEKLY:
            diff = (d - base_day).days
            if diff < 0 or diff % 14 != 0:
                continue

        when = at_time_of(d, base)
        if task.repeat_until is not None and when > task.repeat_until:
            # Days are visited in order, so nothing later can qualify either.
            break
        if when < cutoff or day_key(d) in task.exclude_dates:
            continue
        yield when


def task_occurrences(
    task: Task,
    range_start: datetime,
    range_end: datetime,
    *,
    tz: tzinfo | None = None,
) -> list[Occurrence]:
    """Occurrences of a single task inside [range_start, range_end], unsorted."""
    if task.start_at is None:
        if task.day is None:
            return []
        cutoff = _creation_cutoff(task, tz)
        return [Occurrence(task, w) for w in _expand_legacy_day(task, task.day, range_start, range_end, cutoff)]

    when = task.start_at
    if not task.repeat.recurring:
        if range_start <= when <= range_end and day_key(when) not in task.exclude_dates:
            return [Occurrence(task, when)]
        return []

    cutoff = _creation_cutoff(task, tz)
    return [Occurrence(task, w) for w in _expand_recurring(task, when, range_start, range_end, cutoff)]


def expand(
    tasks: Iterable[Task],
    range_start: datetime,
    range_end: datetime,
    *,
    tz: tzinfo | None = None,
) -> list[Occurrence]:
    """
    Expand every task into occurrences within [range_start, range_end].

    Sorted by instant, ties broken by title. `tz` is only used to place
    created_at (epoch ms) on a calendar day for the creation cutoff.
    """
    out: list[Occurrence] = []
    if range_end < range_start:
        return out
    for task in tasks:
        out.extend(task_occurrences(task, range_start, range_end, tz=tz))
    out.sort(key=lambda o: (o.when, o.task.title))
    return out


def group_by_day(occurrences: Iterable[Occurrence]) -> dict[str, list[Occurrence]]:
    """Bucket occurrences by calendar day key, preserving order within a day."""
    days: dict[str, list[Occurrence]] = {}
    for occ in occurrences:
        days.setdefault(occ.day_key, []).append(occ)
    return days
