# src/gist_planner/planner/validate.py

from __future__ import annotations

"""
Input validation at the boundary.

Everything typed by the user (titles, "1:30" durations, "2024-06-03 09:00"
dates) is parsed and checked here; the core only ever sees valid tasks.
"""

from dataclasses import dataclass, field
from datetime import datetime

from ..core.errors import ValidationError
from .models import Repeat, Weekday

_DATE_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M", "%Y-%m-%d")


def parse_duration(text: str | None) -> int | None:
    """
    Accepts "90", "1:30", "01:30" or "45". Empty input means no duration.
    """
    s = (text or "").strip()
    if not s:
        return None
    if ":" in s:
        hh, _, mm = s.partition(":")
        try:
            hours, minutes = int(hh), int(mm)
        except ValueError:
            raise ValidationError(f"invalid duration: {text!r}") from None
        if hours < 0 or not 0 <= minutes < 60:
            raise ValidationError(f"invalid duration: {text!r}")
        return hours * 60 + minutes
    try:
        minutes = int(s)
    except ValueError:
        raise ValidationError(f"invalid duration: {text!r}") from None
    if minutes < 0:
        raise ValidationError(f"invalid duration: {text!r}")
    return minutes


def format_duration(minutes: int | None) -> str:
    if not minutes or minutes <= 0:
        return ""
    h, m = divmod(int(minutes), 60)
    if h and m:
        return f"{h}h {m}m"
    if h:
        return f"{h}h"
    return f"{m}m"


def format_time(dt: datetime | None) -> str:
    if dt is None:
        return ""
    return dt.strftime("%H:%M")


def parse_datetime(text: str | None) -> datetime | None:
    s = (text or "").strip()
    if not s:
        return None
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue
    raise ValidationError(f"invalid date/time: {text!r} (expected YYYY-MM-DD[ HH:MM])")


def parse_repeat(text: str | None) -> Repeat:
    s = (text or "").strip().lower()
    if not s:
        return Repeat.NONE
    try:
        return Repeat(s)
    except ValueError:
        choices = ", ".join(r.value for r in Repeat)
        raise ValidationError(f"invalid repeat: {text!r} (expected one of: {choices})") from None


def parse_weekday(text: str | None) -> Weekday | None:
    if not (text or "").strip():
        return None
    day = Weekday.parse(text)
    if day is None:
        raise ValidationError(f"invalid weekday: {text!r}")
    return day


@dataclass(slots=True)
class TaskDraft:
    """User-entered fields for a new task, before it gets an id and timestamps."""

    title: str
    notes: str | None = None
    start_at: datetime | None = None
    duration_min: int | None = None
    repeat: Repeat = Repeat.NONE
    repeat_until: datetime | None = None
    day: Weekday | None = None
    exclude_dates: set[str] = field(default_factory=set)

    def validate(self) -> TaskDraft:
        title = (self.title or "").strip()
        if not title:
            raise ValidationError("title is required")
        self.title = title
        if self.notes is not None:
            self.notes = self.notes.strip() or None
        if self.duration_min is not None and self.duration_min < 0:
            raise ValidationError("duration must not be negative")
        if self.repeat.recurring and self.start_at is None:
            raise ValidationError("a recurring task needs a start date/time")
        if self.repeat_until is not None and self.start_at is not None and self.repeat_until < self.start_at:
            raise ValidationError("repeat-until is before the start")
        return self
