# src/gist_planner/planner/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum

CURRENT_VERSION = 2
OLDEST_VERSION = 1


class Repeat(StrEnum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"

    @classmethod
    def from_wire(cls, raw: object) -> Repeat:
        """
        Accept both the tagged shape ({"type": "weekly"}) and a bare string.
        Anything unknown is treated as a one-time task.
        """
        if isinstance(raw, dict):
            raw = raw.get("type")
        if not raw:
            return cls.NONE
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.NONE

    @property
    def recurring(self) -> bool:
        return self is not Repeat.NONE


class Weekday(StrEnum):
    """Legacy weekday placement for undated tasks."""

    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"
    SUN = "Sun"

    @property
    def index(self) -> int:
        # Same numbering as datetime.weekday(): Monday == 0.
        return list(Weekday).index(self)

    @classmethod
    def from_index(cls, idx: int) -> Weekday:
        return list(cls)[idx % 7]

    @classmethod
    def from_sunday_index(cls, idx: int) -> Weekday:
        """Convert a 0=Sunday..6=Saturday number (old documents) to a Weekday."""
        return cls.from_index((int(idx) - 1) % 7)

    @classmethod
    def parse(cls, raw: object) -> Weekday | None:
        if not raw:
            return None
        s = str(raw).strip()[:3].capitalize()
        try:
            return cls(s)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    created_at: int  # epoch ms, immutable
    updated_at: int  # epoch ms, merge tie-breaker

    notes: str | None = None
    start_at: datetime | None = None
    duration_min: int | None = None
    repeat: Repeat = Repeat.NONE
    repeat_until: datetime | None = None
    exclude_dates: frozenset[str] = frozenset()
    completion: dict[str, bool] = field(default_factory=dict)

    # legacy fields
    done: bool | None = None
    day: Weekday | None = None

    @property
    def all_day(self) -> bool:
        return self.start_at is None or not self.duration_min or self.duration_min <= 0

    @property
    def one_time(self) -> bool:
        """A dated task without recurrence; completion uses the single done flag."""
        return self.start_at is not None and not self.repeat.recurring


@dataclass(frozen=True, slots=True)
class Occurrence:
    """One concrete instance of a task. Derived for display, never stored."""

    task: Task
    when: datetime

    @property
    def day_key(self) -> str:
        return self.when.strftime("%Y-%m-%d")

    @property
    def all_day(self) -> bool:
        return self.task.all_day

    @property
    def end(self) -> datetime | None:
        if self.all_day:
            return None
        return self.when + timedelta(minutes=int(self.task.duration_min or 0))


@dataclass(frozen=True, slots=True)
class PlannerDocument:
    version: int = CURRENT_VERSION
    tasks: tuple[Task, ...] = ()
    updated_at: int = 0

    @classmethod
    def empty(cls) -> PlannerDocument:
        return cls(version=CURRENT_VERSION, tasks=(), updated_at=0)
