# src/gist_planner/planner/edits.py

from __future__ import annotations

"""
Apply-locally transforms.

Each function takes the current task list and returns a new one; nothing is
mutated in place and nothing touches the network. Every change bumps the
affected task's updated_at so the merge can order it against other replicas.
"""

from collections.abc import Mapping, Sequence
from dataclasses import replace
from datetime import datetime
from typing import Any

from ..core.errors import TaskNotFoundError, ValidationError
from .completion import set_completed
from .models import Repeat, Task, Weekday
from .timeutil import day_key
from .validate import TaskDraft

EDITABLE_FIELDS = frozenset(
    {
        "title",
        "notes",
        "start_at",
        "duration_min",
        "repeat",
        "repeat_until",
        "exclude_dates",
        "day",
        "done",
    }
)


def new_task(draft: TaskDraft, *, now_ms: int, task_id: str) -> Task:
    draft.validate()
    return Task(
        id=task_id,
        title=draft.title,
        notes=draft.notes,
        start_at=draft.start_at,
        duration_min=draft.duration_min,
        repeat=draft.repeat,
        repeat_until=draft.repeat_until,
        exclude_dates=frozenset(draft.exclude_dates),
        completion={},
        done=False if (draft.start_at is not None and not draft.repeat.recurring) else None,
        day=draft.day if draft.start_at is None else None,
        created_at=now_ms,
        updated_at=now_ms,
    )


def _index_of(tasks: Sequence[Task], task_id: str) -> int:
    for i, t in enumerate(tasks):
        if t.id == task_id:
            return i
    raise TaskNotFoundError(task_id)


def find_task(tasks: Sequence[Task], task_id: str) -> Task:
    return tasks[_index_of(tasks, task_id)]


def add_task(tasks: Sequence[Task], task: Task) -> list[Task]:
    if any(t.id == task.id for t in tasks):
        raise ValidationError(f"duplicate task id: {task.id}")
    return [*tasks, task]


def _replace_at(tasks: Sequence[Task], idx: int, task: Task) -> list[Task]:
    out = list(tasks)
    out[idx] = task
    return out


def update_task(
    tasks: Sequence[Task],
    task_id: str,
    patch: Mapping[str, Any],
    *,
    now_ms: int,
) -> list[Task]:
    unknown = set(patch) - EDITABLE_FIELDS
    if unknown:
        raise ValidationError(f"fields cannot be edited: {', '.join(sorted(unknown))}")

    idx = _index_of(tasks, task_id)
    changes = dict(patch)

    if "title" in changes:
        title = str(changes["title"] or "").strip()
        if not title:
            raise ValidationError("title is required")
        changes["title"] = title
    if "repeat" in changes:
        changes["repeat"] = Repeat.from_wire(changes["repeat"])
    if "day" in changes and changes["day"] is not None and not isinstance(changes["day"], Weekday):
        changes["day"] = Weekday.parse(changes["day"])
    if "exclude_dates" in changes:
        changes["exclude_dates"] = frozenset(changes["exclude_dates"] or ())

    updated = replace(tasks[idx], **changes, updated_at=now_ms)
    if updated.repeat.recurring and updated.start_at is None:
        raise ValidationError("a recurring task needs a start date/time")
    return _replace_at(tasks, idx, updated)


def remove_task(tasks: Sequence[Task], task_id: str) -> list[Task]:
    idx = _index_of(tasks, task_id)
    return [t for i, t in enumerate(tasks) if i != idx]


def toggle_occurrence(
    tasks: Sequence[Task],
    task_id: str,
    when: datetime,
    done: bool,
    *,
    now_ms: int,
) -> list[Task]:
    idx = _index_of(tasks, task_id)
    updated = set_completed(tasks[idx], when, done)
    return _replace_at(tasks, idx, replace(updated, updated_at=now_ms))


def exclude_occurrence(
    tasks: Sequence[Task],
    task_id: str,
    when: datetime,
    *,
    now_ms: int,
) -> list[Task]:
    """
    Delete a single occurrence.

    A task with only one occurrence is removed outright; for recurring and
    weekday-placed tasks the occurrence's day is added to exclude_dates.
    """
    idx = _index_of(tasks, task_id)
    task = tasks[idx]
    if task.one_time:
        return remove_task(tasks, task_id)
    excluded = task.exclude_dates | {day_key(when)}
    return _replace_at(tasks, idx, replace(task, exclude_dates=excluded, updated_at=now_ms))
