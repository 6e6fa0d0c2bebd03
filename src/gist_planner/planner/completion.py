# src/gist_planner/planner/completion.py

from __future__ import annotations

"""
Per-occurrence completion state.

Each rendered occurrence of a recurring task is completed independently, so
completion is keyed by "<repeat>:<YYYY-MM-DD>T<HH:MM>" rather than by task id.
One-time tasks keep using the single legacy `done` flag.
"""

from dataclasses import replace
from datetime import datetime

from .models import Repeat, Task


def occurrence_key(when: datetime, repeat: Repeat | str) -> str:
    tag = Repeat.from_wire(repeat).value
    stamp = (
        f"{when.year:04d}-{when.month:02d}-{when.day:02d}"
        f"T{when.hour:02d}:{when.minute:02d}"
    )
    return f"{tag}:{stamp}"


def is_completed(task: Task, when: datetime) -> bool:
    if task.one_time:
        return bool(task.done)
    return bool(task.completion.get(occurrence_key(when, task.repeat)))


def set_completed(task: Task, when: datetime, done: bool) -> Task:
    """
    Return a copy of `task` with the occurrence at `when` marked done / not done.

    Does not touch updated_at; the caller bumps it as part of the mutation.
    """
    if task.one_time:
        return replace(task, done=bool(done))

    key = occurrence_key(when, task.repeat)
    completion = dict(task.completion)
    if done:
        completion[key] = True
    else:
        completion.pop(key, None)
    return replace(task, completion=completion)
