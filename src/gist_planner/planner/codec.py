# src/gist_planner/planner/codec.py

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from datetime import datetime, tzinfo
from typing import Any

from .models import CURRENT_VERSION, PlannerDocument, Repeat, Task, Weekday
from .timeutil import from_epoch_ms, to_epoch_ms

logger = logging.getLogger(__name__)


def _opt_int(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _opt_instant(raw: Any, tz: tzinfo | None) -> datetime | None:
    ms = _opt_int(raw)
    if ms is None:
        return None
    try:
        return from_epoch_ms(ms, tz)
    except (OverflowError, OSError, ValueError):
        return None


def _opt_str(raw: Any) -> str | None:
    if raw is None:
        return None
    s = str(raw)
    return s if s else None


def task_from_wire(raw: Mapping[str, Any], *, tz: tzinfo | None = None) -> Task | None:
    """
    Decode one task dict. Returns None for entries that cannot be a task
    (no id); every other missing field gets a default.
    """
    task_id = _opt_str(raw.get("id"))
    if task_id is None:
        return None

    completion_raw = raw.get("completion")
    completion: dict[str, bool] = {}
    if isinstance(completion_raw, Mapping):
        completion = {str(k): True for k, v in completion_raw.items() if v}

    exclude_raw = raw.get("excludeDates")
    exclude: frozenset[str] = frozenset()
    if isinstance(exclude_raw, (list, tuple, set, frozenset)):
        exclude = frozenset(str(x) for x in exclude_raw if x)

    done_raw = raw.get("done")
    created_at = _opt_int(raw.get("createdAt")) or 0
    updated_at = _opt_int(raw.get("updatedAt"))

    return Task(
        id=task_id,
        title=str(raw.get("title") or ""),
        notes=_opt_str(raw.get("notes")),
        start_at=_opt_instant(raw.get("startAt"), tz),
        duration_min=_opt_int(raw.get("durationMin")),
        repeat=Repeat.from_wire(raw.get("repeat")),
        repeat_until=_opt_instant(raw.get("repeatUntil"), tz),
        exclude_dates=exclude,
        completion=completion,
        done=None if done_raw is None else bool(done_raw),
        day=Weekday.parse(raw.get("day")),
        created_at=created_at,
        updated_at=created_at if updated_at is None else updated_at,
    )


def task_to_wire(task: Task, *, tz: tzinfo | None = None) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "notes": task.notes,
        "startAt": None if task.start_at is None else to_epoch_ms(task.start_at, tz),
        "durationMin": task.duration_min,
        "repeat": {"type": task.repeat.value},
        "repeatUntil": None if task.repeat_until is None else to_epoch_ms(task.repeat_until, tz),
        "excludeDates": sorted(task.exclude_dates),
        "completion": dict(sorted(task.completion.items())),
        "done": task.done,
        "day": None if task.day is None else task.day.value,
        "createdAt": task.created_at,
        "updatedAt": task.updated_at,
    }


def document_from_wire(raw: Mapping[str, Any], *, tz: tzinfo | None = None) -> PlannerDocument:
    """
    Decode an already-migrated document dict.

    Duplicate ids keep the last entry, so a document never holds two tasks
    with the same id.
    """
    by_id: dict[str, Task] = {}
    tasks_raw = raw.get("tasks")
    if isinstance(tasks_raw, list):
        for item in tasks_raw:
            if not isinstance(item, Mapping):
                continue
            task = task_from_wire(item, tz=tz)
            if task is None:
                continue
            if task.id in by_id:
                logger.debug("Duplicate task id=%s in document; keeping the last one", task.id)
                by_id.pop(task.id)
            by_id[task.id] = task

    version = _opt_int(raw.get("version")) or CURRENT_VERSION
    return PlannerDocument(
        version=max(version, CURRENT_VERSION),
        tasks=tuple(by_id.values()),
        updated_at=_opt_int(raw.get("updatedAt")) or 0,
    )


def document_to_wire(doc: PlannerDocument, *, tz: tzinfo | None = None) -> dict[str, Any]:
    return {
        "version": max(doc.version, CURRENT_VERSION),
        "tasks": [task_to_wire(t, tz=tz) for t in doc.tasks],
        "updatedAt": doc.updated_at,
    }


def dump_document(doc: PlannerDocument, *, tz: tzinfo | None = None) -> str:
    """Serialize to the pretty-printed JSON text stored remotely and in the cache."""
    return json.dumps(document_to_wire(doc, tz=tz), ensure_ascii=False, indent=2)
