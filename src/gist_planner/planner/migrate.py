# src/gist_planner/planner/migrate.py

from __future__ import annotations

"""
Document migration.

Every persisted document passes through here before anything else looks at it.
Old shapes are normalised once, so the rest of the code never branches on them:

v1 -> v2:
- every task gets a completion map (default empty)
- the global `done` flag is dropped from tasks whose completion is tracked per
  occurrence; dated one-time tasks keep it, it is their only completion state
- `recurring: {"type": "weekly", "weekday": 0..6}` (0 = Sunday) on undated
  tasks becomes the `day` weekday field
- a bare-string `repeat` becomes the tagged {"type": ...} shape

Never raises on missing fields: no `tasks` means no tasks, no `version` means
the oldest known version.
"""

import json
import logging
from collections.abc import Mapping
from datetime import tzinfo
from typing import Any

from .codec import document_from_wire
from .models import CURRENT_VERSION, OLDEST_VERSION, PlannerDocument, Repeat, Weekday

logger = logging.getLogger(__name__)


def _version_of(raw: Mapping[str, Any]) -> int:
    v = raw.get("version")
    if isinstance(v, bool):
        return OLDEST_VERSION
    try:
        return int(v) if v is not None else OLDEST_VERSION
    except (TypeError, ValueError):
        return OLDEST_VERSION


def _upgrade_task_v1(task: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(task)

    completion = out.get("completion")
    out["completion"] = dict(completion) if isinstance(completion, Mapping) else {}

    repeat = Repeat.from_wire(out.get("repeat"))
    out["repeat"] = {"type": repeat.value}

    legacy = out.pop("recurring", None)
    if out.get("startAt") is None and not out.get("day") and isinstance(legacy, Mapping):
        weekday = legacy.get("weekday")
        if isinstance(weekday, int) and not isinstance(weekday, bool):
            out["day"] = Weekday.from_sunday_index(weekday).value

    one_time = out.get("startAt") is not None and not repeat.recurring
    if one_time:
        out["done"] = bool(out.get("done"))
    else:
        out["done"] = None

    return out


def migrate_wire(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Bring a raw document dict up to the current version (dict in, dict out)."""
    version = _version_of(raw)
    out = dict(raw)

    if "updatedAt" not in out or out.get("updatedAt") is None:
        out["updatedAt"] = 0

    tasks = out.get("tasks")
    if not isinstance(tasks, list):
        tasks = []

    if version >= CURRENT_VERSION:
        out["tasks"] = tasks
        return out

    logger.info("Migrating planner document v%s -> v%s (%d tasks)", version, CURRENT_VERSION, len(tasks))
    out["tasks"] = [_upgrade_task_v1(t) for t in tasks if isinstance(t, Mapping)]
    out["version"] = CURRENT_VERSION
    return out


def migrate(raw: Mapping[str, Any] | PlannerDocument | None, *, tz: tzinfo | None = None) -> PlannerDocument:
    if isinstance(raw, PlannerDocument):
        return raw
    if not isinstance(raw, Mapping):
        return PlannerDocument.empty()
    return document_from_wire(migrate_wire(raw), tz=tz)


def migrate_text(text: str | bytes | None, *, tz: tzinfo | None = None) -> PlannerDocument:
    """
    Parse persisted JSON and migrate it.

    A malformed document is treated as empty at the current version.
    """
    if not text:
        return PlannerDocument.empty()
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        logger.warning("Planner document is not valid JSON; treating it as empty.")
        return PlannerDocument.empty()
    if not isinstance(data, Mapping):
        logger.warning("Planner document root is %s, not an object; treating it as empty.", type(data).__name__)
        return PlannerDocument.empty()
    try:
        return migrate(data, tz=tz)
    except Exception:
        logger.exception("Planner document migration failed; treating it as empty.")
        return PlannerDocument.empty()
