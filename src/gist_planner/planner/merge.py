# src/gist_planner/planner/merge.py

from __future__ import annotations

from collections.abc import Iterable

from .models import Task


def merge_tasks(local: Iterable[Task], remote: Iterable[Task]) -> list[Task]:
    """
    Merge the local and remote replicas of the task list.

    - ids on both sides: keep the copy with the greater updated_at (local wins ties)
    - ids only on remote: dropped; the local list decides which tasks exist,
      so a task deleted here is not brought back by a stale remote copy
    - ids only on local: kept (created offline)

    Result is ordered by created_at; the sort is stable, so equal created_at
    values keep their merge order.
    """
    pending: dict[str, Task] = {}
    for t in local:
        pending[t.id] = t

    remote_by_id = {r.id: r for r in remote}

    out: list[Task] = []
    for task_id, r in remote_by_id.items():
        l = pending.pop(task_id, None)
        if l is None:
            continue
        out.append(l if l.updated_at >= r.updated_at else r)

    out.extend(pending.values())
    out.sort(key=lambda t: t.created_at)
    return out
