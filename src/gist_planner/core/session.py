# src/gist_planner/core/session.py

from __future__ import annotations

"""
Planner session: the client's in-memory task list plus its sync baseline.

Every mutation runs in two phases:
- apply locally: a pure edit from planner.edits; the new list is visible at once
- reconcile remotely: merge with a fresh remote copy and write it back

If reconcile fails, the optimistic local list stays the user-visible truth and
the next mutation or refresh tries again. Mutations are awaited one at a time,
so nothing else touches the task list while a save is in flight.
"""

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import datetime, tzinfo
from typing import Any

from ..planner import edits
from ..planner.completion import is_completed
from ..planner.models import Occurrence, PlannerDocument, Task
from ..planner.recurrence import expand
from ..planner.timeutil import now_ms
from ..planner.validate import TaskDraft
from ..sync.coordinator import FetchOutcome, SyncCoordinator, SyncResult, SyncState
from .errors import RemoteStoreError

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


class PlannerSession:
    def __init__(
        self,
        coordinator: SyncCoordinator,
        state: SyncState | None = None,
        *,
        clock: Callable[[], int] = now_ms,
        id_factory: Callable[[], str] = _new_id,
        tz: tzinfo | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._state = state if state is not None else coordinator.load_state()
        self._clock = clock
        self._id_factory = id_factory
        self._tz = tz
        self._tasks: list[Task] = list(self._state.base_document.tasks)
        self.last_error: RemoteStoreError | None = None
        # Local edits the remote has not confirmed yet.
        self.dirty = False

    # ---- read side ----

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks)

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def view_mode(self) -> str:
        return self._state.view_mode

    def get_task(self, task_id: str) -> Task:
        return edits.find_task(self._tasks, task_id)

    def agenda(self, range_start: datetime, range_end: datetime) -> list[Occurrence]:
        return expand(self._tasks, range_start, range_end, tz=self._tz)

    def is_done(self, occurrence: Occurrence) -> bool:
        return is_completed(occurrence.task, occurrence.when)

    def set_view(self, mode: str) -> None:
        self._state = replace(self._state, view_mode=mode)
        self._coordinator.save_state(self._state)

    # ---- sync ----

    async def load(self) -> FetchOutcome:
        """
        Startup / explicit refresh: show the cached document first, then adopt
        the remote copy when it comes back.

        With unsaved local edits the refresh is a save instead: the remote copy
        is merged under them and written back, and on failure the local list
        stays as it is.
        """
        if self.dirty:
            result = await self.reconcile()
            if result.ok and result.document is not None:
                return FetchOutcome(document=result.document, state=result.state, fresh=True)
            pending = PlannerDocument(tasks=tuple(self._tasks), updated_at=self._clock())
            return FetchOutcome(document=pending, state=result.state, fresh=False, error=result.error)

        outcome = await self._coordinator.refresh(self._state)
        self._state = outcome.state
        self.last_error = outcome.error
        if outcome.error is None:
            self._tasks = list(outcome.document.tasks)
        elif self._state.document is not None:
            self._tasks = list(self._state.document.tasks)
        return outcome

    async def reconcile(self) -> SyncResult:
        result = await self._coordinator.reconcile(self._tasks, self._state)
        self._state = result.state
        if result.ok and result.document is not None:
            self._tasks = list(result.document.tasks)
            self.last_error = None
            self.dirty = False
        else:
            self.last_error = result.error
            self.dirty = True
            logger.info("Save not confirmed (%s); local changes kept", result.status.value)
        return result

    def _apply(self, tasks: list[Task]) -> None:
        self._tasks = tasks

    # ---- mutations (apply locally, then reconcile) ----

    def apply_add(self, draft: TaskDraft) -> Task:
        task = edits.new_task(draft, now_ms=self._clock(), task_id=self._id_factory())
        self._apply(edits.add_task(self._tasks, task))
        logger.debug("Task added locally id=%s", task.id)
        return task

    async def add_task(self, draft: TaskDraft) -> tuple[Task, SyncResult]:
        task = self.apply_add(draft)
        return task, await self.reconcile()

    def apply_update(self, task_id: str, patch: Mapping[str, Any]) -> Task:
        self._apply(edits.update_task(self._tasks, task_id, patch, now_ms=self._clock()))
        return self.get_task(task_id)

    async def update_task(self, task_id: str, patch: Mapping[str, Any]) -> tuple[Task, SyncResult]:
        task = self.apply_update(task_id, patch)
        return task, await self.reconcile()

    def apply_remove(self, task_id: str) -> None:
        self._apply(edits.remove_task(self._tasks, task_id))
        logger.debug("Task removed locally id=%s", task_id)

    async def remove_task(self, task_id: str) -> SyncResult:
        self.apply_remove(task_id)
        return await self.reconcile()

    def apply_set_done(self, task_id: str, when: datetime, done: bool) -> Task:
        self._apply(edits.toggle_occurrence(self._tasks, task_id, when, done, now_ms=self._clock()))
        return self.get_task(task_id)

    async def set_occurrence_done(self, task_id: str, when: datetime, done: bool) -> tuple[Task, SyncResult]:
        task = self.apply_set_done(task_id, when, done)
        return task, await self.reconcile()

    def apply_skip(self, task_id: str, when: datetime) -> None:
        self._apply(edits.exclude_occurrence(self._tasks, task_id, when, now_ms=self._clock()))

    async def skip_occurrence(self, task_id: str, when: datetime) -> SyncResult:
        self.apply_skip(task_id, when)
        return await self.reconcile()
