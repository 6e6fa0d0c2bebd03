# tests/fakes.py

from __future__ import annotations

import itertools
from datetime import datetime, timezone

from gist_planner.core.errors import RemoteStoreError, WriteConflictError
from gist_planner.core.ports import FetchResponse, WriteResponse
from gist_planner.planner.models import Repeat, Task, Weekday
from gist_planner.planner.timeutil import to_epoch_ms

UTC = timezone.utc


def ms(dt: datetime) -> int:
    """Epoch ms for a naive datetime read as UTC (tests run with tz=UTC)."""
    return to_epoch_ms(dt, UTC)


def make_task(
    task_id: str = "t1",
    *,
    title: str | None = None,
    start_at: datetime | None = None,
    repeat: Repeat = Repeat.NONE,
    created_at: int | datetime = 0,
    updated_at: int | None = None,
    duration_min: int | None = None,
    repeat_until: datetime | None = None,
    exclude_dates: set[str] | None = None,
    day: Weekday | None = None,
    done: bool | None = None,
    completion: dict[str, bool] | None = None,
) -> Task:
    created = ms(created_at) if isinstance(created_at, datetime) else int(created_at)
    return Task(
        id=task_id,
        title=title or f"task {task_id}",
        start_at=start_at,
        duration_min=duration_min,
        repeat=repeat,
        repeat_until=repeat_until,
        exclude_dates=frozenset(exclude_dates or ()),
        completion=dict(completion or {}),
        day=day,
        done=done,
        created_at=created,
        updated_at=created if updated_at is None else updated_at,
    )


class FakeClock:
    """Monotonic fake epoch-ms clock: every call advances by `step`."""

    def __init__(self, start: int = 1_000, step: int = 1) -> None:
        self._counter = itertools.count(start, step)

    def __call__(self) -> int:
        return next(self._counter)


class FakeRemoteStore:
    """
    In-memory RemoteDocumentStore that behaves like a gist:
    ETag-style conditional reads and commit-guarded writes.

    - fail_fetch / fail_write: raise RemoteStoreError
    - interleave: texts "another client" writes right before each of our writes,
      which makes the guarded write conflict
    """

    def __init__(self, text: str | None = None) -> None:
        self.text = text
        self.version = 1 if text is not None else 0
        self.fail_fetch = False
        self.fail_write = False
        self.interleave: list[str] = []
        self.fetch_calls: list[str | None] = []
        self.writes: list[tuple[str, str | None]] = []

    @property
    def etag(self) -> str:
        return f'"etag-{self.version}"'

    @property
    def commit(self) -> str:
        return f"commit-{self.version}"

    def put(self, text: str) -> None:
        self.text = text
        self.version += 1

    async def fetch(self, validation_token: str | None = None) -> FetchResponse:
        self.fetch_calls.append(validation_token)
        if self.fail_fetch:
            raise RemoteStoreError("offline")
        if validation_token is not None and validation_token == self.etag:
            return FetchResponse(not_modified=True, validation_token=validation_token)
        return FetchResponse(
            not_modified=False,
            text=self.text or "",
            validation_token=self.etag,
            version_token=self.commit,
        )

    async def write(self, text: str, version_token: str | None = None) -> WriteResponse:
        self.writes.append((text, version_token))
        if self.fail_write:
            raise RemoteStoreError("gist save failed: 500", status=500)
        if self.interleave:
            self.put(self.interleave.pop(0))
        if version_token is not None and version_token != self.commit:
            raise WriteConflictError(f"expected {version_token}, found {self.commit}")
        self.put(text)
        return WriteResponse(version_token=self.commit, validation_token=self.etag)
