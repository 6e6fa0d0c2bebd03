# tests/test_sync_coordinator.py

from __future__ import annotations

import json

import pytest

from gist_planner.planner.codec import dump_document
from gist_planner.planner.migrate import migrate_text
from gist_planner.planner.models import PlannerDocument
from gist_planner.sync.cache import InMemoryKeyValueStore
from gist_planner.sync.coordinator import (
    CACHE_KEY_COMMIT,
    CACHE_KEY_DOCUMENT,
    CACHE_KEY_ETAG,
    CACHE_KEY_VIEW,
    SyncCoordinator,
    SyncState,
    SyncStatus,
)

from .fakes import UTC, FakeClock, FakeRemoteStore, make_task


def _doc_text(*tasks) -> str:
    return dump_document(PlannerDocument(tasks=tuple(tasks), updated_at=1), tz=UTC)


def _ids(text: str) -> list[str]:
    return [t["id"] for t in json.loads(text)["tasks"]]


def _coordinator(remote: FakeRemoteStore, cache: InMemoryKeyValueStore, **kw) -> SyncCoordinator:
    return SyncCoordinator(remote, cache, clock=FakeClock(start=5_000), tz=UTC, **kw)


@pytest.mark.asyncio
async def test_reconcile_merges_and_commits() -> None:
    remote = FakeRemoteStore(_doc_text(make_task("A", updated_at=10), make_task("gone", updated_at=99)))
    cache = InMemoryKeyValueStore()
    coord = _coordinator(remote, cache)

    pending = [make_task("A", title="edited", updated_at=30), make_task("B", created_at=1)]
    result = await coord.reconcile(pending, SyncState())

    assert result.status is SyncStatus.COMMITTED
    assert result.attempts == 1
    assert [t.id for t in result.document.tasks] == ["A", "B"]
    assert result.document.tasks[0].title == "edited"
    assert _ids(remote.text) == ["A", "B"]
    # the write was guarded by the commit of the fetched base
    assert remote.writes[0][1] == "commit-1"

    assert cache.get(CACHE_KEY_COMMIT) == remote.commit == result.state.version_token
    assert cache.get(CACHE_KEY_ETAG) == remote.etag
    assert _ids(cache.get(CACHE_KEY_DOCUMENT)) == ["A", "B"]


@pytest.mark.asyncio
async def test_not_modified_reuses_cached_document() -> None:
    remote = FakeRemoteStore(_doc_text(make_task("A", updated_at=10)))
    cache = InMemoryKeyValueStore()
    coord = _coordinator(remote, cache)

    first = await coord.fetch_base(SyncState())
    assert first.fresh is True

    second = await coord.fetch_base(first.state)

    assert second.fresh is False
    assert second.error is None
    assert second.document == first.document
    assert remote.fetch_calls == [None, remote.etag]


@pytest.mark.asyncio
async def test_fetch_failure_falls_back_to_cache() -> None:
    remote = FakeRemoteStore(_doc_text(make_task("A")))
    remote.fail_fetch = True
    cached = migrate_text(_doc_text(make_task("cached")), tz=UTC)
    coord = _coordinator(remote, InMemoryKeyValueStore())

    outcome = await coord.fetch_base(SyncState(document=cached, validation_token='"old"'))

    assert outcome.error is not None
    assert outcome.document == cached
    assert outcome.state.validation_token == '"old"'


@pytest.mark.asyncio
async def test_conflict_refetches_remerges_and_retries() -> None:
    remote = FakeRemoteStore(_doc_text(make_task("A", title="v1", updated_at=10)))
    # Another device saves a newer A between our fetch and our write.
    remote.interleave.append(_doc_text(make_task("A", title="other device", updated_at=50)))
    coord = _coordinator(remote, InMemoryKeyValueStore())

    result = await coord.reconcile([make_task("A", title="mine", updated_at=20)], SyncState())

    assert result.status is SyncStatus.COMMITTED
    assert result.attempts == 2
    assert result.document.tasks[0].title == "other device"
    # second round re-read the document in full
    assert remote.fetch_calls[-1] is None
    assert len(remote.writes) == 2


@pytest.mark.asyncio
async def test_sustained_conflicts_give_up_after_cap() -> None:
    remote = FakeRemoteStore(_doc_text(make_task("A", updated_at=10)))
    remote.interleave.extend(_doc_text(make_task("A", updated_at=100 + i)) for i in range(10))
    cache = InMemoryKeyValueStore()
    coord = _coordinator(remote, cache, max_attempts=3)

    result = await coord.reconcile([make_task("A", updated_at=20)], SyncState())

    assert result.status is SyncStatus.CONFLICT
    assert result.attempts == 3
    assert result.document is None
    assert len(remote.writes) == 3


@pytest.mark.asyncio
async def test_write_failure_is_not_retried_and_cache_keeps_fetched_base() -> None:
    remote = FakeRemoteStore(_doc_text(make_task("A", updated_at=10)))
    remote.fail_write = True
    cache = InMemoryKeyValueStore()
    coord = _coordinator(remote, cache)

    result = await coord.reconcile([make_task("A", updated_at=20), make_task("B")], SyncState())

    assert result.status is SyncStatus.FAILED
    assert result.attempts == 1
    assert result.error is not None and result.error.status == 500
    assert len(remote.writes) == 1
    # the cache holds the last fetched remote copy, not the unsaved merge
    assert _ids(cache.get(CACHE_KEY_DOCUMENT)) == ["A"]


@pytest.mark.asyncio
async def test_max_attempts_allows_at_least_one_retry() -> None:
    remote = FakeRemoteStore(_doc_text(make_task("A")))
    remote.interleave.append(_doc_text(make_task("A", updated_at=3)))
    coord = _coordinator(remote, InMemoryKeyValueStore(), max_attempts=1)

    result = await coord.reconcile([make_task("A", updated_at=5)], SyncState())

    assert coord.max_attempts == 2
    assert result.status is SyncStatus.COMMITTED


def test_sync_state_load_and_save_roundtrip() -> None:
    cache = InMemoryKeyValueStore()
    assert SyncState.load(cache, default_view="month") == SyncState(view_mode="month")

    doc = migrate_text(_doc_text(make_task("A")), tz=UTC)
    SyncState(document=doc, validation_token='"e"', version_token="c", view_mode="day").save(cache, tz=UTC)

    loaded = SyncState.load(cache, tz=UTC)
    assert loaded.document == doc
    assert (loaded.validation_token, loaded.version_token, loaded.view_mode) == ('"e"', "c", "day")
    assert cache.get(CACHE_KEY_VIEW) == "day"
