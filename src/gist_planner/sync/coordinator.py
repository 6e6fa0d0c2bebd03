# src/gist_planner/sync/coordinator.py

from __future__ import annotations

"""
Sync coordinator.

One save is a read-modify-write against the remote document:

1. fetch-base: conditional read with the cached validation token
   - not modified -> reuse the cached document
   - fetched      -> migrate it, make it the new cache baseline
   - failed       -> fall back to the cached document (offline)
2. merge the pending local tasks onto the base
3. guarded write with the version token of the base
4. on a write conflict, start over from (1) with the same pending tasks,
   up to max_attempts
5. commit: store the merged document and the new tokens in the local cache

There is no lock on the remote; the version token is the only guard.
Store errors never escape reconcile(); they come back in the SyncResult.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from datetime import tzinfo
from enum import StrEnum

from ..core.errors import RemoteStoreError, WriteConflictError
from ..core.ports import KeyValueStore, RemoteDocumentStore
from ..planner.codec import dump_document
from ..planner.merge import merge_tasks
from ..planner.migrate import migrate_text
from ..planner.models import CURRENT_VERSION, PlannerDocument, Task
from ..planner.timeutil import now_ms

logger = logging.getLogger(__name__)

CACHE_KEY_DOCUMENT = "planner_cache"
CACHE_KEY_ETAG = "planner_etag"
CACHE_KEY_COMMIT = "planner_commit"
CACHE_KEY_VIEW = "planner_view"

DEFAULT_VIEW = "week"
DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True, slots=True)
class SyncState:
    """
    Last known good baseline for conditional reads and guarded writes.

    Passed in and returned explicitly; only load()/save() touch storage.
    """

    document: PlannerDocument | None = None
    validation_token: str | None = None
    version_token: str | None = None
    view_mode: str = DEFAULT_VIEW

    @property
    def base_document(self) -> PlannerDocument:
        return self.document if self.document is not None else PlannerDocument.empty()

    @classmethod
    def load(cls, kv: KeyValueStore, *, tz: tzinfo | None = None, default_view: str = DEFAULT_VIEW) -> SyncState:
        text = kv.get(CACHE_KEY_DOCUMENT)
        document = migrate_text(text, tz=tz) if text else None
        return cls(
            document=document,
            validation_token=kv.get(CACHE_KEY_ETAG) or None,
            version_token=kv.get(CACHE_KEY_COMMIT) or None,
            view_mode=kv.get(CACHE_KEY_VIEW) or default_view,
        )

    def save(self, kv: KeyValueStore, *, tz: tzinfo | None = None) -> None:
        if self.document is not None:
            kv.set(CACHE_KEY_DOCUMENT, dump_document(self.document, tz=tz))
        kv.set(CACHE_KEY_ETAG, self.validation_token)
        kv.set(CACHE_KEY_COMMIT, self.version_token)
        kv.set(CACHE_KEY_VIEW, self.view_mode)


class SyncStatus(StrEnum):
    COMMITTED = "committed"
    CONFLICT = "conflict"  # gave up after max_attempts conflicting writes
    FAILED = "failed"  # transient store error, not retried


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    document: PlannerDocument
    state: SyncState
    fresh: bool  # True when the remote returned new content
    error: RemoteStoreError | None = None


@dataclass(frozen=True, slots=True)
class SyncResult:
    status: SyncStatus
    state: SyncState
    document: PlannerDocument | None
    attempts: int
    error: RemoteStoreError | None = None

    @property
    def ok(self) -> bool:
        return self.status is SyncStatus.COMMITTED


class SyncCoordinator:
    def __init__(
        self,
        remote: RemoteDocumentStore,
        cache: KeyValueStore,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Callable[[], int] = now_ms,
        tz: tzinfo | None = None,
    ) -> None:
        self._remote = remote
        self._cache = cache
        # At least one retry after a conflict.
        self._max_attempts = max(2, int(max_attempts))
        self._clock = clock
        self._tz = tz

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def load_state(self, *, default_view: str = DEFAULT_VIEW) -> SyncState:
        return SyncState.load(self._cache, tz=self._tz, default_view=default_view)

    def save_state(self, state: SyncState) -> None:
        try:
            state.save(self._cache, tz=self._tz)
        except Exception:
            logger.exception("Failed to persist sync state to the local cache")

    async def fetch_base(self, state: SyncState) -> FetchOutcome:
        try:
            res = await self._remote.fetch(state.validation_token)
        except RemoteStoreError as e:
            logger.warning("Remote fetch failed, using cached document: %s", e)
            return FetchOutcome(document=state.base_document, state=state, fresh=False, error=e)
        except Exception as e:
            logger.exception("Remote fetch crashed, using cached document")
            err = RemoteStoreError(f"fetch failed: {e}")
            return FetchOutcome(document=state.base_document, state=state, fresh=False, error=err)

        if res.not_modified:
            logger.debug("Remote not modified; reusing cached document")
            return FetchOutcome(document=state.base_document, state=state, fresh=False)

        document = migrate_text(res.text, tz=self._tz)
        new_state = replace(
            state,
            document=document,
            validation_token=res.validation_token,
            version_token=res.version_token or state.version_token,
        )
        self.save_state(new_state)
        logger.debug("Remote fetched: %d tasks version=%s", len(document.tasks), new_state.version_token)
        return FetchOutcome(document=document, state=new_state, fresh=True)

    async def refresh(self, state: SyncState) -> FetchOutcome:
        return await self.fetch_base(state)

    def build_document(self, pending: Sequence[Task], base: PlannerDocument) -> PlannerDocument:
        return PlannerDocument(
            version=CURRENT_VERSION,
            tasks=tuple(merge_tasks(pending, base.tasks)),
            updated_at=self._clock(),
        )

    async def reconcile(self, pending: Sequence[Task], state: SyncState) -> SyncResult:
        pending = tuple(pending)
        last_conflict: WriteConflictError | None = None
        attempts = 0

        while attempts < self._max_attempts:
            attempts += 1
            outcome = await self.fetch_base(state)
            state = outcome.state

            merged = self.build_document(pending, outcome.document)
            text = dump_document(merged, tz=self._tz)

            try:
                res = await self._remote.write(text, state.version_token)
            except WriteConflictError as e:
                logger.info("Write conflict (attempt %d/%d): %s", attempts, self._max_attempts, e)
                last_conflict = e
                # Force a full re-read next time round.
                state = replace(state, validation_token=None)
                continue
            except RemoteStoreError as e:
                logger.warning("Remote write failed; keeping local changes: %s", e)
                return SyncResult(SyncStatus.FAILED, state, None, attempts, e)
            except Exception as e:
                logger.exception("Remote write crashed; keeping local changes")
                return SyncResult(SyncStatus.FAILED, state, None, attempts, RemoteStoreError(f"write failed: {e}"))

            state = replace(
                state,
                document=merged,
                version_token=res.version_token or state.version_token,
                validation_token=res.validation_token or state.validation_token,
            )
            self.save_state(state)
            logger.info("Synced %d tasks (attempts=%d version=%s)", len(merged.tasks), attempts, state.version_token)
            return SyncResult(SyncStatus.COMMITTED, state, merged, attempts)

        logger.warning("Giving up after %d conflicting writes; local changes kept", attempts)
        return SyncResult(SyncStatus.CONFLICT, state, None, attempts, last_conflict)
