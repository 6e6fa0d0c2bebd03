# src/gist_planner/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires the Gist transport, the on-disk cache, the sync coordinator and the
  planner session into AppState.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..config import get_settings
from ..core.ports import KeyValueStore, RemoteDocumentStore
from ..core.session import PlannerSession
from ..core.state import AppState
from ..planner.models import Weekday
from ..planner.timeutil import now_ms, resolve_tz
from ..sync.cache import JsonFileKeyValueStore
from ..sync.coordinator import SyncCoordinator
from ..sync.file_store import FileDocumentStore
from ..sync.gist_client import GistDocumentStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.cache_path.parent.mkdir(parents=True, exist_ok=True)
    settings.document_path.parent.mkdir(parents=True, exist_ok=True)


def create_remote(settings) -> RemoteDocumentStore:
    if not settings.gist_id:
        logger.info("No gist configured; using local document %s", settings.document_path)
        return FileDocumentStore(settings.document_path)
    return GistDocumentStore(
        token=settings.github_token,
        gist_id=settings.gist_id,
        file_name=settings.gist_file_name,
        api_url=settings.github_api_url,
        timeout=settings.http_timeout_seconds,
    )


def create_initial_state(
    *,
    settings=None,
    remote: RemoteDocumentStore | None = None,
    cache: KeyValueStore | None = None,
    clock: Callable[[], int] = now_ms,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the stores) injectable makes the app easier to test
    and avoids hidden global config reads. If settings is None, falls back to
    get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    tz = resolve_tz(settings.timezone)
    if settings.timezone and tz is None:
        logger.warning("Unknown time zone %r; using local time.", settings.timezone)

    if remote is None:
        remote = create_remote(settings)
    if cache is None:
        cache = JsonFileKeyValueStore(settings.cache_path)

    coordinator = SyncCoordinator(
        remote,
        cache,
        max_attempts=settings.sync_max_attempts,
        clock=clock,
        tz=tz,
    )
    session = PlannerSession(
        coordinator,
        coordinator.load_state(default_view=settings.default_view),
        clock=clock,
        tz=tz,
    )

    return AppState(
        settings=settings,
        session=session,
        remote=remote,
        tz=tz,
        week_starts_on=Weekday.parse(settings.week_starts_on) or Weekday.SUN,
    )
