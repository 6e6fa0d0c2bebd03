# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from gist_planner.cli.bootstrap import create_initial_state
from gist_planner.core.state import AppState
from gist_planner.sync.cache import InMemoryKeyValueStore

from .fakes import FakeClock, FakeRemoteStore, ms


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with the bootstrap and the commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any .env file.
    """
    return SimpleNamespace(
        app_name="planner-test",
        log_level="DEBUG",
        github_token=None,
        gist_id="",
        gist_file_name="planner.json",
        github_api_url="https://api.github.test",
        http_timeout_seconds=1.0,
        sync_max_attempts=3,
        timezone="UTC",
        week_starts_on="Sun",
        default_view="week",
        data_dir=tmp_path,
        cache_path=tmp_path / "cache.json",
        document_path=tmp_path / "planner.json",
    )


@pytest.fixture()
def remote() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture()
def cache() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def state(settings: SimpleNamespace, remote: FakeRemoteStore, cache: InMemoryKeyValueStore) -> Iterator[AppState]:
    """
    AppState wired with an in-memory remote and cache.

    The coordinator, session and command layer are the real ones.
    """
    # Tasks are "created" early in 2024 so the 2024 agendas below are not cut off.
    clock = FakeClock(start=ms(datetime(2024, 1, 1)), step=1_000)
    app_state = create_initial_state(settings=settings, remote=remote, cache=cache, clock=clock)
    try:
        yield app_state
    finally:
        app_state.close()
