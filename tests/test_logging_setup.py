# tests/test_logging_setup.py

from __future__ import annotations

import logging

from gist_planner.logging_setup import _ConsoleNoiseFilter, level_from_name


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_quiets_sync_and_third_party() -> None:
    f = _ConsoleNoiseFilter()

    assert f.filter(_record("gist_planner.cli.commands", logging.INFO))
    assert not f.filter(_record("gist_planner.sync.coordinator", logging.INFO))
    assert f.filter(_record("gist_planner.sync.coordinator", logging.WARNING))
    assert not f.filter(_record("httpx", logging.WARNING))
    assert not f.filter(_record("asyncio", logging.WARNING))
    assert f.filter(_record("asyncio", logging.ERROR))


def test_level_from_name() -> None:
    assert level_from_name("debug") == logging.DEBUG
    assert level_from_name("WARNING") == logging.WARNING
    assert level_from_name("15") == 15
    assert level_from_name("chatty") == logging.INFO
    assert level_from_name(None, logging.ERROR) == logging.ERROR
