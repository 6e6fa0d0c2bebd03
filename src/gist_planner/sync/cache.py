# src/gist_planner/sync/cache.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


class InMemoryKeyValueStore:
    """Process-local KeyValueStore (tests, or running without a data dir)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str | None) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value

    def snapshot(self) -> dict[str, str]:
        return dict(self._data)


class JsonFileKeyValueStore:
    """
    KeyValueStore backed by one JSON object on disk.

    - loaded once at construction; an unreadable file counts as empty
    - every set() rewrites the file atomically (tmp file + os.replace)
    - the file is made private (0600) on a best-effort basis, it holds the
      cached document and tokens
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._data: dict[str, str] = self._load()
        logger.info("Local cache ready path=%s keys=%d", self._path, len(self._data))

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read local cache %s; starting empty", self._path)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Local cache %s is not a JSON object; starting empty", self._path)
            return {}
        return {str(k): str(v) for k, v in raw.items() if v is not None}

    def _flush(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(Exception):
            os.chmod(self._path, 0o600)

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str | None) -> None:
        if value is None:
            if key not in self._data:
                return
            self._data.pop(key)
        else:
            if self._data.get(key) == value:
                return
            self._data[key] = value
        self._flush()
        logger.debug("Local cache updated key=%s", key)
