# src/gist_planner/sync/file_store.py

from __future__ import annotations

import contextlib
import hashlib
import logging
import os
from pathlib import Path

from ..core.errors import RemoteStoreError, WriteConflictError
from ..core.ports import FetchResponse, WriteResponse

logger = logging.getLogger(__name__)


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class FileDocumentStore:
    """
    RemoteDocumentStore backed by a plain file (e.g. inside a synced folder).

    The content hash serves as both the validation and the version token, so
    conditional reads and guarded writes behave like the gist store.
    Used when no gist is configured.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> str | None:
        try:
            return self._path.read_text("utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise RemoteStoreError(f"cannot read {self._path}: {e}") from e

    async def fetch(self, validation_token: str | None = None) -> FetchResponse:
        text = self._read()
        if text is None:
            text = ""
        version = _digest(text)
        if validation_token and validation_token == version:
            return FetchResponse(not_modified=True, validation_token=version)
        return FetchResponse(not_modified=False, text=text, validation_token=version, version_token=version)

    async def write(self, text: str, version_token: str | None = None) -> WriteResponse:
        if version_token:
            current = _digest(self._read() or "")
            if current != version_token:
                raise WriteConflictError(f"{self._path} changed since it was read")

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(".tmp")
            tmp.write_text(text, "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise RemoteStoreError(f"cannot write {self._path}: {e}") from e
        with contextlib.suppress(Exception):
            os.chmod(self._path, 0o600)

        version = _digest(text)
        logger.debug("Document written path=%s version=%s", self._path, version[:12])
        return WriteResponse(version_token=version, validation_token=version)
