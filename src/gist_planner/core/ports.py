# src/gist_planner/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The sync coordinator depends on Protocols instead of concrete implementations,
so the Gist transport and the on-disk cache stay swappable and tests can use
in-memory fakes.
"""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class FetchResponse:
    """
    Result of a conditional read.

    not_modified=True means the validation token still matches; `text` is then
    None and the caller reuses its cached copy.
    """

    not_modified: bool
    text: str | None = None
    validation_token: str | None = None  # e.g. HTTP ETag
    version_token: str | None = None  # e.g. gist commit sha


@dataclass(frozen=True, slots=True)
class WriteResponse:
    version_token: str | None = None
    validation_token: str | None = None


class RemoteDocumentStore(Protocol):
    """
    The shared remote copy of the planner document.

    Implementations raise RemoteStoreError on transient failures and
    WriteConflictError when a guarded write finds the resource changed.
    """

    async def fetch(self, validation_token: str | None = None) -> FetchResponse: ...

    async def write(self, text: str, version_token: str | None = None) -> WriteResponse: ...


class KeyValueStore(Protocol):
    """Persistent local string key-value storage (the client-side cache)."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str | None) -> None: ...
