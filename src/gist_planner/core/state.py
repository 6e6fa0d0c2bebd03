# src/gist_planner/core/state.py

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Any, TypeVar

from ..planner.models import Occurrence, Task, Weekday
from .ports import RemoteDocumentStore
from .session import PlannerSession

T = TypeVar("T")


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    session: PlannerSession
    remote: RemoteDocumentStore
    tz: tzinfo | None = None
    week_starts_on: Weekday = Weekday.SUN

    # Numbered listings from the last /agenda and /tasks, for /done 3 etc.
    last_agenda: list[Occurrence] = field(default_factory=list)
    last_tasks: list[Task] = field(default_factory=list)

    # One event loop for the whole console session; commands are sync callables.
    runner: asyncio.Runner = field(default_factory=asyncio.Runner)

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        return self.runner.run(coro)

    def close(self) -> None:
        aclose = getattr(self.remote, "aclose", None)
        if aclose is not None:
            self.run(aclose())
        self.runner.close()
