# src/gist_planner/core/errors.py

from __future__ import annotations


class PlannerError(Exception):
    """Base class for planner errors."""


class ValidationError(PlannerError, ValueError):
    """User input rejected at the boundary, before it reaches the core."""


class TaskNotFoundError(PlannerError, KeyError):
    def __init__(self, task_id: str) -> None:
        super().__init__(task_id)
        self.task_id = task_id

    def __str__(self) -> str:
        return f"task not found: {self.task_id}"


class RemoteStoreError(PlannerError):
    """
    Transient failure talking to the remote document store
    (network error, unexpected HTTP status, missing file).
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class WriteConflictError(RemoteStoreError):
    """The remote document changed since the version token was issued."""
