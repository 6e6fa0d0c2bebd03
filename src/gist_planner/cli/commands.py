# src/gist_planner/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Callable
from datetime import datetime
from typing import Any, cast

from ..config import VIEW_MODES
from ..core.errors import PlannerError, TaskNotFoundError, ValidationError
from ..core.state import AppState
from ..planner.models import Occurrence, Repeat, Task
from ..planner.recurrence import group_by_day
from ..planner.timeutil import day_window, end_of_day, month_window, week_window
from ..planner.validate import (
    TaskDraft,
    format_duration,
    format_time,
    parse_datetime,
    parse_duration,
    parse_repeat,
    parse_weekday,
)
from ..sync.coordinator import SyncResult, SyncStatus

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except TaskNotFoundError as e:
            return f"No such task: {e.task_id}"
        except ValidationError as e:
            return f"Invalid input: {e}"
        except PlannerError as e:
            logger.warning("Command /%s failed: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


def _now(state: AppState) -> datetime:
    if state.tz is None:
        return datetime.now()
    return datetime.now(state.tz).replace(tzinfo=None)


def _split_options(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """Separate `key=value` options from free words."""
    words: list[str] = []
    opts: dict[str, str] = {}
    for a in args:
        key, sep, value = a.partition("=")
        if sep and key and key.isidentifier():
            opts[key.lower()] = value
        else:
            words.append(a)
    return words, opts


def _patch_from_options(opts: dict[str, str]) -> dict[str, Any]:
    patch: dict[str, Any] = {}
    for key, value in opts.items():
        if key == "title":
            patch["title"] = value
        elif key == "notes":
            patch["notes"] = value.strip() or None
        elif key in ("start", "at"):
            patch["start_at"] = parse_datetime(value)
        elif key in ("dur", "duration"):
            patch["duration_min"] = parse_duration(value)
        elif key == "repeat":
            patch["repeat"] = parse_repeat(value)
        elif key == "until":
            until = parse_datetime(value)
            # A bare date means "through the end of that day".
            if until is not None and len(value.strip()) == 10:
                until = end_of_day(until)
            patch["repeat_until"] = until
        elif key == "day":
            patch["day"] = parse_weekday(value)
        else:
            raise ValidationError(f"unknown option: {key}")
    return patch


def _resolve_task(state: AppState, ref: str) -> Task:
    """A task by its number in the last /tasks listing, or by id / id prefix."""
    tasks = state.session.tasks
    if ref.isdigit() and state.last_tasks:
        idx = int(ref) - 1
        if 0 <= idx < len(state.last_tasks):
            return state.session.get_task(state.last_tasks[idx].id)
    matches = [t for t in tasks if t.id == ref] or [t for t in tasks if t.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        raise ValidationError(f"ambiguous task id prefix: {ref}")
    raise TaskNotFoundError(ref)


def _resolve_occurrence(state: AppState, args: list[str]) -> Occurrence:
    if not args or not args[0].isdigit():
        raise ValidationError("expected an occurrence number from /agenda")
    idx = int(args[0]) - 1
    if not 0 <= idx < len(state.last_agenda):
        raise ValidationError(f"no occurrence #{args[0]} in the last agenda")
    return state.last_agenda[idx]


def _sync_note(result: SyncResult) -> str:
    if result.status is SyncStatus.COMMITTED:
        return "saved"
    if result.status is SyncStatus.CONFLICT:
        return "kept locally (remote busy, will retry on next change)"
    return f"kept locally (sync failed: {result.error})"


def _describe_task(task: Task) -> str:
    bits = [task.title]
    if task.start_at is not None:
        bits.append(task.start_at.strftime("%Y-%m-%d %H:%M"))
    elif task.day is not None:
        bits.append(f"every {task.day.value}")
    dur = format_duration(task.duration_min)
    if dur:
        bits.append(dur)
    if task.repeat.recurring:
        rep = task.repeat.value
        if task.repeat_until is not None:
            rep += f" until {task.repeat_until:%Y-%m-%d}"
        bits.append(rep)
    if task.exclude_dates:
        bits.append(f"skips {len(task.exclude_dates)}")
    return " | ".join(bits)


def _window(state: AppState, anchor: datetime) -> tuple[datetime, datetime]:
    mode = state.session.view_mode
    if mode == "day":
        return day_window(anchor)
    if mode == "month":
        return month_window(anchor)
    return week_window(anchor, state.week_starts_on)


def render_agenda(state: AppState, occurrences: list[Occurrence]) -> str:
    if not occurrences:
        return "Nothing planned."
    lines: list[str] = []
    n = 0
    for day, items in group_by_day(occurrences).items():
        lines.append(f"{items[0].when:%a} {day}")
        for occ in items:
            n += 1
            mark = "x" if state.session.is_done(occ) else " "
            if occ.all_day:
                when = "all day"
            else:
                end = occ.end
                when = format_time(occ.when) + (f"-{format_time(end)}" if end else "")
            rep = f" ({occ.task.repeat.value})" if occ.task.repeat.recurring else ""
            lines.append(f"  {n:>2}. [{mark}] {when:<11} {occ.task.title}{rep}")
    return "\n".join(lines)


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    session = state.session
    if getattr(state.settings, "gist_id", ""):
        remote = f"gist {state.settings.gist_id}"
    else:
        remote = f"local file {getattr(state.settings, 'document_path', '-')}"
    err = session.last_error
    return (
        "Status:\n"
        f"  Remote: {remote}\n"
        f"  Tasks: {len(session.tasks)}\n"
        f"  View: {session.view_mode}\n"
        f"  Remote version: {session.state.version_token or '-'}\n"
        f"  Last sync error: {err if err else '-'}"
    )


def cmd_view(state: AppState, args: list[str]) -> str:
    """
    /view              -> show current view mode
    /view day|week|month -> switch
    """
    if not args:
        return f"View is {state.session.view_mode}. Use /view {' | '.join(VIEW_MODES)}."
    mode = args[0].lower()
    if mode not in VIEW_MODES:
        return f"Unknown view: {mode}. Use /view {' | '.join(VIEW_MODES)}."
    state.session.set_view(mode)
    return f"View set to {mode}."


def cmd_agenda(state: AppState, args: list[str]) -> str:
    """
    /agenda             -> current day/week/month (per /view)
    /agenda 2024-06-03  -> the window containing that date
    """
    anchor = parse_datetime(args[0]) if args else None
    if anchor is None:
        anchor = _now(state)
    start, end = _window(state, anchor)
    occurrences = state.session.agenda(start, end)
    state.last_agenda = occurrences
    header = f"{state.session.view_mode.capitalize()} {start:%Y-%m-%d} .. {end:%Y-%m-%d}"
    return header + "\n" + render_agenda(state, occurrences)


def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = state.session.tasks
    state.last_tasks = tasks
    if not tasks:
        return "No tasks yet. Use /add to create one."
    lines = ["Tasks:"]
    for i, t in enumerate(tasks, start=1):
        lines.append(f"  {i:>2}. {t.id[:8]}  {_describe_task(t)}")
    return "\n".join(lines)


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add Title words start="2024-06-03 09:00" dur=1:30 repeat=weekly until=2024-12-31
    /add Title day=Mon          (undated, every Monday)
    """
    words, opts = _split_options(args)
    patch = _patch_from_options(opts)
    draft = TaskDraft(
        title=patch.pop("title", " ".join(words)),
        notes=patch.get("notes"),
        start_at=patch.get("start_at"),
        duration_min=patch.get("duration_min"),
        repeat=patch.get("repeat", Repeat.NONE),
        repeat_until=patch.get("repeat_until"),
        day=patch.get("day"),
    ).validate()

    if emit:
        emit("Saving...")
    task, result = state.run(state.session.add_task(draft))
    return f"Added {task.id[:8]} {_describe_task(task)} - {_sync_note(result)}."


def cmd_edit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/edit <task#|id> key=value ..."""
    if not args:
        return "Usage: /edit <task#|id> title=... start=... dur=... repeat=... until=... day=... notes=..."
    task = _resolve_task(state, args[0])
    words, opts = _split_options(args[1:])
    if words and "title" not in opts:
        opts["title"] = " ".join(words)
    patch = _patch_from_options(opts)
    if not patch:
        return "Nothing to change."
    if emit:
        emit("Saving...")
    updated, result = state.run(state.session.update_task(task.id, patch))
    return f"Updated {updated.id[:8]} {_describe_task(updated)} - {_sync_note(result)}."


def cmd_rm(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/rm <task#|id> -> delete the task and all its occurrences"""
    if not args:
        return "Usage: /rm <task#|id>"
    task = _resolve_task(state, args[0])
    if emit:
        emit("Saving...")
    result = state.run(state.session.remove_task(task.id))
    state.last_tasks = []
    return f"Removed {task.title} - {_sync_note(result)}."


def _set_done(state: AppState, args: list[str], done: bool) -> str:
    occ = _resolve_occurrence(state, args)
    _, result = state.run(state.session.set_occurrence_done(occ.task.id, occ.when, done))
    # Listing entries hold the old task objects; refresh them for the next /agenda render.
    state.last_agenda = []
    verb = "Done" if done else "Reopened"
    return f"{verb}: {occ.task.title} {occ.when:%Y-%m-%d %H:%M} - {_sync_note(result)}."


def cmd_done(state: AppState, args: list[str]) -> str:
    """/done <n> -> mark occurrence n of the last /agenda done"""
    return _set_done(state, args, True)


def cmd_undone(state: AppState, args: list[str]) -> str:
    """/undone <n> -> mark occurrence n of the last /agenda not done"""
    return _set_done(state, args, False)


def cmd_skip(state: AppState, args: list[str]) -> str:
    """/skip <n> -> delete just this occurrence (one-time tasks are removed)"""
    occ = _resolve_occurrence(state, args)
    result = state.run(state.session.skip_occurrence(occ.task.id, occ.when))
    state.last_agenda = []
    return f"Skipped {occ.task.title} on {occ.day_key} - {_sync_note(result)}."


def cmd_sync(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        emit("Refreshing...")
    outcome = state.run(state.session.load())
    if outcome.error is not None:
        return f"Refresh failed, showing cached tasks: {outcome.error}"
    if not outcome.fresh:
        return "Already up to date."
    return f"Loaded {len(outcome.document.tasks)} tasks."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show remote, view and sync status.")
registry.register("view", cmd_view, help_text="Switch view: /view day | week | month.")
registry.register("agenda", cmd_agenda, help_text="Show occurrences: /agenda [YYYY-MM-DD].", aliases=["a", "ls"])
registry.register("tasks", cmd_tasks, help_text="List task definitions.", aliases=["t"])
registry.register(
    "add",
    cmd_add,
    help_text='Add a task: /add Title start="YYYY-MM-DD HH:MM" dur=1:30 repeat=weekly until=YYYY-MM-DD day=Mon.',
)
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <task#|id> key=value ...")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <task#|id>.", aliases=["del"])
registry.register("done", cmd_done, help_text="Complete an occurrence: /done <n>.")
registry.register("undone", cmd_undone, help_text="Reopen an occurrence: /undone <n>.")
registry.register("skip", cmd_skip, help_text="Delete one occurrence: /skip <n>.")
registry.register("sync", cmd_sync, help_text="Refresh from the remote document.", aliases=["refresh"])
