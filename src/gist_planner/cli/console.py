# src/gist_planner/cli/console.py

from __future__ import annotations

import logging
from datetime import datetime

from ..core.state import AppState
from .commands import registry as command_registry

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def run_console_loop(state: AppState) -> None:
    logger.info("Console started (tasks=%d view=%s).", len(state.session.tasks), state.session.view_mode)
    _print_ts("[CONSOLE] Use /help for commands, /agenda to see your plan, /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate feedback while a save is in flight.
        print(f"[{_ts_local()}] {text}", flush=True)

    if state.session.last_error is not None:
        emit(f"[SYNC] Working offline from the local cache: {state.session.last_error}")

    while True:
        try:
            user_input = input("planner> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        # Bare text is shorthand for /add.
        line = user_input if user_input.startswith("/") else f"/add {user_input}"

        try:
            response = command_registry.handle(state, line, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is not None:
            print(f"[{_ts_local()}] {response}")

    logger.info("Console finished.")
