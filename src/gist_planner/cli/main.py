# src/gist_planner/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState from settings, loads the cached document,
refreshes it from the remote store, then runs the console REPL.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..logging_setup import level_from_name, setup_logging
from .console import run_console_loop

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.close()
    except Exception:
        logger.debug("State close failed.", exc_info=True)


def main() -> None:
    settings = get_settings()

    console_level = level_from_name(getattr(settings, "log_level", "INFO"))
    log_file = setup_logging(log_dir=getattr(settings, "data_dir", ".local/planner"), console_level=console_level)

    logger.info("Starting %s (log: %s)...", getattr(settings, "app_name", "gist-planner"), log_file)

    state = create_initial_state(settings=settings)

    try:
        outcome = state.run(state.session.load())
        if outcome.error is None:
            logger.info("Loaded %d tasks.", len(outcome.document.tasks))
        else:
            logger.info("Remote unavailable; %d cached tasks.", len(state.session.tasks))

        run_console_loop(state)
    finally:
        _shutdown(state)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
