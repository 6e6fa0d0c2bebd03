# src/gist_planner/logging_setup.py

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Logger prefix -> minimum level shown on the console.
CONSOLE_QUIET: dict[str, int] = {
    "gist_planner.sync.": logging.WARNING,
    "httpx": logging.ERROR,
    "httpcore": logging.ERROR,
    "py.warnings": logging.ERROR,
}

LOG_FILE_NAME = "planner.log"


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the REPL readable while a save is in flight:
    - gist_planner logs pass, except the sync layer below its threshold
    - anything not ours only shows at ERROR+
    The file handler is not filtered.
    """

    def __init__(self, quiet: Mapping[str, int] | None = None) -> None:
        super().__init__()
        self._quiet = dict(CONSOLE_QUIET if quiet is None else quiet)

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        for prefix, level in self._quiet.items():
            if name == prefix.rstrip(".") or name.startswith(prefix):
                return record.levelno >= level

        if name.startswith("gist_planner."):
            return True
        return record.levelno >= logging.ERROR


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """'debug' / 'WARNING' / '10' -> logging level; unknown names give `default`."""
    raw = (name or "").strip()
    if raw.isdigit():
        return int(raw)
    level = logging.getLevelName(raw.upper()) if raw else None
    return level if isinstance(level, int) else default


def setup_logging(
    *,
    log_dir: str | Path = ".local/planner",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> Path:
    """
    Console handler (filtered, short format) + rotating file handler (everything).

    Call this ONCE, before the first logger.info. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = RotatingFileHandler(str(log_file), maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(fh)

    logging.captureWarnings(True)

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return log_file
