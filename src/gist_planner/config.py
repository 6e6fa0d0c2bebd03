# src/gist_planner/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time: without a gist id the planner keeps
  its document in a local file instead.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "PLANNER"

VIEW_MODES = ("day", "week", "month")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Real environment variables win over .env entries.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- GitHub Gist (remote document) ----
    github_token: Optional[str]
    gist_id: str
    gist_file_name: str
    github_api_url: str
    http_timeout_seconds: float

    # ---- Sync ----
    sync_max_attempts: int

    # ---- Calendar ----
    timezone: str
    week_starts_on: str
    default_view: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    cache_path: Path
    document_path: Path  # used as the shared document when no gist is configured

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "gist-planner") or "gist-planner"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        # Accept the usual GITHUB_TOKEN too, it is what most setups already export.
        github_token = _first_env(_k("GITHUB_TOKEN"), "GITHUB_TOKEN", default=None)
        gist_id = (_first_env(_k("GIST_ID"), default="") or "").strip()
        gist_file_name = _env(_k("GIST_FILE_NAME"), "planner.json").strip() or "planner.json"
        github_api_url = _env(_k("GITHUB_API_URL"), "https://api.github.com")
        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 15.0)

        sync_max_attempts = max(2, _env_int(_k("SYNC_MAX_ATTEMPTS"), 3))

        timezone = _env(_k("TIMEZONE"), "").strip()
        week_starts_on = _env(_k("WEEK_STARTS_ON"), "Sun").strip() or "Sun"
        default_view = _env(_k("DEFAULT_VIEW"), "week").strip().lower()
        if default_view not in VIEW_MODES:
            default_view = "week"

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/planner"))
        cache_path = _env_path(_k("CACHE_PATH"), data_dir / "cache.json")
        document_path = _env_path(_k("DOCUMENT_PATH"), data_dir / "planner.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            github_token=github_token,
            gist_id=gist_id,
            gist_file_name=gist_file_name,
            github_api_url=github_api_url,
            http_timeout_seconds=http_timeout_seconds,
            sync_max_attempts=sync_max_attempts,
            timezone=timezone,
            week_starts_on=week_starts_on,
            default_view=default_view,
            data_dir=data_dir,
            cache_path=cache_path,
            document_path=document_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
