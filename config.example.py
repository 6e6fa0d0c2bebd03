# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep the GitHub token in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "PLANNER_APP_NAME": "App display name (default: gist-planner).",
    "PLANNER_LOG_LEVEL": "Console logging level (default: INFO).",
    # GitHub Gist (remote document)
    "PLANNER_GITHUB_TOKEN": "Token with the gist scope (GITHUB_TOKEN is used when unset).",
    "PLANNER_GIST_ID": "Gist holding the planner document (empty => local document file).",
    "PLANNER_GIST_FILE_NAME": "File inside the gist (default: planner.json).",
    "PLANNER_GITHUB_API_URL": "API base URL (default: https://api.github.com).",
    "PLANNER_HTTP_TIMEOUT_SECONDS": "HTTP timeout for gist requests (default: 15).",
    # Sync
    "PLANNER_SYNC_MAX_ATTEMPTS": "Save attempts before giving up on write conflicts (default: 3, min: 2).",
    # Calendar
    "PLANNER_TIMEZONE": "IANA time zone for wall-clock times (empty => system local time).",
    "PLANNER_WEEK_STARTS_ON": "First day of the week view (default: Sun).",
    "PLANNER_DEFAULT_VIEW": "Initial view when none is cached: day | week | month (default: week).",
    # Paths (gitignored)
    "PLANNER_DATA_DIR": "Local data directory (default: .local/planner).",
    "PLANNER_CACHE_PATH": "Local cache JSON path (default: <data_dir>/cache.json).",
    "PLANNER_DOCUMENT_PATH": "Document file used when no gist is configured (default: <data_dir>/planner.json).",
}
