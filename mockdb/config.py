"""
MockDB configuration. All environment variables in one place.

Read from environment at import time. Tests override attributes directly.
"""

from __future__ import annotations

import os


def _env_bool(name: str, default: str = "") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """MockDB settings from environment variables."""

    # Debug logging of requests, responses and store state (DEBUG_DB=1)
    DEBUG_DB: bool = _env_bool("DEBUG_DB")

    # Query windows
    MOCKDB_DEFAULT_LIMIT: int = int(os.environ.get("MOCKDB_DEFAULT_LIMIT", "100"))
    MOCKDB_HARD_LIMIT: int = int(os.environ.get("MOCKDB_HARD_LIMIT", "1000"))
    MOCKDB_MAX_SKIP: int = int(os.environ.get("MOCKDB_MAX_SKIP", "10000"))

    # Real Parse server (used by the HTTP controller when the mock is not installed)
    PARSE_SERVER_URL: str = os.environ.get("PARSE_SERVER_URL", "http://localhost:1337/parse")
    PARSE_APPLICATION_ID: str = os.environ.get("PARSE_APPLICATION_ID", "")
    PARSE_REST_API_KEY: str = os.environ.get("PARSE_REST_API_KEY", "")
    PARSE_TIMEOUT_SECONDS: float = float(os.environ.get("PARSE_TIMEOUT_SECONDS", "30"))


settings = Settings()
