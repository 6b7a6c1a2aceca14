from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - TASKSTORE_BACKEND: 'memory' (default) or 'remote'
    - TASKSTORE_URL: base URL of the hosted backend (required when TASKSTORE_BACKEND=remote)
    - TASKSTORE_API_KEY: public API key sent with every backend request
    - TASKSTORE_TABLE: name of the task table. Default 'tasks'
    - SESSION_SECRET: signing key for the session cookie
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - LOG_LEVEL: console log level name. Default 'INFO'
    - LOG_FILE: optional path of a file receiving the full debug log
    """

    taskstore_backend: str
    taskstore_url: Optional[str]
    taskstore_api_key: Optional[str]
    taskstore_table: str
    session_secret: str
    cors_allow_origins: List[str]
    log_level: int
    log_file: Optional[str]


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _parse_log_level(value: str, default: int = logging.INFO) -> int:
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else default


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("TASKSTORE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "remote"}:
        # Fallback to memory if unsupported
        backend = "memory"

    url = os.getenv("TASKSTORE_URL") or None
    if url:
        url = url.strip().rstrip("/")

    return Settings(
        taskstore_backend=backend,
        taskstore_url=url,
        taskstore_api_key=os.getenv("TASKSTORE_API_KEY") or None,
        taskstore_table=_get_env("TASKSTORE_TABLE", "tasks").strip(),
        session_secret=_get_env("SESSION_SECRET", "change-me-in-production"),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        log_level=_parse_log_level(_get_env("LOG_LEVEL", "INFO")),
        log_file=os.getenv("LOG_FILE") or None,
    )
