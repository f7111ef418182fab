from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Optional

DEFAULT_TASKS_FILE = "./storage/todos.json"
DEFAULT_TICK_INTERVAL_MS = 100
MIN_TICK_INTERVAL_MS = 10


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'file' (default) or 'memory'
    - TASKS_FILE_PATH: path to the JSON task file. Default './storage/todos.json'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - TICK_INTERVAL_MS: timer sampling cadence in milliseconds (default 100, min 10)
    - LOG_LEVEL: root log level name (default INFO)
    - LOG_DIR: directory for a file log; console only when unset
    """

    persistence_backend: str
    tasks_file_path: str
    cors_allow_origins: List[str]
    tick_interval_ms: int
    log_level: str
    log_dir: Optional[str]


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int, minimum: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return max(parsed, minimum)


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


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "file").strip().lower()
    if backend not in {"file", "memory"}:
        # Fallback to the durable store if unsupported
        backend = "file"

    tasks_path = _get_env("TASKS_FILE_PATH", DEFAULT_TASKS_FILE).strip()
    origins = _parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*"))
    tick_ms = _parse_int(
        _get_env("TICK_INTERVAL_MS", str(DEFAULT_TICK_INTERVAL_MS)),
        DEFAULT_TICK_INTERVAL_MS,
        MIN_TICK_INTERVAL_MS,
    )
    log_level = _get_env("LOG_LEVEL", "INFO").strip().upper()
    log_dir = os.getenv("LOG_DIR") or None

    return Settings(
        persistence_backend=backend,
        tasks_file_path=tasks_path,
        cors_allow_origins=origins,
        tick_interval_ms=tick_ms,
        log_level=log_level,
        log_dir=log_dir,
    )
