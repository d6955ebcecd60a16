"""
Environment-driven settings.

Values are read at call time so tests (and process managers) can change the
environment without re-importing modules.
"""

from __future__ import annotations

import logging
import os

DEFAULT_CLIENT_URL = "http://localhost:5173"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_list(name: str) -> list[str]:
    raw = os.environ.get(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def cors_origins() -> list[str]:
    origin = env_str("CLIENT_URL", DEFAULT_CLIENT_URL)
    origins = [origin]
    # Vite serves on both hostnames during local development.
    if origin == DEFAULT_CLIENT_URL:
        origins.append("http://127.0.0.1:5173")
    return origins


def admin_emails() -> set[str]:
    return {email.lower() for email in env_list("ADMIN_EMAILS")}


def configure_logging() -> None:
    level_name = env_str("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
