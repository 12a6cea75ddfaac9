"""Configuration helpers for backend runtime."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass


LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass(frozen=True)
class BackendSettings:
    database_url: str | None
    host: str
    port: int
    log_level: str


def load_settings() -> BackendSettings:
    """Read ``INITTRACKER_*`` environment variables; an empty database URL means in-memory storage."""
    port_raw = os.getenv("INITTRACKER_PORT", "8000")
    try:
        port = int(port_raw)
    except ValueError as exc:
        raise ValueError(f"INITTRACKER_PORT must be an integer, got {port_raw!r}") from exc

    log_level = os.getenv("INITTRACKER_LOG_LEVEL", "INFO").upper()
    if log_level not in LOG_LEVELS:
        logging.getLogger(__name__).warning("Unknown INITTRACKER_LOG_LEVEL %r, using INFO", log_level)
        log_level = "INFO"

    return BackendSettings(
        database_url=os.getenv("INITTRACKER_DATABASE_URL") or None,
        host=os.getenv("INITTRACKER_HOST", "127.0.0.1"),
        port=port,
        log_level=log_level,
    )
