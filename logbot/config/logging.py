"""Logging configuration for the chatbot process."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Per-update aiogram logs drown out turn logs at INFO.
_QUIET_LOGGERS = ("aiogram.event",)


def resolve_level(level: str | None = None) -> int:
    """Resolve `level`, then `LOG_LEVEL`, then INFO. Unknown names resolve to INFO."""

    name = (level or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the process.

    Logs are for internal diagnostics only; they are never echoed back to the chat user.
    """

    logging.basicConfig(level=resolve_level(level), format=LOG_FORMAT)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
