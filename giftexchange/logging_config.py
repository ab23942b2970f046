"""
Logging setup for the giftexchange package.

Format: 2026-01-06T14:05:52Z [giftexchange] LEVEL message

LOG_LEVEL (config or environment) picks the level; INFO by default.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

PACKAGE_LOGGER = "giftexchange"


class ISO8601Formatter(logging.Formatter):
    def __init__(self, source: str = PACKAGE_LOGGER):
        self.source = source
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{timestamp} [{self.source}] {record.levelname} {message}"


def _resolve_level(level) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level or "INFO").upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level=None, source: str = PACKAGE_LOGGER) -> logging.Logger:
    """Attach one stdout handler to the package logger; safe to call repeatedly."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(_resolve_level(level))

    for handler in logger.handlers:
        if getattr(handler, "_giftexchange", False):
            handler.setFormatter(ISO8601Formatter(source=source))
            return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ISO8601Formatter(source=source))
    handler._giftexchange = True
    logger.addHandler(handler)
    return logger
