"""Structured console logging for lookups and weather resolution."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from .redaction import sanitize_text

LOGGER_NAME = "kitespot_locator"

# Extras the resolver and CLI attach via ``extra=``; anything else stays out of the line.
LOOKUP_FIELDS = ("session_id", "command", "source", "stage", "provenance")


class SessionFilter(logging.Filter):
    """Stamps the CLI session id onto every record that passes through the handler."""

    def __init__(self, session_id: str) -> None:
        super().__init__()
        self.session_id = session_id

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "session_id", None):
            record.session_id = self.session_id
        return True


class LookupLogFormatter(logging.Formatter):
    """One JSON object per line: level, message, and whichever lookup fields are set."""

    def format(self, record: logging.LogRecord) -> str:
        event: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "message": sanitize_text(record.getMessage()),
        }
        for field in LOOKUP_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                event[field] = value
        if record.exc_info:
            event["exception"] = sanitize_text(self.formatException(record.exc_info))
        return json.dumps(event, default=str)


def setup_logger(
    level: int | str = logging.INFO,
    *,
    session_id: str | None = None,
    name: str = LOGGER_NAME,
) -> logging.Logger:
    """Configure the package logger once; later calls only adjust level and session."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(LookupLogFormatter())
        logger.addHandler(handler)

    for handler in logger.handlers:
        for existing in [f for f in handler.filters if isinstance(f, SessionFilter)]:
            handler.removeFilter(existing)
        if session_id is not None:
            handler.addFilter(SessionFilter(session_id))
    return logger
