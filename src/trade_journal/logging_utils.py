from __future__ import annotations

import json
import logging
import sys
from typing import Any, TextIO

from trade_journal.settings import Settings

# Record attributes passed through ``extra=`` by the journal and its stores.
CONTEXT_KEYS = ("trade_id", "backend")

# Chatty dependencies; they only get through at WARNING and above.
_QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite", "sqlalchemy.engine")


class JournalJsonFormatter(logging.Formatter):
    """One JSON object per line, with any trade/store context nested under ``ctx``."""

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        ctx = {key: getattr(record, key) for key in CONTEXT_KEYS if getattr(record, key, None) is not None}
        if ctx:
            line["ctx"] = ctx
        if record.exc_info:
            line["error"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False, default=str)


def configure_logging(settings: Settings, *, stream: TextIO | None = None) -> logging.Handler:
    """Send journal logs at ``LOG_LEVEL`` and everything else at WARNING to one JSON stream."""
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(JournalJsonFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("trade_journal").setLevel(settings.log_level.upper())
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
