import logging
import sys
from typing import Optional, TextIO

# ANSI colour per level; anything else is grey
_LEVEL_COLORS = {
    logging.DEBUG: "34",
    logging.INFO: "32",
    logging.WARNING: "33",
    logging.ERROR: "31",
    logging.CRITICAL: "1;31",
}


class ConsoleFormatter(logging.Formatter):
    """``[time] [LEVEL] [TradeJournal.Module] message``; colours the line on a terminal."""

    def __init__(self, *, color: bool) -> None:
        super().__init__("[%(asctime)s] [%(levelname)-8s] [%(name)s] %(message)s", "%Y-%m-%d %H:%M:%S")
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if not self.color:
            return text
        return f"\033[{_LEVEL_COLORS.get(record.levelno, '90')}m{text}\033[0m"


class EndpointFilter(logging.Filter):
    """Drop uvicorn access log lines for one path (the table polls it)."""

    def __init__(self, path: str) -> None:
        super().__init__()
        self._path = path

    def filter(self, record: logging.LogRecord) -> bool:
        return self._path not in record.getMessage()


def setup_web_logging(level: str, stream: Optional[TextIO] = None) -> logging.Logger:
    """Point the ``TradeJournal`` logger at one console handler."""
    stream = stream or sys.stdout
    handler = logging.StreamHandler(stream)
    handler.setFormatter(ConsoleFormatter(color=stream.isatty()))

    root = logging.getLogger("TradeJournal")
    root.handlers[:] = [handler]
    root.setLevel(level.upper())
    root.propagate = False
    return root


setup_web_logging("INFO")


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"TradeJournal.{name}")
