"""Logging setup: JSON records to rotating files, JSON or plain text on stderr.

Modules log through ``log = get_logger("news")`` and the like with messages in
``event_name key=value`` form, so the ``msg`` field stays greppable.
"""

import json
import logging
import logging.handlers
import sys
import time
from typing import Any, Dict

from .config import get_settings


def _utc_ts(record: logging.LogRecord) -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created))


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utc_ts(record),
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class PlainFormatter(logging.Formatter):
    """Single-line console format with colourised levels."""

    LEVEL_COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelname, "")
        reset = self.RESET if colour else ""
        line = (
            f"{_utc_ts(record)} {colour}{record.levelname:<8}{reset} "
            f"{record.name}: {record.getMessage()}"
        )
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for Signalist.

    Console output is JSON by default, or a single-line colourised format
    when ``LOG_PLAIN=1``.  A JSON log is always written to a rotating file
    in ``<data_dir>/logs/signalist.jsonl`` with a separate WARNING+ file
    (``errors.log``).  ``LOG_LEVEL`` overrides ``level``.
    """
    settings = get_settings()
    level_upper = (settings.log_level or level or "INFO").upper()

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level_upper)

    try:
        log_dir = settings.data_dir / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        max_bytes = 10 * 1024 * 1024  # 10MB per file
        backup_count = settings.log_rotation_days

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "signalist.jsonl",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JsonFormatter())
        root.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            log_dir / "errors.log",
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.WARNING)
        error_handler.setFormatter(JsonFormatter())
        root.addHandler(error_handler)
    except OSError:
        # Unwritable data dir: console logging only
        pass

    stream_handler = logging.StreamHandler(sys.stderr)
    if settings.log_plain:
        stream_handler.setFormatter(PlainFormatter())
    else:
        stream_handler.setFormatter(JsonFormatter())
    root.addHandler(stream_handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
