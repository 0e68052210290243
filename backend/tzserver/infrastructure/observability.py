"""Structured Logging — JSON and text formatters for the timezone server.

Invariants:
    - Every line carries the record's own UTC time, level, logger name and message
    - Store context (tzid, error_code, generation, dtstamp, path) surfaced when present,
      in both formats
    - setup_logging installs exactly one tzserver handler, however often it runs

Design Decisions:
    - setup_logging called on startup via lifespan; a repeated lifespan (tests,
      reloads) replaces the handler instead of stacking duplicates
    - Driver loggers (aiosqlite, sqlalchemy.engine) held at WARNING unless DEBUG
"""

import json
import logging
from datetime import datetime, timezone

HANDLER_NAME = "tzserver"
_EXTRA_KEYS = ("tzid", "error_code", "generation", "dtstamp", "path")
_CHATTY_LOGGERS = ("aiosqlite", "sqlalchemy.engine")


def _context(record: logging.LogRecord) -> dict:
    return {
        key: record.__dict__[key] for key in _EXTRA_KEYS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log.update(_context(record))
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    """Human-readable lines with the store context appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _context(record)
        if not context:
            return line
        pairs = " ".join(f"{k}={v}" for k, v in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the tzserver handler on the root logger and return it."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    root.addHandler(handler)

    resolved = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(resolved)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(
            resolved if resolved <= logging.DEBUG else logging.WARNING,
        )
    return handler
