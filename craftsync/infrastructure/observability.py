"""Structured Logging — JSON / key=value formatters and one-shot setup.

Invariants:
    - Every line carries timestamp, level, logger name, and message
    - Store and broadcaster extras (combination_key, session_id, subscriber_id,
      error_code, ...) are surfaced in both formats when present
    - setup_logging() is idempotent: re-running the lifespan replaces the
      CraftSync handler instead of stacking a second one
    - Chatty client libraries (httpx, anthropic, sqlalchemy.engine) log at WARNING

Design Decisions:
    - Stdlib logging with a custom JSONFormatter: no extra dependency
    - Timestamp taken from record.created, not format time: ordering survives
      buffered handlers
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "combination_key", "session_id", "subscriber_id", "error_code", "path",
    "attempt", "input_tokens", "output_tokens",
)

_QUIET_LOGGERS = ("httpx", "anthropic", "aiosqlite", "sqlalchemy.engine")
_HANDLER_MARKER = "_craftsync_handler"


def record_extras(record: logging.LogRecord) -> dict:
    """Known extra= fields present on the record, in declaration order."""
    return {
        key: record.__dict__[key]
        for key in EXTRA_FIELDS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_extras(record),
        }
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class KeyValueFormatter(logging.Formatter):
    """Human-readable line with extras appended as key=value pairs."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = record_extras(record)
        if not extras:
            return line
        pairs = " ".join(f"{k}={v}" for k, v in extras.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install (or replace) the CraftSync root handler. Returns it."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else KeyValueFormatter())
    setattr(handler, _HANDLER_MARKER, True)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
