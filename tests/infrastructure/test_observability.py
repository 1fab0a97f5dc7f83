"""Structured Logging — formatter output and idempotent setup.

Tests cover:
    - JSON lines carry base fields plus known extras only
    - key=value formatter appends extras after the message
    - setup_logging replaces its own handler, leaves foreign handlers alone
"""

import json
import logging

import pytest

from craftsync.infrastructure.observability import (
    JSONFormatter,
    KeyValueFormatter,
    setup_logging,
)


def _record(msg: str = "New combination: %s", *args, **extras) -> logging.LogRecord:
    record = logging.LogRecord(
        "craftsync.services.combination_store", logging.INFO, __file__, 1,
        msg, args or ("Fire+Water",), None,
    )
    record.__dict__.update(extras)
    return record


@pytest.fixture
def restore_root():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_formatter_includes_known_extras():
    line = JSONFormatter().format(_record(
        combination_key="s1:Fire+Water", session_id="s1", unrelated="x",
    ))
    log = json.loads(line)
    assert log["message"] == "New combination: Fire+Water"
    assert log["level"] == "INFO"
    assert log["combination_key"] == "s1:Fire+Water"
    assert log["session_id"] == "s1"
    assert "unrelated" not in log
    assert log["timestamp"].endswith("+00:00")


def test_json_formatter_keeps_emoji_readable():
    line = JSONFormatter().format(_record("Steam %s", "💨"))
    assert "💨" in line


def test_key_value_formatter_appends_extras():
    line = KeyValueFormatter().format(_record(error_code="PERSISTENCE_ERROR"))
    assert line.endswith("New combination: Fire+Water [error_code=PERSISTENCE_ERROR]")


def test_key_value_formatter_without_extras_is_plain():
    line = KeyValueFormatter().format(_record())
    assert line.endswith("New combination: Fire+Water")


def test_setup_logging_is_idempotent(restore_root):
    foreign = logging.NullHandler()
    restore_root.addHandler(foreign)

    first = setup_logging("DEBUG", "json")
    second = setup_logging("WARNING", "text")

    assert first not in restore_root.handlers
    assert second in restore_root.handlers
    assert foreign in restore_root.handlers
    assert isinstance(second.formatter, KeyValueFormatter)
    assert restore_root.level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING
