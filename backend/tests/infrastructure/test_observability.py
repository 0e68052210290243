"""Tests for log formatting and handler setup."""

import json
import logging

import pytest

from tzserver.infrastructure.observability import (
    HANDLER_NAME, JSONFormatter, TextFormatter, setup_logging,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "tzserver.services.data_store", logging.WARNING, __file__, 1,
        "Skipping %s", ("Bad/Zone",), None,
    )
    record.__dict__.update(extra)
    return record


@pytest.fixture
def root_logger():
    """Restore root handlers, root level and driver logger levels afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    drivers = {name: logging.getLogger(name).level for name in ("aiosqlite", "sqlalchemy.engine")}
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, driver_level in drivers.items():
        logging.getLogger(name).setLevel(driver_level)


def test_formats_core_fields():
    log = json.loads(JSONFormatter().format(_record()))
    assert log["level"] == "WARNING"
    assert log["logger"] == "tzserver.services.data_store"
    assert log["message"] == "Skipping Bad/Zone"
    assert "timestamp" in log


def test_timestamp_is_the_record_time():
    record = _record()
    record.created = 1_600_000_000.25
    log = json.loads(JSONFormatter().format(record))
    assert log["timestamp"] == "2020-09-13T12:26:40.250000+00:00"


def test_surfaces_known_extra_fields():
    log = json.loads(JSONFormatter().format(
        _record(tzid="Bad/Zone", error_code="CORRUPT_ENTRY", generation=3),
    ))
    assert log["tzid"] == "Bad/Zone"
    assert log["error_code"] == "CORRUPT_ENTRY"
    assert log["generation"] == 3
    assert "dtstamp" not in log


def test_text_format_appends_context():
    line = TextFormatter().format(_record(tzid="Bad/Zone", error_code="CORRUPT_ENTRY"))
    assert line.endswith("Skipping Bad/Zone [tzid=Bad/Zone error_code=CORRUPT_ENTRY]")


def test_text_format_without_context_is_plain():
    line = TextFormatter().format(_record())
    assert line.endswith("tzserver.services.data_store - Skipping Bad/Zone")


def test_setup_replaces_its_own_handler(root_logger):
    first = setup_logging("INFO", "json")
    second = setup_logging("WARNING", "text")

    ours = [h for h in root_logger.handlers if h.get_name() == HANDLER_NAME]
    assert ours == [second]
    assert first not in root_logger.handlers
    assert isinstance(second.formatter, TextFormatter)
    assert root_logger.level == logging.WARNING


def test_driver_loggers_quiet_unless_debug(root_logger):
    setup_logging("INFO", "json")
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    setup_logging("DEBUG", "json")
    assert logging.getLogger("sqlalchemy.engine").level == logging.DEBUG
