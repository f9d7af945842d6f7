"""Tests for logging configuration and formatters."""

import json
import logging
import sys

import pytest

from helpmatch.logging import ComponentLoggerAdapter, get_logger
from helpmatch.logging.config import (
    SERVICE_NAME,
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from helpmatch.logging.context import clear_log_context, log_context


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way the test found it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def logger():
    test_logger = logging.getLogger("helpmatch.tests")
    test_logger.setLevel(logging.DEBUG)
    return test_logger


def make_record(logger, message="Test message", extra=None):
    return logger.makeRecord("helpmatch.tests", logging.INFO, "test.py", 1, message, (), None, extra=extra)


def test_json_formatter_basic(logger):
    """JSONFormatter emits one JSON object with the mandatory fields."""
    log_obj = json.loads(JSONFormatter().format(make_record(logger)))

    assert log_obj["level"] == "INFO"
    assert log_obj["message"] == "Test message"
    assert log_obj["logger"] == "helpmatch.tests"
    assert log_obj["timestamp"].endswith("Z")
    assert len(log_obj["timestamp"]) == 24  # 2025-03-10T09:00:00.123Z


def test_json_formatter_with_extra_fields(logger):
    record = make_record(
        logger, extra={"event": "matching.generate.completed", "suggested_count": 4, "flag": True}
    )

    log_obj = json.loads(JSONFormatter().format(record))

    assert log_obj["event"] == "matching.generate.completed"
    assert log_obj["suggested_count"] == 4
    assert log_obj["flag"] is True
    assert "name" not in log_obj


def test_json_formatter_stringifies_unknown_types(logger):
    record = make_record(logger, extra={"path": object()})
    log_obj = json.loads(JSONFormatter().format(record))
    assert isinstance(log_obj["path"], str)


def test_contextual_filter_adds_static_and_context_fields(logger):
    log_filter = ContextualFilter(environment="test")

    with log_context(request_id="r1", match_id="r1__h1"):
        record = make_record(logger)
        assert log_filter.filter(record) is True

    assert record.service == SERVICE_NAME
    assert record.environment == "test"
    assert record.request_id == "r1"
    assert record.match_id == "r1__h1"


def test_explicit_extra_wins_over_context(logger):
    with log_context(request_id="from-context"):
        record = make_record(logger, extra={"request_id": "explicit"})
        ContextualFilter().filter(record)

    assert record.request_id == "explicit"


def test_key_value_formatter_with_extras(logger):
    formatter = KeyValueFormatter("[%(levelname)s] %(name)s: %(message)s")
    record = make_record(
        logger, "Rejected transition", extra={"event": "lifecycle.transition.rejected", "from_state": "requested"}
    )
    ContextualFilter().filter(record)

    output = formatter.format(record)

    assert output.startswith("[INFO] helpmatch.tests: Rejected transition")
    assert "event=lifecycle.transition.rejected" in output
    assert "from_state=requested" in output
    # service and environment are not repeated on every human-readable line
    assert "service=" not in output


def test_key_value_formatter_quotes_and_renders(logger):
    formatter = KeyValueFormatter("%(message)s")
    record = make_record(logger, extra={"reason": "no usable tags", "payload": None, "ok": False})

    output = formatter.format(record)

    assert 'reason="no usable tags"' in output
    assert "payload=null" in output
    assert "ok=false" in output


def test_component_logger_adapter_merges_extra(caplog):
    adapter = get_logger("helpmatch.tests.adapter", component="lifecycle")
    assert isinstance(adapter, ComponentLoggerAdapter)

    with caplog.at_level(logging.INFO):
        adapter.info("Moved", extra={"event": "lifecycle.transition.applied"})

    record = caplog.records[-1]
    assert record.component == "lifecycle"
    assert record.event == "lifecycle.transition.applied"


def test_get_logger_without_component_returns_plain_logger():
    assert isinstance(get_logger("helpmatch.tests.plain"), logging.Logger)


def test_configure_logging_invalid_level():
    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging(level="INVALID")


def test_configure_logging_invalid_format():
    with pytest.raises(ValueError, match="Invalid log format"):
        configure_logging(format_type="xml")


@pytest.mark.parametrize("format_type,formatter_cls", [("json", JSONFormatter), ("key-value", KeyValueFormatter)])
def test_configure_logging_installs_single_stderr_handler(restore_root_logger, format_type, formatter_cls):
    configure_logging(level="WARNING", format_type=format_type, environment="test")

    root = restore_root_logger
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1

    handler = root.handlers[0]
    assert isinstance(handler.formatter, formatter_cls)
    assert handler.stream is sys.stderr
    assert any(isinstance(f, ContextualFilter) for f in handler.filters)
