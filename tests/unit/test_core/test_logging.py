"""
Unit tests for structured JSON logging.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import pytest

from src.core.logging import (
    CorrelationIdFilter,
    JSONFormatter,
    clear_correlation_id,
    create_file_handler,
    get_correlation_id,
    get_log_level_from_env,
    get_logger,
    set_correlation_id,
    setup_structured_logging,
)


def _record(message: str = "hello", **attrs) -> logging.LogRecord:
    record = logging.LogRecord(
        name="cayley-client.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in attrs.items():
        setattr(record, key, value)
    return record


@pytest.fixture(autouse=True)
def reset_correlation_id():
    clear_correlation_id()
    yield
    clear_correlation_id()


# =============================================================================
# Test: JSONFormatter
# =============================================================================


class TestJSONFormatter:
    """Every record becomes one JSON object."""

    def test_standard_fields(self) -> None:
        formatter = JSONFormatter(service_name="svc")

        data = json.loads(formatter.format(_record("Compiled query")))

        assert data["service"] == "svc"
        assert data["level"] == "INFO"
        assert data["message"] == "Compiled query"
        assert data["correlation_id"] == "-"
        assert "timestamp" in data

    def test_context_is_emitted(self) -> None:
        record = _record(context={"query": 'g.V().All()', "count": 2})

        data = json.loads(JSONFormatter().format(record))

        assert data["context"] == {"query": "g.V().All()", "count": 2}

    def test_non_dict_context_ignored(self) -> None:
        data = json.loads(JSONFormatter().format(_record(context="oops")))

        assert "context" not in data

    def test_exception_is_formatted(self) -> None:
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "ValueError: bad" in data["exception"]


# =============================================================================
# Test: Correlation ids
# =============================================================================


class TestCorrelationId:
    """Correlation ids flow from the context into records."""

    def test_set_and_clear(self) -> None:
        set_correlation_id("req-1")
        assert get_correlation_id() == "req-1"

        clear_correlation_id()
        assert get_correlation_id() is None

    def test_filter_tags_record(self) -> None:
        set_correlation_id("req-42")
        record = _record()

        assert CorrelationIdFilter().filter(record) is True
        assert record.correlation_id == "req-42"

    def test_filter_default(self) -> None:
        record = _record()

        CorrelationIdFilter().filter(record)

        assert record.correlation_id == "-"


# =============================================================================
# Test: Setup
# =============================================================================


class TestSetupStructuredLogging:
    """Tests for logger configuration."""

    def test_level_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAYLEY_CLIENT_LOG_LEVEL", "debug")

        assert get_log_level_from_env() == logging.DEBUG

    def test_unknown_env_level_defaults_to_info(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CAYLEY_CLIENT_LOG_LEVEL", "chatty")

        assert get_log_level_from_env() == logging.INFO

    def test_level_name_accepted(self) -> None:
        logger = setup_structured_logging(service_name="cayley-test-a", log_level="warning")

        assert logger.level == logging.WARNING
        assert logger.propagate is False
        assert len(logger.handlers) == 1

    def test_repeated_setup_does_not_duplicate_handlers(self) -> None:
        setup_structured_logging(service_name="cayley-test-b", log_level=logging.INFO)
        logger = setup_structured_logging(service_name="cayley-test-b", log_level=logging.INFO)

        assert len(logger.handlers) == 1

    def test_file_handler_writes_json(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "client.log"
        logger = setup_structured_logging(
            service_name="cayley-test-c",
            log_file_path=str(log_file),
            log_level="INFO",
        )

        logger.info("written", extra={"context": {"count": 1}})
        for handler in logger.handlers:
            handler.flush()
            handler.close()
        logger.handlers.clear()

        line = log_file.read_text(encoding="utf-8").strip()
        assert json.loads(line)["context"] == {"count": 1}

    def test_create_file_handler_creates_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "dir" / "x.log"

        handler = create_file_handler(str(path))
        handler.close()

        assert path.parent.is_dir()


class TestGetLogger:
    """Module loggers live under the cayley-client hierarchy."""

    def test_child_logger_name(self) -> None:
        assert get_logger("transport").name == "cayley-client.transport"

    def test_root_logger_name(self) -> None:
        assert get_logger().name == "cayley-client"
