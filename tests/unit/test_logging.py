"""Tests for the logging helpers."""

from __future__ import annotations

import logging
import sys
from collections.abc import Generator

import pytest

from fluentsql.adapters.sqlite import SqliteConfig
from fluentsql.utils.logging import (
    CorrelationIDFilter,
    StructuredFormatter,
    configure_logging,
    correlation_context,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from fluentsql.utils.serializers import from_json


@pytest.fixture
def restore_fluentsql_logger() -> Generator[logging.Logger, None, None]:
    logger = logging.getLogger("fluentsql")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture(autouse=True)
def clear_correlation_id() -> Generator[None, None, None]:
    yield
    set_correlation_id(None)


def _record(message: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("fluentsql.driver", logging.INFO, __file__, 10, message, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_get_logger_namespaces_names() -> None:
    assert get_logger().name == "fluentsql"
    assert get_logger("driver").name == "fluentsql.driver"
    assert get_logger("fluentsql.config").name == "fluentsql.config"


def test_get_logger_adds_one_correlation_filter() -> None:
    get_logger("mapping")
    logger = get_logger("mapping")

    assert sum(isinstance(f, CorrelationIDFilter) for f in logger.filters) == 1


def test_correlation_id_round_trip() -> None:
    assert get_correlation_id() is None
    set_correlation_id("req-1")
    assert get_correlation_id() == "req-1"


def test_correlation_filter_tags_records() -> None:
    set_correlation_id("req-2")
    record = _record()

    assert CorrelationIDFilter().filter(record) is True
    assert record.correlation_id == "req-2"  # type: ignore[attr-defined]


def test_structured_formatter() -> None:
    set_correlation_id("req-3")

    entry = from_json(StructuredFormatter().format(_record(extra_fields={"sql": "SELECT 1"})))

    assert entry["level"] == "INFO"
    assert entry["logger"] == "fluentsql.driver"
    assert entry["message"] == "hello"
    assert entry["correlation_id"] == "req-3"
    assert entry["sql"] == "SELECT 1"


def test_structured_formatter_includes_exception() -> None:
    try:
        raise ValueError("bad value")
    except ValueError:
        record = logging.LogRecord("fluentsql", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

    entry = from_json(StructuredFormatter().format(record))

    assert "ValueError: bad value" in entry["exception"]
    assert "correlation_id" not in entry


def test_configure_logging(restore_fluentsql_logger: logging.Logger) -> None:
    captured: list[logging.LogRecord] = []

    class ListHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            captured.append(record)

    configure_logging(level="debug", format_style="simple", extra_handlers=[ListHandler()])

    logger = restore_fluentsql_logger
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert len(logger.handlers) == 2
    assert captured[-1].getMessage() == "fluentsql logging configured"


def test_correlation_context_generates_and_clears() -> None:
    with correlation_context() as generated:
        assert get_correlation_id() == generated
        assert len(generated) == 32

    with correlation_context("req-4") as given:
        assert given == "req-4"

    assert get_correlation_id() is None


def test_correlation_context_keeps_an_existing_id() -> None:
    set_correlation_id("outer")

    with correlation_context("inner") as active:
        assert active == "outer"

    assert get_correlation_id() == "outer"


def test_sessions_tag_records_with_a_correlation_id(caplog: pytest.LogCaptureFixture) -> None:
    config = SqliteConfig()

    with caplog.at_level(logging.DEBUG, logger="fluentsql"), config.provide_session() as driver:
        driver.execute("SELECT 1")
        session_id = get_correlation_id()
    config.close()

    executed = [record for record in caplog.records if record.getMessage().startswith("Executed query")]
    assert session_id is not None
    assert executed[-1].correlation_id == session_id  # type: ignore[attr-defined]
    assert get_correlation_id() is None
