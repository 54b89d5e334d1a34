"""Logger factory and structured log output.

Every fluentsql module logs through :func:`get_logger`, which keeps loggers
under the ``fluentsql`` namespace. Records are tagged with the correlation id
of the current context; sessions opened from a configuration get one of their
own unless the caller already set one.
"""

import logging
import sys
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Final, Optional
from uuid import uuid4

from fluentsql.utils.serializers import to_json

__all__ = (
    "CorrelationIDFilter",
    "StructuredFormatter",
    "configure_logging",
    "correlation_context",
    "get_correlation_id",
    "get_logger",
    "set_correlation_id",
)

ROOT_LOGGER_NAME: Final = "fluentsql"
SIMPLE_FORMAT: Final = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_correlation_id: "ContextVar[Optional[str]]" = ContextVar("fluentsql_correlation_id", default=None)


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Tag records logged from the current context; None clears the tag."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None) -> "Generator[str, None, None]":
    """Run a block under a correlation id.

    An id that is already set is kept, so nested sessions share the caller's
    id. Otherwise ``correlation_id`` (or a new random id) is set for the block
    and cleared afterwards.

    Yields:
        The correlation id in effect inside the block.
    """
    current = _correlation_id.get()
    if current is not None:
        yield current
        return
    correlation_id = correlation_id or uuid4().hex
    token = _correlation_id.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id.reset(token)


class StructuredFormatter(logging.Formatter):
    """Render each record as one JSON object per line.

    ``extra={"extra_fields": {...}}`` entries are merged into the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: "dict[str, Any]" = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        correlation_id = getattr(record, "correlation_id", None) or get_correlation_id()
        if correlation_id:
            entry["correlation_id"] = correlation_id
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return to_json(entry)


class CorrelationIDFilter(logging.Filter):
    """Copy the context's correlation id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id:
            record.correlation_id = correlation_id  # type: ignore[attr-defined]
        return True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger in the ``fluentsql`` namespace.

    Args:
        name: Dotted name relative to ``fluentsql`` (``"driver"`` gives
            ``fluentsql.driver``). None returns the package root logger.

    Returns:
        The logger, with a :class:`CorrelationIDFilter` attached once.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIDFilter) for f in logger.filters):
        logger.addFilter(CorrelationIDFilter())
    return logger


def configure_logging(
    level: str = "INFO",
    format_style: str = "structured",
    log_to_file: Optional[str] = None,
    extra_handlers: "Optional[list[logging.Handler]]" = None,
) -> None:
    """Install handlers on the ``fluentsql`` root logger.

    Existing handlers are replaced and propagation to the root logger is
    turned off. A log file always receives structured output.

    Args:
        level: Level name, case-insensitive.
        format_style: ``"structured"`` for JSON lines, ``"simple"`` for plain text.
        log_to_file: Optional path of an additional log file.
        extra_handlers: Handlers added as given.
    """
    package_logger = logging.getLogger(ROOT_LOGGER_NAME)
    package_logger.setLevel(getattr(logging, level.upper()))
    package_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(StructuredFormatter() if format_style == "structured" else logging.Formatter(SIMPLE_FORMAT))
    handlers: "list[logging.Handler]" = [console]
    if log_to_file:
        file_handler = logging.FileHandler(log_to_file)
        file_handler.setFormatter(StructuredFormatter())
        handlers.append(file_handler)
    handlers.extend(extra_handlers or ())
    for handler in handlers:
        package_logger.addHandler(handler)
    package_logger.propagate = False

    package_logger.info(
        "fluentsql logging configured",
        extra={"extra_fields": {"level": level, "format_style": format_style, "handlers_count": len(handlers)}},
    )
