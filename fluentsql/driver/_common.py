"""Attributes and bookkeeping shared by every driver."""

from typing import TYPE_CHECKING, Any, Callable, ClassVar, Optional

from mypy_extensions import trait

from fluentsql.notifications import create_notifier
from fluentsql.parameters import ParameterStyle
from fluentsql.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

    from fluentsql.dialects import Dialect
    from fluentsql.exceptions import ExecutionError
    from fluentsql.mapping import TypeRegistry
    from fluentsql.notifications import ErrorNotificationConfig, ErrorNotifier

__all__ = ("CommonDriverAttributesMixin",)


logger = get_logger("driver")


@trait
class CommonDriverAttributesMixin:
    """Connection, counters and error reporting for driver adapters.

    Every statement sent through ``execute`` increments :attr:`query_count`
    and becomes :attr:`last_query`, whether it succeeds or not.
    """

    __slots__ = (
        "_last_inserted_id",
        "_last_query",
        "_query_count",
        "connection",
        "debug",
        "notifier",
        "suppress_errors",
        "type_registry",
    )
    dialect: "ClassVar[Dialect]"
    parameter_style: "ClassVar[ParameterStyle]" = ParameterStyle.NAMED_COLON
    type_coercion_map: "ClassVar[dict[type, Callable[[Any], Any]]]" = {}

    connection: Any
    debug: bool
    suppress_errors: bool
    type_registry: "Optional[TypeRegistry]"
    notifier: "Optional[ErrorNotifier]"

    def __init__(
        self,
        connection: Any,
        *,
        debug: bool = False,
        suppress_errors: bool = False,
        error_notification: "Optional[ErrorNotificationConfig]" = None,
        notifier: "Optional[ErrorNotifier]" = None,
        type_registry: "Optional[TypeRegistry]" = None,
    ) -> None:
        """Initialize driver adapter.

        Args:
            connection: An open DB-API connection.
            debug: Log full tracebacks for failed statements.
            suppress_errors: Make the builder terminals and CRUD helpers log
                execution errors and return an empty sentinel instead of raising.
            error_notification: E-mail notification settings.
            notifier: Custom notifier; takes precedence over ``error_notification``.
            type_registry: Registry used for ``select_as`` and ``schema_type``.
        """
        self.connection = connection
        self.debug = debug
        self.suppress_errors = suppress_errors
        self.type_registry = type_registry
        self.notifier = notifier or create_notifier(error_notification)
        self._query_count = 0
        self._last_query: Optional[str] = None
        self._last_inserted_id: Any = None

    @property
    def query_count(self) -> int:
        """Number of statements executed by this driver."""
        return self._query_count

    @property
    def last_query(self) -> Optional[str]:
        """The most recently executed statement, as passed to ``execute``."""
        return self._last_query

    def get_query_count(self) -> int:
        return self._query_count

    def _record_query(self, sql: str) -> None:
        self._query_count += 1
        self._last_query = sql

    def coerce_parameter(self, value: Any) -> Any:
        """Convert a value the DB-API module cannot bind (``dict``, ``Decimal``...)."""
        if not self.type_coercion_map or value is None:
            return value
        converter = self.type_coercion_map.get(type(value))
        if converter is None:
            for value_type, candidate in self.type_coercion_map.items():
                if isinstance(value, value_type):
                    converter = candidate
                    break
        return value if converter is None else converter(value)

    def coerce_parameters(self, parameters: "Optional[Mapping[str, Any]]") -> "dict[str, Any]":
        if not parameters:
            return {}
        return {name: self.coerce_parameter(value) for name, value in parameters.items()}

    def report_error(self, error: "ExecutionError", sql: str) -> None:
        """Log a failed statement and hand it to the notifier.

        Must be called from inside the ``except`` block handling ``error`` so
        that debug logging can include the traceback.
        """
        if self.debug:
            logger.exception("Failed to execute query: %s", sql)
        else:
            logger.error("Failed to execute query: %s", error, extra={"extra_fields": {"sql": sql}})
        if self.notifier is None:
            return
        try:
            self.notifier.notify(str(error), self._last_query)
        except Exception:  # noqa: BLE001
            logger.exception("Error notifier %r failed", self.notifier)
