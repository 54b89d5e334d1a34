from typing import Any, Optional

__all__ = (
    "CheckViolationError",
    "ConfigurationError",
    "DatabaseConnectionError",
    "ExecutionError",
    "ExtraParameterError",
    "FluentSQLError",
    "ForeignKeyViolationError",
    "ImproperConfigurationError",
    "IntegrityError",
    "MappingError",
    "MissingDependencyError",
    "MissingParameterError",
    "NotNullViolationError",
    "NotificationError",
    "OperationalError",
    "ParameterError",
    "SQLBuilderError",
    "SQLParsingError",
    "UniqueViolationError",
)


class FluentSQLError(Exception):
    """Base exception class from which all fluentsql exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``FluentSQLError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class MissingDependencyError(FluentSQLError, ImportError):
    """Missing optional dependency.

    This exception is raised only when a module depends on a dependency that has not been installed.
    """

    def __init__(self, package: str, install_package: Optional[str] = None) -> None:
        super().__init__(
            f"Package {package!r} is not installed but required. You can install it by running "
            f"'pip install fluentsql[{install_package or package}]' to install fluentsql with the required extra "
            f"or 'pip install {install_package or package}' to install the package separately",
        )


class ImproperConfigurationError(FluentSQLError):
    """Improper Configuration error.

    Raised for an unknown dialect, an unusable connection configuration or a
    driver that cannot be set up.
    """


# -- Builder Errors --
class SQLBuilderError(FluentSQLError):
    """Issues Building or Generating SQL statements."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Issues building SQL statement."
        super().__init__(message)


class ConfigurationError(SQLBuilderError):
    """A query was compiled before its call sequence was complete (e.g. no source table)."""


class ParameterError(SQLBuilderError):
    """Base class for parameter-related errors."""

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        """Initialize with optional SQL context."""
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail_message)
        self.sql = sql


class MissingParameterError(ParameterError):
    """Raised when required parameters are missing."""


class ExtraParameterError(ParameterError):
    """Raised when a parameter name is bound twice."""


# -- Mapping Errors --
class MappingError(FluentSQLError):
    """A requested result type is unknown to the type registry or a row could not be decoded."""


# -- Execution Errors --
class ExecutionError(FluentSQLError):
    """Statement preparation, binding or execution failed."""

    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


class DatabaseConnectionError(ExecutionError):
    """Connecting to the database failed or the connection was lost."""


class OperationalError(ExecutionError):
    """Operational failure reported by the database (locks, timeouts, missing objects)."""


class SQLParsingError(ExecutionError):
    """The database rejected the statement as malformed."""


class IntegrityError(ExecutionError):
    """Data integrity error."""


class UniqueViolationError(IntegrityError):
    """A unique or primary key constraint was violated."""


class ForeignKeyViolationError(IntegrityError):
    """A foreign key constraint was violated."""


class NotNullViolationError(IntegrityError):
    """A NOT NULL constraint was violated."""


class CheckViolationError(IntegrityError):
    """A CHECK constraint was violated."""


class NotificationError(FluentSQLError):
    """An error notification could not be delivered."""
