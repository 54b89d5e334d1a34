"""PyMySQL adapter compatibility helpers."""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Final, Optional

from fluentsql.exceptions import (
    CheckViolationError,
    DatabaseConnectionError,
    ExecutionError,
    ForeignKeyViolationError,
    IntegrityError,
    NotNullViolationError,
    OperationalError,
    SQLParsingError,
    UniqueViolationError,
)
from fluentsql.utils.serializers import to_json

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = ("create_mapped_exception", "mysql_error_code", "pymysql_type_coercion_map")

MYSQL_ER_DUP_ENTRY: Final = 1062
MYSQL_ER_BAD_NULL_ERROR: Final = 1048
MYSQL_ER_NO_DEFAULT_FOR_FIELD: Final = 1364
MYSQL_ER_CHECK_CONSTRAINT_VIOLATED: Final = 3819
MYSQL_ER_PARSE_ERROR: Final = 1064
MYSQL_FOREIGN_KEY_CODES: Final = frozenset({1216, 1217, 1451, 1452})
MYSQL_CONNECTION_CODES: Final = frozenset({2002, 2003, 2005, 2006, 2013})
MYSQL_LOCK_CODES: Final = frozenset({1205, 1213})

pymysql_type_coercion_map: "Final[dict[type, Callable[[Any], Any]]]" = {
    datetime: lambda v: v.strftime("%Y-%m-%d %H:%M:%S.%f"),
    date: lambda v: v.isoformat(),
    Decimal: str,
    dict: to_json,
    list: to_json,
}


def mysql_error_code(error: BaseException) -> "Optional[int]":
    """The MySQL error number carried as the first exception argument, if any."""
    args = getattr(error, "args", ())
    return args[0] if args and isinstance(args[0], int) else None


def _create_mysql_error(
    error: Any, code: "Optional[int]", error_class: "type[ExecutionError]", description: str
) -> ExecutionError:
    msg = f"MySQL {description} [{code}]: {error}" if code else f"MySQL {description}: {error}"
    exc = error_class(msg)
    exc.__cause__ = error
    return exc


def create_mapped_exception(error: BaseException) -> ExecutionError:
    """Map a PyMySQL exception onto the fluentsql hierarchy by MySQL error number.

    Returns:
        An exception instance with ``error`` as its cause (not raised).
    """
    error_code = mysql_error_code(error)

    if error_code == MYSQL_ER_DUP_ENTRY:
        return _create_mysql_error(error, error_code, UniqueViolationError, "unique constraint violation")
    if error_code in MYSQL_FOREIGN_KEY_CODES:
        return _create_mysql_error(error, error_code, ForeignKeyViolationError, "foreign key constraint violation")
    if error_code in {MYSQL_ER_BAD_NULL_ERROR, MYSQL_ER_NO_DEFAULT_FOR_FIELD}:
        return _create_mysql_error(error, error_code, NotNullViolationError, "not-null constraint violation")
    if error_code == MYSQL_ER_CHECK_CONSTRAINT_VIOLATED:
        return _create_mysql_error(error, error_code, CheckViolationError, "check constraint violation")
    if type(error).__name__ == "IntegrityError":
        return _create_mysql_error(error, error_code, IntegrityError, "integrity constraint violation")
    if error_code in MYSQL_CONNECTION_CODES:
        return _create_mysql_error(error, error_code, DatabaseConnectionError, "connection error")
    if error_code in MYSQL_LOCK_CODES:
        return _create_mysql_error(error, error_code, OperationalError, "lock wait error")
    if error_code == MYSQL_ER_PARSE_ERROR or type(error).__name__ == "ProgrammingError":
        return _create_mysql_error(error, error_code, SQLParsingError, "SQL syntax error")
    if type(error).__name__ == "OperationalError":
        return _create_mysql_error(error, error_code, OperationalError, "operational error")
    return _create_mysql_error(error, error_code, ExecutionError, "database error")
