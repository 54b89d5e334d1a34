"""SQLite adapter compatibility helpers."""

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

__all__ = ("create_mapped_exception", "sqlite_type_coercion_map")

SQLITE_CONSTRAINT_UNIQUE_CODE: Final = 2067
SQLITE_CONSTRAINT_PRIMARYKEY_CODE: Final = 1555
SQLITE_CONSTRAINT_FOREIGNKEY_CODE: Final = 787
SQLITE_CONSTRAINT_NOTNULL_CODE: Final = 1299
SQLITE_CONSTRAINT_CHECK_CODE: Final = 275
SQLITE_CONSTRAINT_CODE: Final = 19
SQLITE_CANTOPEN_CODE: Final = 14
SQLITE_IOERR_CODE: Final = 10
SQLITE_BUSY_CODE: Final = 5
SQLITE_LOCKED_CODE: Final = 6
SQLITE_READONLY_CODE: Final = 8

sqlite_type_coercion_map: "Final[dict[type, Callable[[Any], Any]]]" = {
    bool: int,
    datetime: lambda v: v.isoformat(),
    date: lambda v: v.isoformat(),
    Decimal: str,
    dict: to_json,
    list: to_json,
}


def _create_sqlite_error(
    error: Any, code: "Optional[int]", error_class: "type[ExecutionError]", description: str
) -> ExecutionError:
    code_str = f"[code {code}]" if code else ""
    msg = f"SQLite {description} {code_str}: {error}" if code_str else f"SQLite {description}: {error}"
    exc = error_class(msg)
    exc.__cause__ = error
    return exc


def create_mapped_exception(error: BaseException) -> ExecutionError:
    """Map a :mod:`sqlite3` exception onto the fluentsql hierarchy.

    Extended result codes are preferred; on interpreters whose exceptions do
    not carry them the message text is inspected instead.

    Args:
        error: The SQLite exception to map.

    Returns:
        An exception instance with ``error`` as its cause (not raised).
    """
    error_code: "Optional[int]" = getattr(error, "sqlite_errorcode", None)
    error_msg = str(error).lower()

    if error_code in {SQLITE_BUSY_CODE, SQLITE_LOCKED_CODE} or "locked" in error_msg or "busy" in error_msg:
        return _create_sqlite_error(error, error_code, OperationalError, "database locked")
    if error_code == SQLITE_READONLY_CODE or "readonly" in error_msg:
        return _create_sqlite_error(error, error_code, OperationalError, "database is read-only")

    if error_code in {SQLITE_CONSTRAINT_UNIQUE_CODE, SQLITE_CONSTRAINT_PRIMARYKEY_CODE} or "unique constraint" in error_msg:
        return _create_sqlite_error(error, error_code, UniqueViolationError, "unique constraint violation")
    if error_code == SQLITE_CONSTRAINT_FOREIGNKEY_CODE or "foreign key constraint" in error_msg:
        return _create_sqlite_error(error, error_code, ForeignKeyViolationError, "foreign key constraint violation")
    if error_code == SQLITE_CONSTRAINT_NOTNULL_CODE or "not null constraint" in error_msg:
        return _create_sqlite_error(error, error_code, NotNullViolationError, "not-null constraint violation")
    if error_code == SQLITE_CONSTRAINT_CHECK_CODE or "check constraint" in error_msg:
        return _create_sqlite_error(error, error_code, CheckViolationError, "check constraint violation")
    if error_code == SQLITE_CONSTRAINT_CODE or "constraint failed" in error_msg:
        return _create_sqlite_error(error, error_code, IntegrityError, "integrity constraint violation")

    if error_code == SQLITE_CANTOPEN_CODE or "unable to open" in error_msg:
        return _create_sqlite_error(error, error_code, DatabaseConnectionError, "connection error")
    if error_code == SQLITE_IOERR_CODE:
        return _create_sqlite_error(error, error_code, OperationalError, "operational error")

    if "syntax error" in error_msg or "incomplete input" in error_msg:
        return _create_sqlite_error(error, error_code, SQLParsingError, "SQL syntax error")
    if "no such table" in error_msg or "no such column" in error_msg:
        return _create_sqlite_error(error, error_code, OperationalError, "operational error")

    return _create_sqlite_error(error, error_code, ExecutionError, "database error")
