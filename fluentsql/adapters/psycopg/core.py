"""psycopg adapter compatibility helpers."""

from typing import TYPE_CHECKING, Any, Final, Optional

from psycopg import errors as pg_errors

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

__all__ = ("create_mapped_exception", "psycopg_type_coercion_map")

# psycopg adapts lists to arrays and handles dates and decimals natively.
psycopg_type_coercion_map: "Final[dict[type, Callable[[Any], Any]]]" = {dict: to_json}

_SQLSTATE_CLASS_MAP: "Final[dict[str, tuple[type[ExecutionError], str]]]" = {
    "08": (DatabaseConnectionError, "connection error"),
    "22": (ExecutionError, "data error"),
    "23": (IntegrityError, "integrity constraint violation"),
    "40": (OperationalError, "transaction rollback"),
    "42": (SQLParsingError, "SQL syntax or access error"),
    "53": (OperationalError, "insufficient resources"),
    "57": (OperationalError, "operator intervention"),
}


def _create_postgres_error(
    error: Any, code: "Optional[str]", error_class: "type[ExecutionError]", description: str
) -> ExecutionError:
    msg = f"PostgreSQL {description} [{code}]: {error}" if code else f"PostgreSQL {description}: {error}"
    exc = error_class(msg)
    exc.__cause__ = error
    return exc


def create_mapped_exception(error: Any) -> ExecutionError:
    """Map a psycopg exception onto the fluentsql hierarchy.

    Native psycopg exception types are checked first, then the SQLSTATE class
    (its first two characters).

    Returns:
        An exception instance with ``error`` as its cause (not raised).
    """
    if isinstance(error, pg_errors.UniqueViolation):
        return _create_postgres_error(error, "23505", UniqueViolationError, "unique constraint violation")
    if isinstance(error, pg_errors.ForeignKeyViolation):
        return _create_postgres_error(error, "23503", ForeignKeyViolationError, "foreign key constraint violation")
    if isinstance(error, pg_errors.NotNullViolation):
        return _create_postgres_error(error, "23502", NotNullViolationError, "not-null constraint violation")
    if isinstance(error, pg_errors.CheckViolation):
        return _create_postgres_error(error, "23514", CheckViolationError, "check constraint violation")
    if isinstance(error, pg_errors.SyntaxError):
        return _create_postgres_error(error, "42601", SQLParsingError, "SQL syntax error")
    if isinstance(error, (pg_errors.UndefinedTable, pg_errors.UndefinedColumn)):
        return _create_postgres_error(error, error.sqlstate, OperationalError, "undefined object")

    error_code: "Optional[str]" = getattr(error, "sqlstate", None)
    if error_code and error_code[:2] in _SQLSTATE_CLASS_MAP:
        error_class, description = _SQLSTATE_CLASS_MAP[error_code[:2]]
        return _create_postgres_error(error, error_code, error_class, description)
    if isinstance(error, pg_errors.OperationalError):
        return _create_postgres_error(error, error_code, OperationalError, "operational error")
    return _create_postgres_error(error, error_code, ExecutionError, "database error")
