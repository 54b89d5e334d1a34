"""pyodbc adapter compatibility helpers."""

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

__all__ = ("build_connection_string", "create_mapped_exception", "pyodbc_type_coercion_map")

pyodbc_type_coercion_map: "Final[dict[type, Callable[[Any], Any]]]" = {dict: to_json, list: to_json}

_CONNECTION_STRING_KEYS: Final = {
    "driver": "DRIVER",
    "server": "SERVER",
    "database": "DATABASE",
    "user": "UID",
    "password": "PWD",
    "trusted_connection": "Trusted_Connection",
    "encrypt": "Encrypt",
    "trust_server_certificate": "TrustServerCertificate",
}


def build_connection_string(params: "dict[str, Any]") -> str:
    """Assemble an ODBC connection string from keyword parameters.

    Known keys are renamed to their ODBC spelling (``user`` to ``UID``...),
    unknown keys are passed through; values containing ``;`` are braced unless
    they already are.
    """
    parts = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "yes" if value else "no"
        text = str(value)
        if ";" in text and not (text.startswith("{") and text.endswith("}")):
            text = "{" + text.replace("}", "}}") + "}"
        parts.append(f"{_CONNECTION_STRING_KEYS.get(key, key)}={text}")
    return ";".join(parts)


def _create_odbc_error(
    error: Any, sqlstate: "Optional[str]", error_class: "type[ExecutionError]", description: str
) -> ExecutionError:
    msg = f"ODBC {description} [{sqlstate}]: {error}" if sqlstate else f"ODBC {description}: {error}"
    exc = error_class(msg)
    exc.__cause__ = error
    return exc


def create_mapped_exception(error: BaseException) -> ExecutionError:
    """Map a pyodbc exception onto the fluentsql hierarchy.

    pyodbc reports the ODBC SQLSTATE as the first exception argument. SQL
    Server uses ``23000`` for every constraint violation, so the message
    tells them apart.

    Returns:
        An exception instance with ``error`` as its cause (not raised).
    """
    args = getattr(error, "args", ())
    sqlstate = args[0] if args and isinstance(args[0], str) else None
    error_msg = str(error).lower()

    if sqlstate == "23000" or type(error).__name__ == "IntegrityError":
        if "unique" in error_msg or "primary key" in error_msg or "duplicate key" in error_msg:
            return _create_odbc_error(error, sqlstate, UniqueViolationError, "unique constraint violation")
        if "foreign key" in error_msg:
            return _create_odbc_error(error, sqlstate, ForeignKeyViolationError, "foreign key constraint violation")
        if "value null" in error_msg:
            return _create_odbc_error(error, sqlstate, NotNullViolationError, "not-null constraint violation")
        if "check constraint" in error_msg:
            return _create_odbc_error(error, sqlstate, CheckViolationError, "check constraint violation")
        return _create_odbc_error(error, sqlstate, IntegrityError, "integrity constraint violation")
    if sqlstate and sqlstate.startswith("08"):
        return _create_odbc_error(error, sqlstate, DatabaseConnectionError, "connection error")
    if sqlstate in {"42S02", "42S22"}:
        return _create_odbc_error(error, sqlstate, OperationalError, "missing object")
    if sqlstate and sqlstate.startswith("42"):
        return _create_odbc_error(error, sqlstate, SQLParsingError, "SQL syntax error")
    if sqlstate in {"HYT00", "HYT01", "40001"}:
        return _create_odbc_error(error, sqlstate, OperationalError, "timeout or deadlock")
    return _create_odbc_error(error, sqlstate, ExecutionError, "database error")
