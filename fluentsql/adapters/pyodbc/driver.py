from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, ClassVar, Optional

import pyodbc

from fluentsql.adapters.pyodbc.core import create_mapped_exception, pyodbc_type_coercion_map
from fluentsql.dialects import MSSQL
from fluentsql.driver import SyncDriverAdapterBase
from fluentsql.parameters import ParameterStyle

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from fluentsql.dialects import Dialect

__all__ = ("PyodbcConnection", "PyodbcCursor", "PyodbcDriver")

PyodbcConnection = pyodbc.Connection


class PyodbcCursor:
    """Context manager for pyodbc cursor management."""

    __slots__ = ("connection", "cursor")

    def __init__(self, connection: "PyodbcConnection") -> None:
        self.connection = connection
        self.cursor: Optional[pyodbc.Cursor] = None

    def __enter__(self) -> "pyodbc.Cursor":
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            self.cursor.close()


class PyodbcDriver(SyncDriverAdapterBase):
    """SQL Server driver on pyodbc (``qmark`` parameters)."""

    __slots__ = ()
    dialect: "ClassVar[Dialect]" = MSSQL
    parameter_style: "ClassVar[ParameterStyle]" = ParameterStyle.QMARK
    type_coercion_map: "ClassVar[dict[type, Callable[[Any], Any]]]" = pyodbc_type_coercion_map

    def with_cursor(self, connection: "PyodbcConnection") -> "PyodbcCursor":
        return PyodbcCursor(connection)

    @contextmanager
    def handle_database_exceptions(self) -> "Generator[None, None, None]":
        """Handle pyodbc exceptions and wrap them by SQLSTATE."""
        try:
            yield
        except pyodbc.Error as e:
            raise create_mapped_exception(e) from e

    def _cursor_execute(self, cursor: Any, sql: str, prepared_parameters: Any) -> None:
        if prepared_parameters:
            cursor.execute(sql, prepared_parameters)
        else:
            cursor.execute(sql)

    def _fetch_last_insert_id(self, name: Optional[str] = None) -> Any:
        # SCOPE_IDENTITY() is NULL outside the inserting batch
        with self.with_cursor(self.connection) as cursor:
            cursor.execute("SELECT @@IDENTITY")
            row = cursor.fetchone()
        return row[0] if row and row[0] is not None else None
