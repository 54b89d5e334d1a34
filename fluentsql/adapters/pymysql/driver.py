from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, ClassVar, Optional

import pymysql

from fluentsql.adapters.pymysql.core import create_mapped_exception, pymysql_type_coercion_map
from fluentsql.dialects import MYSQL
from fluentsql.driver import SyncDriverAdapterBase
from fluentsql.parameters import ParameterStyle

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from pymysql.cursors import Cursor

    from fluentsql.dialects import Dialect

__all__ = ("PyMySQLConnection", "PyMySQLCursor", "PyMySQLDriver")

PyMySQLConnection = pymysql.connections.Connection


class PyMySQLCursor:
    """Context manager for PyMySQL cursor management."""

    __slots__ = ("connection", "cursor")

    def __init__(self, connection: "PyMySQLConnection") -> None:
        self.connection = connection
        self.cursor: Optional[Cursor] = None

    def __enter__(self) -> "Cursor":
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            self.cursor.close()


class PyMySQLDriver(SyncDriverAdapterBase):
    """MySQL/MariaDB driver on PyMySQL."""

    __slots__ = ()
    dialect: "ClassVar[Dialect]" = MYSQL
    parameter_style: "ClassVar[ParameterStyle]" = ParameterStyle.NAMED_PYFORMAT
    type_coercion_map: "ClassVar[dict[type, Callable[[Any], Any]]]" = pymysql_type_coercion_map

    def with_cursor(self, connection: "PyMySQLConnection") -> "PyMySQLCursor":
        return PyMySQLCursor(connection)

    @contextmanager
    def handle_database_exceptions(self) -> "Generator[None, None, None]":
        """Handle PyMySQL exceptions and wrap them by MySQL error number."""
        try:
            yield
        except pymysql.MySQLError as e:
            raise create_mapped_exception(e) from e

    def _fetch_last_insert_id(self, name: Optional[str] = None) -> Any:
        return self.connection.insert_id() or None
