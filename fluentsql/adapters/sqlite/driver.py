import contextlib
import sqlite3
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, ClassVar, Optional

from fluentsql.adapters.sqlite.core import create_mapped_exception, sqlite_type_coercion_map
from fluentsql.dialects import SQLITE
from fluentsql.driver import SyncDriverAdapterBase
from fluentsql.parameters import ParameterStyle

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from fluentsql.dialects import Dialect

__all__ = ("SqliteConnection", "SqliteCursor", "SqliteDriver")

SqliteConnection = sqlite3.Connection


class SqliteCursor:
    """Context manager for SQLite cursor management."""

    def __init__(self, connection: "SqliteConnection") -> None:
        self.connection = connection
        self.cursor: Optional[sqlite3.Cursor] = None

    def __enter__(self) -> "sqlite3.Cursor":
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            with contextlib.suppress(Exception):
                self.cursor.close()


class SqliteDriver(SyncDriverAdapterBase):
    """SQLite driver on the standard library :mod:`sqlite3` module."""

    __slots__ = ()
    dialect: "ClassVar[Dialect]" = SQLITE
    parameter_style: "ClassVar[ParameterStyle]" = ParameterStyle.NAMED_COLON
    type_coercion_map: "ClassVar[dict[type, Callable[[Any], Any]]]" = sqlite_type_coercion_map

    def with_cursor(self, connection: "SqliteConnection") -> "SqliteCursor":
        return SqliteCursor(connection)

    @contextmanager
    def handle_database_exceptions(self) -> "Generator[None, None, None]":
        """Handle SQLite-specific exceptions and wrap them appropriately."""
        try:
            yield
        except sqlite3.Error as e:
            raise create_mapped_exception(e) from e

    def _fetch_last_insert_id(self, name: Optional[str] = None) -> Any:
        with self.with_cursor(self.connection) as cursor:
            cursor.execute("SELECT last_insert_rowid()")
            row = cursor.fetchone()
        return row[0] if row and row[0] else None
