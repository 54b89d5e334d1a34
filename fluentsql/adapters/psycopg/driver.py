from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, ClassVar, Optional

import psycopg
from psycopg import errors as pg_errors

from fluentsql.adapters.psycopg.core import create_mapped_exception, psycopg_type_coercion_map
from fluentsql.dialects import POSTGRES
from fluentsql.driver import SyncDriverAdapterBase
from fluentsql.parameters import ParameterStyle

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from fluentsql.dialects import Dialect

__all__ = ("PsycopgConnection", "PsycopgCursor", "PsycopgDriver")

PsycopgConnection = psycopg.Connection


class PsycopgCursor:
    """Context manager for PostgreSQL psycopg cursor management."""

    __slots__ = ("connection", "cursor")

    def __init__(self, connection: "PsycopgConnection[Any]") -> None:
        self.connection = connection
        self.cursor: Optional[Any] = None

    def __enter__(self) -> Any:
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            self.cursor.close()


class PsycopgDriver(SyncDriverAdapterBase):
    """PostgreSQL driver on psycopg 3.

    psycopg cursors expose no ``lastrowid``; the id of the last INSERT is read
    with ``lastval()`` (or ``currval(name)`` when a sequence name is given).
    """

    __slots__ = ()
    dialect: "ClassVar[Dialect]" = POSTGRES
    parameter_style: "ClassVar[ParameterStyle]" = ParameterStyle.NAMED_PYFORMAT
    type_coercion_map: "ClassVar[dict[type, Callable[[Any], Any]]]" = psycopg_type_coercion_map

    def with_cursor(self, connection: "PsycopgConnection[Any]") -> "PsycopgCursor":
        return PsycopgCursor(connection)

    @contextmanager
    def handle_database_exceptions(self) -> "Generator[None, None, None]":
        """Handle psycopg exceptions and wrap them by exception type and SQLSTATE."""
        try:
            yield
        except psycopg.Error as e:
            raise create_mapped_exception(e) from e

    def _fetch_last_insert_id(self, name: Optional[str] = None) -> Any:
        with self.with_cursor(self.connection) as cursor:
            try:
                if name:
                    cursor.execute("SELECT currval(%s)", (name,))
                else:
                    cursor.execute("SELECT lastval()")
            except pg_errors.ObjectNotInPrerequisiteState:
                # no sequence value generated in this session yet
                return None
            row = cursor.fetchone()
        return row[0] if row else None
