"""Synchronous driver base class."""

import time
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Optional, Union, overload

from fluentsql.builder import QueryBuilder
from fluentsql.driver._common import CommonDriverAttributesMixin
from fluentsql.driver.mixins import CRUDMixin, SQLUtilitiesMixin
from fluentsql.exceptions import ExecutionError, MappingError
from fluentsql.parameters import convert_parameters
from fluentsql.result import SQLResult
from fluentsql.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping
    from contextlib import AbstractContextManager

    from fluentsql.builder import ColumnT
    from fluentsql.typing import MappingTarget, ModelDTOT, StatementParameters

__all__ = ("SyncDriverAdapterBase",)

logger = get_logger("driver")


class SyncDriverAdapterBase(CommonDriverAttributesMixin, CRUDMixin, SQLUtilitiesMixin, ABC):
    """Base class for DB-API 2.0 drivers.

    Subclasses provide the cursor context manager and the mapping of their
    DB-API exceptions onto :mod:`fluentsql.exceptions`; the generic DB-API
    execution path below covers the rest. Statements always arrive with
    ``:name`` placeholders and are converted to the driver's paramstyle.

    The driver is also the execution collaborator of its query builders:
    :meth:`select` reuses one builder owned by the driver while
    :meth:`query_builder` returns an independent one.
    """

    __slots__ = ("_builder",)

    def __init__(self, connection: Any, **kwargs: Any) -> None:
        super().__init__(connection, **kwargs)
        self._builder: Optional[QueryBuilder] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dialect={self.dialect.name.value!r}, query_count={self._query_count})"

    @abstractmethod
    def with_cursor(self, connection: Any) -> "AbstractContextManager[Any]":
        """Return a context manager yielding a cursor and closing it afterwards."""

    @abstractmethod
    def handle_database_exceptions(self) -> "AbstractContextManager[None]":
        """Return a context manager translating DB-API errors to :class:`~fluentsql.exceptions.ExecutionError`."""

    # -- Execution --
    def _cursor_execute(self, cursor: Any, sql: str, prepared_parameters: Any) -> None:
        cursor.execute(sql, prepared_parameters)

    def _execute_statement(self, cursor: Any, sql: str, prepared_parameters: Any) -> SQLResult:
        """Execute one converted statement and fetch its rows, if any."""
        self._cursor_execute(cursor, sql, prepared_parameters)
        if cursor.description:
            column_names = [column[0] for column in cursor.description]
            data = [dict(zip(column_names, row)) for row in cursor.fetchall()]
            return SQLResult(
                statement=sql, data=data, column_names=column_names, rows_affected=len(data), operation_type="SELECT"
            )
        return SQLResult(
            statement=sql,
            rows_affected=max(cursor.rowcount or 0, 0),
            last_inserted_id=self._get_last_inserted_id(cursor),
        )

    def _execute_many(self, cursor: Any, sql: str, prepared_parameters: "list[Any]") -> SQLResult:
        cursor.executemany(sql, prepared_parameters)
        return SQLResult(statement=sql, rows_affected=max(cursor.rowcount or 0, 0))

    def _get_last_inserted_id(self, cursor: Any) -> Any:
        """The id generated by the cursor's last INSERT, when the DB-API module exposes one."""
        return getattr(cursor, "lastrowid", None) or None

    def _fetch_last_insert_id(self, name: Optional[str] = None) -> Any:
        """Ask the database for the last generated id; drivers without ``lastrowid`` override this."""
        return None

    def execute(self, sql: str, parameters: "StatementParameters" = None) -> SQLResult:
        """Execute one statement with ``:name`` placeholders.

        Args:
            sql: The statement.
            parameters: Values keyed by placeholder name (a leading ``:`` is accepted).

        Raises:
            ExecutionError: If the database rejects or fails the statement.
            MissingParameterError: If a placeholder has no value.

        Returns:
            The statement result, rows fully fetched.
        """
        self._record_query(sql)
        converted_sql, prepared = convert_parameters(
            sql, self.coerce_parameters(parameters), self.parameter_style, self.dialect.backslash_escapes
        )
        started = time.perf_counter()
        try:
            with self.handle_database_exceptions(), self.with_cursor(self.connection) as cursor:
                result = self._execute_statement(cursor, converted_sql, prepared)
        except ExecutionError as e:
            self.report_error(e, sql)
            raise
        result.execution_time = time.perf_counter() - started
        if result.last_inserted_id is not None:
            self._last_inserted_id = result.last_inserted_id
        logger.debug(
            "Executed query in %.3fms",
            result.execution_time * 1000,
            extra={"extra_fields": {"sql": sql, "parameters": sorted(parameters or {})}},
        )
        return result

    def execute_many(self, sql: str, parameter_sets: "Sequence[Mapping[str, Any]]") -> SQLResult:
        """Execute one statement once per parameter set (``executemany``).

        Returns:
            A result whose ``rows_affected`` is the driver's total.
        """
        self._record_query(sql)
        if not parameter_sets:
            return SQLResult(statement=sql)
        converted_sql = sql
        prepared_sets: "list[Any]" = []
        for parameters in parameter_sets:
            converted_sql, prepared = convert_parameters(
                sql, self.coerce_parameters(parameters), self.parameter_style, self.dialect.backslash_escapes
            )
            prepared_sets.append(prepared)
        started = time.perf_counter()
        try:
            with self.handle_database_exceptions(), self.with_cursor(self.connection) as cursor:
                result = self._execute_many(cursor, converted_sql, prepared_sets)
        except ExecutionError as e:
            self.report_error(e, sql)
            raise
        result.execution_time = time.perf_counter() - started
        logger.debug(
            "Executed query for %d parameter sets in %.3fms",
            len(prepared_sets),
            result.execution_time * 1000,
            extra={"extra_fields": {"sql": sql}},
        )
        return result

    def last_insert_id(self, name: Optional[str] = None) -> Any:
        """The id generated by the most recent INSERT on this driver.

        Args:
            name: Sequence name, for databases that need one (PostgreSQL).
        """
        if name is None and self._last_inserted_id is not None:
            return self._last_inserted_id
        with self.handle_database_exceptions():
            return self._fetch_last_insert_id(name)

    # -- Query builder --
    def query_builder(self) -> QueryBuilder:
        """Return a new builder executing through this driver."""
        return QueryBuilder(self, self.dialect, type_registry=self.type_registry, suppress_errors=self.suppress_errors)

    def select(self, *columns: "Union[ColumnT, Sequence[ColumnT]]") -> QueryBuilder:
        """Start a query on the driver's own builder.

        The builder is shared by every ``select`` call on this driver; use
        :meth:`query_builder` to build queries side by side.
        """
        if self._builder is None:
            self._builder = self.query_builder()
        return self._builder.select(*columns)

    # -- Fetch helpers --
    def _decode_rows(self, rows: "list[dict[str, Any]]", schema_type: "Optional[MappingTarget]") -> "list[Any]":
        if schema_type is None:
            return rows
        if self.type_registry is None:
            msg = f"Cannot map results to {schema_type!r}: the driver has no type registry"
            raise MappingError(msg)
        return self.type_registry.decode_many(schema_type, rows)

    @overload
    def fetch_all(
        self, sql: str, parameters: "StatementParameters" = None, *, schema_type: "type[ModelDTOT]"
    ) -> "list[ModelDTOT]": ...

    @overload
    def fetch_all(
        self, sql: str, parameters: "StatementParameters" = None, *, schema_type: "Optional[MappingTarget]" = None
    ) -> "list[Any]": ...

    def fetch_all(
        self, sql: str, parameters: "StatementParameters" = None, *, schema_type: "Optional[MappingTarget]" = None
    ) -> "list[Any]":
        """Execute a query and return every row, decoded to ``schema_type`` when given."""
        try:
            rows = self.execute(sql, parameters).fetch_all()
        except ExecutionError:
            if not self.suppress_errors:
                raise
            return []
        return self._decode_rows(rows, schema_type)

    @overload
    def fetch_one(
        self, sql: str, parameters: "StatementParameters" = None, *, schema_type: "type[ModelDTOT]"
    ) -> "Optional[ModelDTOT]": ...

    @overload
    def fetch_one(
        self, sql: str, parameters: "StatementParameters" = None, *, schema_type: "Optional[MappingTarget]" = None
    ) -> Any: ...

    def fetch_one(
        self, sql: str, parameters: "StatementParameters" = None, *, schema_type: "Optional[MappingTarget]" = None
    ) -> Any:
        """Execute a query and return its first row, or None."""
        try:
            row = self.execute(sql, parameters).fetch_one()
        except ExecutionError:
            if not self.suppress_errors:
                raise
            return None
        if row is None:
            return None
        return self._decode_rows([row], schema_type)[0]
