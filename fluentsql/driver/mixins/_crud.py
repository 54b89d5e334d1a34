"""Create, read, update and delete helpers."""

import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Final, Optional, TypeVar, Union

from mypy_extensions import trait

from fluentsql.conditions import render_conditions
from fluentsql.exceptions import ExecutionError
from fluentsql.parameters import ParameterBag
from fluentsql.utils.logging import get_logger

if TYPE_CHECKING:
    from fluentsql.conditions import ConditionsT
    from fluentsql.dialects import Dialect
    from fluentsql.result import SQLResult
    from fluentsql.typing import StatementParameters

__all__ = ("CRUDMixin",)

logger = get_logger("driver.crud")

T = TypeVar("T")

_NON_WORD: Final = re.compile(r"\W+")


def _field_slugs(fields: "Sequence[str]") -> "list[str]":
    """Placeholder-safe names for column names, unique within ``fields``."""
    slugs = []
    for field in fields:
        slug = _NON_WORD.sub("_", field).strip("_") or "field"
        if not slug[0].isalpha():
            slug = f"f_{slug}"
        slugs.append(slug)
    if len(set(slugs)) != len(slugs):
        return [f"{slug}_c{index}" for index, slug in enumerate(slugs)]
    return slugs


@trait
class CRUDMixin:
    """One-call INSERT/UPDATE/DELETE and existence checks.

    Failed statements raise :class:`~fluentsql.exceptions.ExecutionError`
    unless the driver was created with ``suppress_errors=True``, in which case
    the failure is logged and the helper returns ``0`` or ``False``.
    """

    __slots__ = ()

    dialect: "ClassVar[Dialect]"
    suppress_errors: bool

    def execute(self, sql: str, parameters: "StatementParameters" = None) -> "SQLResult":
        raise NotImplementedError

    def last_insert_id(self, name: Optional[str] = None) -> Any:
        raise NotImplementedError

    def _run_or_default(self, operation: "Callable[[], T]", default: T, description: str) -> T:
        try:
            return operation()
        except ExecutionError:
            if not self.suppress_errors:
                raise
            logger.warning("%s failed, returning %r", description, default)
            return default

    def _quote(self, identifier: str) -> str:
        return self.dialect.quote_identifier(identifier)

    def _where(self, conditions: "Optional[ConditionsT]", parameters: ParameterBag) -> Optional[str]:
        return render_conditions(conditions, self.dialect, parameters)

    def insert(self, table: str, data: "Mapping[str, Any]") -> int:
        """Insert one row.

        Args:
            table: Target table.
            data: Column to value mapping.

        Returns:
            The id generated for the new row (0 when the database reports none,
            or when ``data`` is empty).
        """
        if not data:
            return 0
        fields = list(data)
        parameters = ParameterBag()
        names = [parameters.bind(slug, data[field]) for slug, field in zip(_field_slugs(fields), fields)]
        sql = (
            f"INSERT INTO {self._quote(table)} ({', '.join(self._quote(field) for field in fields)}) "
            f"VALUES ({', '.join(f':{name}' for name in names)})"
        )

        def _insert() -> int:
            result = self.execute(sql, parameters.as_dict())
            inserted_id = result.last_inserted_id
            if inserted_id is None:
                inserted_id = self.last_insert_id()
            return int(inserted_id or 0)

        return self._run_or_default(_insert, 0, f"INSERT into {table}")

    def insert_multi(self, table: str, rows: "Sequence[Mapping[str, Any]]") -> int:
        """Insert several rows with one multi-row ``VALUES`` statement.

        The column list is the union of the rows' keys, in first-seen order; a
        row missing a column inserts NULL for it. Placeholders are named
        ``<field>_<row>``.

        Returns:
            The number of rows inserted.
        """
        if not rows:
            return 0
        fields = list(dict.fromkeys(field for row in rows for field in row))
        slugs = _field_slugs(fields)
        values: "dict[str, Any]" = {}
        groups = []
        for row_index, row in enumerate(rows):
            placeholders = []
            for slug, field in zip(slugs, fields):
                name = f"{slug}_{row_index}"
                values[name] = row.get(field)
                placeholders.append(f":{name}")
            groups.append(f"({', '.join(placeholders)})")
        sql = (
            f"INSERT INTO {self._quote(table)} ({', '.join(self._quote(field) for field in fields)}) "
            f"VALUES {', '.join(groups)}"
        )
        return self._run_or_default(lambda: self.execute(sql, values).rows_affected, 0, f"INSERT into {table}")

    def update(self, table: str, data: "Mapping[str, Any]", conditions: "ConditionsT") -> int:
        """Update the rows matching ``conditions``.

        Refuses to run (returning 0) when ``data`` or ``conditions`` is empty, so
        a missing condition can never update the whole table.

        Returns:
            The number of rows affected.
        """
        if not data or not conditions:
            logger.warning("UPDATE of %s skipped: data and conditions are both required", table)
            return 0
        parameters = ParameterBag()
        fields = list(data)
        assignments = [
            f"{self._quote(field)} = :{parameters.bind(f'set_{slug}', data[field])}"
            for slug, field in zip(_field_slugs(fields), fields)
        ]
        where = self._where(conditions, parameters)
        sql = f"UPDATE {self._quote(table)} SET {', '.join(assignments)} WHERE {where}"
        return self._run_or_default(
            lambda: self.execute(sql, parameters.as_dict()).rows_affected, 0, f"UPDATE of {table}"
        )

    def delete(self, table: str, conditions: "ConditionsT") -> int:
        """Delete the rows matching ``conditions``; refuses to run without conditions.

        Returns:
            The number of rows deleted.
        """
        if not conditions:
            logger.warning("DELETE from %s skipped: conditions are required", table)
            return 0
        parameters = ParameterBag()
        sql = f"DELETE FROM {self._quote(table)} WHERE {self._where(conditions, parameters)}"
        return self._run_or_default(
            lambda: self.execute(sql, parameters.as_dict()).rows_affected, 0, f"DELETE from {table}"
        )

    def record_exists(self, table: str, conditions: "ConditionsT") -> bool:
        """Check whether at least one row matches ``conditions`` (False for no conditions)."""
        if not conditions:
            return False
        parameters = ParameterBag()
        sql = f"SELECT 1 FROM {self._quote(table)} WHERE {self._where(conditions, parameters)}"
        paging = self.dialect.format_limit_offset(1, None, has_order_by=False)
        sql = f"{sql} {paging}"
        return self._run_or_default(
            lambda: bool(self.execute(sql, parameters.as_dict()).data), False, f"Existence check on {table}"
        )

    def table_exists(self, table_name: str) -> bool:
        """Check the database catalog for a table."""
        return self._run_or_default(
            lambda: bool(self.execute(self.dialect.table_exists_sql, {"table_name": table_name}).data),
            False,
            f"Table check for {table_name}",
        )

    def truncate(self, table: str) -> bool:
        """Remove every row of a table (``DELETE FROM`` where TRUNCATE is not available)."""
        if self.dialect.supports_truncate:
            sql = f"TRUNCATE TABLE {self._quote(table)}"
        else:
            sql = f"DELETE FROM {self._quote(table)}"

        def _truncate() -> bool:
            self.execute(sql)
            return True

        return self._run_or_default(_truncate, False, f"TRUNCATE of {table}")

    def create_table(self, table: str, columns: "Mapping[str, str]") -> bool:
        """Create a table from ``{column: definition}``.

        Definitions are written as given (``"INTEGER PRIMARY KEY"``...), so they
        must never come from user input.

        Returns:
            True if the table was created, False when ``columns`` is empty.
        """
        if not columns:
            return False
        definitions = ", ".join(f"{self._quote(name)} {definition}" for name, definition in columns.items())
        sql = f"CREATE TABLE {self._quote(table)} ({definitions})"

        def _create() -> bool:
            self.execute(sql)
            return True

        return self._run_or_default(_create, False, f"CREATE TABLE {table}")

    def call_procedure(
        self, procedure: str, parameters: "Optional[Union[Mapping[str, Any], Sequence[Any]]]" = None
    ) -> "SQLResult":
        """Call a stored procedure with positional arguments.

        Mapping values are passed in insertion order. Errors always propagate.

        Returns:
            The procedure's result.
        """
        arguments = list(parameters.values()) if isinstance(parameters, Mapping) else list(parameters or [])
        values = {f"param_{index}": value for index, value in enumerate(arguments)}
        placeholders = ", ".join(f":{name}" for name in values)
        keyword = self.dialect.procedure_keyword
        if keyword == "EXEC":
            sql = f"EXEC {self._quote(procedure)} {placeholders}".rstrip()
        else:
            sql = f"{keyword} {self._quote(procedure)}({placeholders})"
        return self.execute(sql, values)
