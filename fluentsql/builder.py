"""Fluent SELECT query builder.

A :class:`QueryBuilder` accumulates chained clause calls into a
:class:`QueryDraft`, compiles the draft into one parameterized statement and
hands it to its executor. Every value reaches the database as a bound
parameter; only identifiers (quoted per dialect), operators (whitelisted) and
LIMIT/OFFSET (cast to ``int``) are written into the SQL text.

Example:
    >>> builder = QueryBuilder(driver, "mysql")
    >>> rows = builder.select("id", "name").from_("users").where("age", ">", 18).order_by("name").get()
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, NoReturn, Optional, Union

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError as SQLGlotParseError
from typing_extensions import Self

from fluentsql.dialects import Dialect, get_dialect
from fluentsql.exceptions import (
    ConfigurationError,
    ExecutionError,
    ImproperConfigurationError,
    MappingError,
    MissingParameterError,
    SQLBuilderError,
)
from fluentsql.parameters import ParameterBag, extract_parameter_names, normalize_parameters
from fluentsql.typing import Empty
from fluentsql.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from fluentsql.dialects import DialectName
    from fluentsql.mapping import TypeRegistry
    from fluentsql.typing import EmptyType, MappingTarget, StatementExecutor

__all__ = (
    "COMPARISON_OPERATORS",
    "JOIN_TYPES",
    "CompiledQuery",
    "QueryBuilder",
    "QueryDraft",
    "RawExpression",
    "UnionClause",
    "raw",
)

logger = get_logger("builder")

COMPARISON_OPERATORS: Final = frozenset(
    {"=", "!=", "<>", "<", "<=", ">", ">=", "LIKE", "NOT LIKE", "ILIKE", "NOT ILIKE", "IS", "IS NOT"}
)
JOIN_TYPES: Final = frozenset(
    {"INNER", "LEFT", "RIGHT", "FULL", "CROSS", "LEFT OUTER", "RIGHT OUTER", "FULL OUTER"}
)
_SORT_DIRECTIONS: Final = frozenset({"ASC", "DESC"})
_NULL_CHECK_OPERATORS: Final = frozenset({"IS", "IS NOT"})
_COLUMN_ALIAS: Final = re.compile(r"^(?P<expression>.+?)\s+AS\s+(?P<alias>[^\s]+)$", re.IGNORECASE)
_WHITESPACE: Final = re.compile(r"\s+")

ColumnT = Union[str, "RawExpression"]


@dataclass(frozen=True)
class RawExpression:
    """An SQL expression emitted verbatim, never quoted."""

    sql: str

    def __str__(self) -> str:
        return self.sql


def raw(sql: str) -> RawExpression:
    """Mark an expression (``COUNT(*) AS total``, ``LOWER(name)``...) to be emitted as written.

    Raw expressions are never parameterized; do not build them from user input.
    """
    return RawExpression(sql)


@dataclass(frozen=True)
class UnionClause:
    sql: str
    parameters: "dict[str, Any]" = field(default_factory=dict)
    all_: bool = False


@dataclass(frozen=True)
class CompiledQuery:
    """A compiled statement and its bindings, ready for ``execute``."""

    sql: str
    parameters: "dict[str, Any]" = field(default_factory=dict)

    def __str__(self) -> str:
        return self.sql


@dataclass
class QueryDraft:
    """The builder's accumulated, not yet compiled query state.

    ``predicates`` holds ``(connector, fragment)`` pairs so that the compiler,
    not the clause methods, decides how the first predicate is written.
    ``order_by`` keeps the unquoted terms because a UNION is ordered by its
    output column names.
    """

    columns: "list[str]" = field(default_factory=lambda: ["*"])
    source: Optional[str] = None
    joins: "list[str]" = field(default_factory=list)
    predicates: "list[tuple[str, str]]" = field(default_factory=list)
    group_by: "list[str]" = field(default_factory=list)
    having: "list[str]" = field(default_factory=list)
    order_by: "list[tuple[ColumnT, str]]" = field(default_factory=list)
    limit: Optional[int] = None
    offset: Optional[int] = None
    unions: "list[UnionClause]" = field(default_factory=list)
    bindings: ParameterBag = field(default_factory=ParameterBag)
    result_mapping: "Optional[MappingTarget]" = None


class QueryBuilder:
    """Fluent SELECT builder bound to one executor and one dialect.

    A builder holds mutable state and is not safe for concurrent reuse: finish
    a query with a terminal call (:meth:`get`, :meth:`first`) before starting
    the next one, or use one builder per in-flight query.

    Args:
        executor: Object exposing ``execute(sql, parameters) -> SQLResult``,
            normally a driver. Only needed for the terminal calls.
        dialect: Dialect, dialect name or alias used for quoting and paging.
        type_registry: Registry consulted by :meth:`select_as`.
        suppress_errors: Log execution errors and return ``[]``/``None`` from
            the terminal calls instead of raising.
    """

    __slots__ = ("_draft", "dialect", "executor", "suppress_errors", "type_registry")

    def __init__(
        self,
        executor: "Optional[StatementExecutor]" = None,
        dialect: "Union[str, DialectName, Dialect]" = "sqlite",
        type_registry: "Optional[TypeRegistry]" = None,
        suppress_errors: bool = False,
    ) -> None:
        self.executor = executor
        self.dialect: Dialect = get_dialect(dialect)
        self.type_registry = type_registry
        self.suppress_errors = suppress_errors
        self._draft = QueryDraft()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dialect={self.dialect.name.value!r}, source={self._draft.source!r})"

    @property
    def draft(self) -> QueryDraft:
        """The current draft (read it, do not mutate it)."""
        return self._draft

    @staticmethod
    def _raise_sql_builder_error(message: str, cause: Optional[BaseException] = None) -> NoReturn:
        raise SQLBuilderError(message) from cause

    def reset(self) -> Self:
        """Discard the current draft."""
        self._draft = QueryDraft()
        return self

    # -- Rendering helpers --
    def _quote(self, identifier: ColumnT) -> str:
        if isinstance(identifier, RawExpression):
            return identifier.sql
        return self.dialect.quote_identifier(identifier.strip())

    def _render_column(self, column: ColumnT) -> str:
        if isinstance(column, RawExpression):
            return column.sql
        match = _COLUMN_ALIAS.match(column.strip())
        if match:
            return f"{self._quote(match.group('expression'))} AS {self._quote(match.group('alias'))}"
        return self._quote(column)

    def _render_table(self, table: str, alias: Optional[str]) -> str:
        if alias:
            return f"{self._quote(table)} AS {self._quote(alias)}"
        return self._quote(table)

    def _normalize_operator(self, operator: Any) -> str:
        normalized = _WHITESPACE.sub(" ", str(operator).strip()).upper()
        if normalized not in COMPARISON_OPERATORS:
            self._raise_sql_builder_error(
                f"Unsupported comparison operator {operator!r}. Expected one of: {', '.join(sorted(COMPARISON_OPERATORS))}"
            )
        return normalized

    def _comparison(self, prefix: str, column: ColumnT, operator_or_value: Any, value: Any) -> str:
        """Render ``column <op> :placeholder`` and bind the value.

        ``IS``/``IS NOT`` accept only ``None``, ``True`` or ``False`` and are
        written as keywords, since those operators cannot take a parameter.
        """
        if value is Empty:
            operator, value = "=", operator_or_value
        else:
            operator = self._normalize_operator(operator_or_value)
        if operator in _NULL_CHECK_OPERATORS:
            keywords = {None: "NULL", True: "TRUE", False: "FALSE"}
            if not any(value is candidate for candidate in keywords):
                self._raise_sql_builder_error(f"Operator {operator} only accepts None, True or False, got {value!r}")
            return f"{self._quote(column)} {operator} {keywords[value]}"
        name = self._draft.bindings.bind(prefix, value)
        return f"{self._quote(column)} {operator} :{name}"

    def _in_list(self, prefix: str, column: ColumnT, values: "Sequence[Any]", negate: bool) -> str:
        if isinstance(values, (str, bytes)):
            self._raise_sql_builder_error(f"Expected a collection of values for {column!r}, got a string")
        values = list(values)
        if not values:
            return "1=1" if negate else "1=0"
        names = self._draft.bindings.bind_many(prefix, values)
        placeholders = ", ".join(f":{name}" for name in names)
        keyword = "NOT IN" if negate else "IN"
        return f"{self._quote(column)} {keyword} ({placeholders})"

    @staticmethod
    def _coerce_non_negative(value: Any, clause: str) -> int:
        try:
            number = int(value)
        except (TypeError, ValueError) as e:
            msg = f"{clause} must be an integer, got {value!r}"
            raise SQLBuilderError(msg) from e
        if number < 0:
            msg = f"{clause} must be non-negative, got {number}"
            raise SQLBuilderError(msg)
        return number

    # -- Clause methods --
    def select(self, *columns: "Union[ColumnT, Sequence[ColumnT]]") -> Self:
        """Start a new query, discarding any previous draft.

        Args:
            *columns: Column expressions, or a single list of them. Defaults to ``*``.

        Returns:
            The builder.
        """
        self.reset()
        flattened: "list[ColumnT]" = []
        for column in columns:
            if isinstance(column, (list, tuple)):
                flattened.extend(column)
            else:
                flattened.append(column)  # type: ignore[arg-type]
        if flattened:
            self._draft.columns = [self._render_column(column) for column in flattened]
        return self

    def from_(self, table: str, alias: Optional[str] = None) -> Self:
        """Set the source table.

        Args:
            table: Table name, optionally schema qualified.
            alias: Optional alias, rendered as ``AS <alias>``.

        Returns:
            The builder.
        """
        self._draft.source = self._render_table(table, alias)
        return self

    def join(
        self, table: str, on: Optional[str] = None, join_type: str = "INNER", alias: Optional[str] = None
    ) -> Self:
        """Append a JOIN.

        The ON predicate is written as given; it is neither parameterized nor
        validated, so it must never contain user input.

        Args:
            table: Table to join.
            on: ON predicate, e.g. ``"users.id = orders.user_id"``. Omitted for CROSS joins.
            join_type: INNER, LEFT, RIGHT, FULL, CROSS or an OUTER variant.
            alias: Optional alias for the joined table.

        Raises:
            SQLBuilderError: For an unknown join type or a missing ON predicate.

        Returns:
            The builder.
        """
        normalized = _WHITESPACE.sub(" ", join_type.strip()).upper()
        if normalized not in JOIN_TYPES:
            self._raise_sql_builder_error(
                f"Unsupported join type {join_type!r}. Expected one of: {', '.join(sorted(JOIN_TYPES))}"
            )
        clause = f"{normalized} JOIN {self._render_table(table, alias)}"
        if on:
            clause = f"{clause} ON {on}"
        elif normalized != "CROSS":
            self._raise_sql_builder_error(f"{normalized} JOIN requires an ON predicate")
        self._draft.joins.append(clause)
        return self

    def inner_join(self, table: str, on: str, alias: Optional[str] = None) -> Self:
        return self.join(table, on, "INNER", alias)

    def left_join(self, table: str, on: str, alias: Optional[str] = None) -> Self:
        return self.join(table, on, "LEFT", alias)

    def right_join(self, table: str, on: str, alias: Optional[str] = None) -> Self:
        return self.join(table, on, "RIGHT", alias)

    def where(self, column: ColumnT, operator_or_value: Any, value: "Union[Any, EmptyType]" = Empty) -> Self:
        """Add an AND-connected comparison.

        ``where("id", 1)`` is shorthand for ``where("id", "=", 1)``.

        Args:
            column: Column to compare.
            operator_or_value: A comparison operator, or the value when ``value`` is omitted.
            value: The value to bind.

        Returns:
            The builder.
        """
        self._draft.predicates.append(("AND", self._comparison("where", column, operator_or_value, value)))
        return self

    def and_where(self, column: ColumnT, operator_or_value: Any, value: "Union[Any, EmptyType]" = Empty) -> Self:
        return self.where(column, operator_or_value, value)

    def or_where(self, column: ColumnT, operator_or_value: Any, value: "Union[Any, EmptyType]" = Empty) -> Self:
        """Add an OR-connected comparison. Same arguments as :meth:`where`."""
        self._draft.predicates.append(("OR", self._comparison("or_where", column, operator_or_value, value)))
        return self

    def where_in(self, column: ColumnT, values: "Sequence[Any]") -> Self:
        """Add ``column IN (...)``; an empty list matches no rows."""
        self._draft.predicates.append(("AND", self._in_list("where_in", column, values, negate=False)))
        return self

    def where_not_in(self, column: ColumnT, values: "Sequence[Any]") -> Self:
        """Add ``column NOT IN (...)``; an empty list matches every row."""
        self._draft.predicates.append(("AND", self._in_list("where_not_in", column, values, negate=True)))
        return self

    def where_like(self, column: ColumnT, pattern: str) -> Self:
        """Add ``column LIKE :pattern``. The caller supplies the ``%``/``_`` wildcards."""
        name = self._draft.bindings.bind("where_like", pattern)
        self._draft.predicates.append(("AND", f"{self._quote(column)} LIKE :{name}"))
        return self

    def where_null(self, column: ColumnT) -> Self:
        self._draft.predicates.append(("AND", f"{self._quote(column)} IS NULL"))
        return self

    def where_not_null(self, column: ColumnT) -> Self:
        self._draft.predicates.append(("AND", f"{self._quote(column)} IS NOT NULL"))
        return self

    def group_by(self, *columns: "Union[ColumnT, Sequence[ColumnT]]") -> Self:
        for column in columns:
            items = column if isinstance(column, (list, tuple)) else [column]
            self._draft.group_by.extend(self._quote(item) for item in items)
        return self

    def having(self, column: ColumnT, operator_or_value: Any, value: "Union[Any, EmptyType]" = Empty) -> Self:
        """Add a HAVING comparison; several are AND-joined.

        Use :func:`raw` for aggregate expressions: ``having(raw("COUNT(*)"), ">", 5)``.
        """
        self._draft.having.append(self._comparison("having", column, operator_or_value, value))
        return self

    def order_by(self, column: ColumnT, direction: str = "ASC") -> Self:
        """Add an ORDER BY term.

        With a :meth:`union`, ORDER BY and paging apply to the whole compound and
        a dotted ``table.column`` is ordered by its output name ``column``.
        """
        normalized = direction.strip().upper()
        if normalized not in _SORT_DIRECTIONS:
            self._raise_sql_builder_error(f"Sort direction must be ASC or DESC, got {direction!r}")
        self._draft.order_by.append((column, normalized))
        return self

    def limit(self, limit: Any) -> Self:
        self._draft.limit = self._coerce_non_negative(limit, "LIMIT")
        return self

    def offset(self, offset: Any) -> Self:
        self._draft.offset = self._coerce_non_negative(offset, "OFFSET")
        return self

    def union(self, sql: str, parameters: "Optional[Mapping[str, Any]]" = None, all_: bool = False) -> Self:
        """Append ``UNION [ALL] (<sql>)``, without the parentheses on SQLite.

        The statement is parsed with sqlglot in the builder's dialect and must
        be a SELECT (or a set operation of SELECTs). Its parameters are merged
        into the outer bindings when the query is compiled.
        ORDER BY and paging set on this builder apply to the whole compound.

        Args:
            sql: Raw SELECT statement using ``:name`` placeholders.
            parameters: Values for the statement's placeholders.
            all_: Emit ``UNION ALL`` instead of ``UNION``.

        Raises:
            SQLBuilderError: If the statement is not a valid SELECT.

        Returns:
            The builder.
        """
        try:
            parsed = sqlglot.parse_one(sql, read=self.dialect.sqlglot_dialect)
        except SQLGlotParseError as e:
            self._raise_sql_builder_error(f"Could not parse UNION statement: {e}", e)
        if not isinstance(parsed, exp.Query):
            self._raise_sql_builder_error(f"UNION requires a SELECT statement, got {type(parsed).__name__}")
        self._draft.unions.append(UnionClause(sql.strip(), normalize_parameters(parameters), all_))
        return self

    def select_as(self, target: "MappingTarget") -> Self:
        """Map result rows to a registered type instead of dictionaries.

        Raises:
            MappingError: If no registry is configured or the target is not registered.

        Returns:
            The builder.
        """
        if self.type_registry is None:
            msg = f"Cannot map results to {target!r}: the builder has no type registry"
            raise MappingError(msg)
        self.type_registry.resolve(target)
        self._draft.result_mapping = target
        return self

    # -- Compilation --
    def compile(self) -> CompiledQuery:
        """Compile the draft without executing it or resetting it.

        Raises:
            ConfigurationError: If :meth:`from_` was never called.

        Returns:
            The SQL text and a copy of the bindings.
        """
        return self._compile(self._draft)

    def _render_order_term(self, column: ColumnT, direction: str, compound: bool) -> str:
        if compound and isinstance(column, str):
            column = column.strip().rsplit(".", 1)[-1]
        return f"{self._quote(column)} {direction}"

    def _compile(self, draft: QueryDraft, limit: Optional[int] = None) -> CompiledQuery:
        if draft.source is None:
            msg = "No table specified for SELECT query. Call from_() before compiling."
            raise ConfigurationError(msg)

        parts = [f"SELECT {', '.join(draft.columns)}", f"FROM {draft.source}"]
        parts.extend(draft.joins)
        if draft.predicates:
            _, first = draft.predicates[0]
            where = [first] + [f"{connector} {fragment}" for connector, fragment in draft.predicates[1:]]
            parts.append(f"WHERE {' '.join(where)}")
        if draft.group_by:
            parts.append(f"GROUP BY {', '.join(draft.group_by)}")
        if draft.having:
            parts.append(f"HAVING {' AND '.join(draft.having)}")

        compound = bool(draft.unions)
        bindings = draft.bindings
        if compound:
            # union parameters are merged into a copy so compile() stays repeatable
            bindings = ParameterBag()
            bindings.merge(draft.bindings.as_dict())
            for union in draft.unions:
                bindings.merge(union.parameters, union.sql)
                names = extract_parameter_names(union.sql, self.dialect.backslash_escapes)
                missing = [name for name in names if name not in bindings]
                if missing:
                    msg = f"UNION statement has no value for placeholder(s): {', '.join(missing)}"
                    raise MissingParameterError(msg, union.sql)
                operand = f"({union.sql})" if self.dialect.parenthesized_union else union.sql
                parts.append(f"UNION {'ALL ' if union.all_ else ''}{operand}")

        # ORDER BY and paging close the statement, after any UNION operand
        if draft.order_by:
            terms = [self._render_order_term(column, direction, compound) for column, direction in draft.order_by]
            parts.append(f"ORDER BY {', '.join(terms)}")
        paging = self.dialect.format_limit_offset(
            draft.limit if limit is None else limit,
            draft.offset,
            has_order_by=bool(draft.order_by),
            compound=compound,
        )
        if paging:
            parts.append(paging)
        return CompiledQuery(" ".join(parts), bindings.as_dict())

    # -- Terminal calls --
    def _execute(self, compiled: CompiledQuery) -> "list[dict[str, Any]]":
        if self.executor is None:
            msg = "QueryBuilder has no executor; create it from a driver to run queries"
            raise ImproperConfigurationError(msg)
        return self.executor.execute(compiled.sql, compiled.parameters).fetch_all()

    def _map_rows(self, target: "Optional[MappingTarget]", rows: "list[dict[str, Any]]") -> "list[Any]":
        if target is None or self.type_registry is None:
            return rows
        return self.type_registry.decode_many(target, rows)

    def get(self) -> "list[Any]":
        """Compile, execute and return every row; the draft is reset afterwards.

        Raises:
            ConfigurationError: If no source table was set.
            ExecutionError: If execution fails and errors are not suppressed.
            MappingError: If a row cannot be decoded into the ``select_as`` type.

        Returns:
            Rows as dictionaries, or as the ``select_as`` type.
        """
        draft = self._draft
        try:
            compiled = self._compile(draft)
            try:
                rows = self._execute(compiled)
            except ExecutionError:
                if not self.suppress_errors:
                    raise
                logger.warning("Query failed, returning an empty result: %s", compiled.sql)
                return []
            return self._map_rows(draft.result_mapping, rows)
        finally:
            self.reset()

    def first(self) -> Any:
        """Like :meth:`get` but always compiled with ``LIMIT 1``.

        Returns:
            The first row, or None when there is no row.
        """
        draft = self._draft
        try:
            compiled = self._compile(draft, limit=1)
            try:
                rows = self._execute(compiled)
            except ExecutionError:
                if not self.suppress_errors:
                    raise
                logger.warning("Query failed, returning no row: %s", compiled.sql)
                return None
            if not rows:
                return None
            return self._map_rows(draft.result_mapping, rows[:1])[0]
        finally:
            self.reset()
