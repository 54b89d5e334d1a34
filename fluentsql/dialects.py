"""Dialect registry and identifier quoting.

A :class:`Dialect` bundles everything that differs between the supported
database families: how identifiers are quoted, how LIMIT/OFFSET is written,
how string literals are escaped and the catalog query used to check whether a
table exists. Dialects are looked up by name with :func:`get_dialect`, which
also accepts the common aliases (``pgsql``, ``sqlsrv``, ``mssql``...).
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Final, Optional, Union

from sqlglot.dialects.dialect import Dialect as SQLGlotDialect

from fluentsql.exceptions import ImproperConfigurationError

__all__ = (
    "MSSQL",
    "MYSQL",
    "POSTGRES",
    "SQLITE",
    "Dialect",
    "DialectName",
    "IdentifierQuoting",
    "get_dialect",
)

_SAFE_IDENTIFIER: Final = re.compile(r"^[A-Za-z0-9_]+$")

# MySQL has no "no limit" keyword; the documented idiom is the largest BIGINT UNSIGNED.
_MYSQL_UNBOUNDED_LIMIT: Final = "18446744073709551615"

_MYSQL_ESCAPES: Final = {
    "\\": "\\\\",
    "'": "\\'",
    "\0": "\\0",
    "\n": "\\n",
    "\r": "\\r",
    "\x1a": "\\Z",
}


class IdentifierQuoting(str, Enum):
    """Identifier quoting policy."""

    BACKTICK_WHEN_NEEDED = "backtick_when_needed"
    """Bare when the name matches ``[A-Za-z0-9_]+``, otherwise backticks (MySQL)."""
    DOUBLE_QUOTE_ALWAYS = "double_quote_always"
    """Always wrapped in double quotes (PostgreSQL, SQL Server)."""
    DOUBLE_QUOTE_WHEN_NEEDED = "double_quote_when_needed"
    """Double quotes only when a character outside ``[A-Za-z0-9_]`` is present (SQLite)."""

    def __str__(self) -> str:
        return self.value


class DialectName(str, Enum):
    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"
    MSSQL = "tsql"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Dialect:
    """Syntax rules for one target database family."""

    name: DialectName
    quoting: IdentifierQuoting
    table_exists_sql: str
    uses_offset_fetch: bool = False
    supports_find_in_set: bool = False
    supports_truncate: bool = True
    procedure_keyword: str = "CALL"
    unbounded_limit: Optional[str] = None
    parenthesized_union: bool = True
    backslash_escapes: bool = False

    @property
    def sqlglot_dialect(self) -> SQLGlotDialect:
        """The matching sqlglot dialect, used to parse caller-supplied SQL."""
        return SQLGlotDialect.get_or_raise(self.name.value)

    def quote_identifier(self, identifier: str) -> str:
        """Quote a table or column name.

        Dotted names (``table.column``) are split and each segment quoted on
        its own. A ``*`` segment is never quoted so ``users.*`` stays valid.

        Args:
            identifier: The identifier to quote.

        Returns:
            The quoted identifier.
        """
        if "." in identifier:
            return ".".join(self.quote_identifier(part) for part in identifier.split("."))
        if identifier == "*":
            return identifier
        if self.quoting is IdentifierQuoting.BACKTICK_WHEN_NEEDED:
            if _SAFE_IDENTIFIER.match(identifier):
                return identifier
            return "`" + identifier.replace("`", "``") + "`"
        if self.quoting is IdentifierQuoting.DOUBLE_QUOTE_WHEN_NEEDED and _SAFE_IDENTIFIER.match(identifier):
            return identifier
        return '"' + identifier.replace('"', '""') + '"'

    def quote_literal(self, value: Any) -> str:
        """Render a Python value as an SQL literal.

        Only meant for the rare places where a bound parameter cannot be used;
        values should always be bound when possible.
        """
        if value is None:
            return "NULL"
        if isinstance(value, bool):
            if self.name is DialectName.POSTGRES:
                return "TRUE" if value else "FALSE"
            return "1" if value else "0"
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        text = str(value)
        if self.name is DialectName.MYSQL:
            return "'" + "".join(_MYSQL_ESCAPES.get(char, char) for char in text) + "'"
        return "'" + text.replace("'", "''") + "'"

    def format_limit_offset(
        self, limit: Optional[int], offset: Optional[int], has_order_by: bool, compound: bool = False
    ) -> str:
        """Render the paging suffix of a SELECT.

        Args:
            limit: Maximum number of rows, or None.
            offset: Rows to skip, or None.
            has_order_by: Whether the statement already has an ORDER BY clause.
            compound: Whether the suffix closes a UNION; OFFSET/FETCH then falls
                back to ``ORDER BY 1`` (a UNION may only order by output columns).

        Returns:
            The clause text (without a leading space), empty when neither is set.
        """
        if limit is None and offset is None:
            return ""
        if self.uses_offset_fetch:
            parts = [] if has_order_by else ["ORDER BY 1" if compound else "ORDER BY (SELECT NULL)"]
            parts.append(f"OFFSET {offset or 0} ROWS")
            if limit is not None:
                parts.append(f"FETCH NEXT {limit} ROWS ONLY")
            return " ".join(parts)
        parts = []
        if limit is not None:
            parts.append(f"LIMIT {limit}")
        elif self.unbounded_limit is not None:
            parts.append(f"LIMIT {self.unbounded_limit}")
        if offset is not None:
            parts.append(f"OFFSET {offset}")
        return " ".join(parts)


MYSQL: Final = Dialect(
    name=DialectName.MYSQL,
    quoting=IdentifierQuoting.BACKTICK_WHEN_NEEDED,
    table_exists_sql=(
        "SELECT 1 FROM information_schema.tables WHERE table_schema = DATABASE() AND table_name = :table_name"
    ),
    supports_find_in_set=True,
    unbounded_limit=_MYSQL_UNBOUNDED_LIMIT,
    backslash_escapes=True,
)
POSTGRES: Final = Dialect(
    name=DialectName.POSTGRES,
    quoting=IdentifierQuoting.DOUBLE_QUOTE_ALWAYS,
    table_exists_sql=(
        "SELECT 1 FROM information_schema.tables WHERE table_schema = current_schema() AND table_name = :table_name"
    ),
)
SQLITE: Final = Dialect(
    name=DialectName.SQLITE,
    quoting=IdentifierQuoting.DOUBLE_QUOTE_WHEN_NEEDED,
    table_exists_sql="SELECT name FROM sqlite_master WHERE type = 'table' AND name = :table_name",
    supports_truncate=False,
    unbounded_limit="-1",
    parenthesized_union=False,
)
MSSQL: Final = Dialect(
    name=DialectName.MSSQL,
    quoting=IdentifierQuoting.DOUBLE_QUOTE_ALWAYS,
    table_exists_sql="SELECT 1 FROM sys.tables WHERE name = :table_name",
    uses_offset_fetch=True,
    procedure_keyword="EXEC",
)

_DIALECTS: Final[dict[str, Dialect]] = {
    "mysql": MYSQL,
    "mariadb": MYSQL,
    "postgres": POSTGRES,
    "postgresql": POSTGRES,
    "pgsql": POSTGRES,
    "sqlite": SQLITE,
    "sqlite3": SQLITE,
    "tsql": MSSQL,
    "mssql": MSSQL,
    "sqlsrv": MSSQL,
    "sqlserver": MSSQL,
}


def get_dialect(dialect: "Union[str, DialectName, Dialect]") -> Dialect:
    """Resolve a dialect name or alias.

    Args:
        dialect: A :class:`Dialect`, a :class:`DialectName` or a name/alias string.

    Raises:
        ImproperConfigurationError: If the name is not a supported dialect.

    Returns:
        The matching dialect.
    """
    if isinstance(dialect, Dialect):
        return dialect
    key = str(dialect).strip().lower()
    try:
        return _DIALECTS[key]
    except KeyError:
        msg = f"Unsupported database dialect: {dialect!r}. Expected one of: {', '.join(sorted(_DIALECTS))}"
        raise ImproperConfigurationError(msg) from None
