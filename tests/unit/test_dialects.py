from __future__ import annotations

from decimal import Decimal

import pytest

from fluentsql.dialects import MSSQL, MYSQL, POSTGRES, SQLITE, DialectName, get_dialect
from fluentsql.exceptions import ImproperConfigurationError


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("mysql", MYSQL),
        ("MariaDB", MYSQL),
        ("pgsql", POSTGRES),
        ("postgresql", POSTGRES),
        (" sqlite3 ", SQLITE),
        ("sqlsrv", MSSQL),
        ("mssql", MSSQL),
        (DialectName.MSSQL, MSSQL),
        (POSTGRES, POSTGRES),
    ],
)
def test_get_dialect_resolves_aliases(name: object, expected: object) -> None:
    assert get_dialect(name) is expected  # type: ignore[arg-type]


def test_get_dialect_rejects_unknown_names() -> None:
    with pytest.raises(ImproperConfigurationError, match="oracle"):
        get_dialect("oracle")


@pytest.mark.parametrize(
    ("dialect", "identifier", "expected"),
    [
        (MYSQL, "users", "users"),
        (MYSQL, "user name", "`user name`"),
        (MYSQL, "odd`name", "`odd``name`"),
        (POSTGRES, "users", '"users"'),
        (POSTGRES, 'say "hi"', '"say ""hi"""'),
        (SQLITE, "users", "users"),
        (SQLITE, "order items", '"order items"'),
        (MSSQL, "users", '"users"'),
        (MYSQL, "u.name", "u.name"),
        (POSTGRES, "public.users", '"public"."users"'),
        (POSTGRES, "u.*", '"u".*'),
        (SQLITE, "*", "*"),
    ],
)
def test_quote_identifier(dialect: object, identifier: str, expected: str) -> None:
    assert dialect.quote_identifier(identifier) == expected  # type: ignore[attr-defined]


def test_quote_literal_mysql_uses_backslash_escapes() -> None:
    assert MYSQL.quote_literal("O'Reilly\\n") == "'O\\'Reilly\\\\n'"
    assert MYSQL.quote_literal("line\nbreak") == "'line\\nbreak'"


@pytest.mark.parametrize("dialect", [POSTGRES, SQLITE, MSSQL])
def test_quote_literal_doubles_single_quotes(dialect: object) -> None:
    assert dialect.quote_literal("O'Reilly") == "'O''Reilly'"  # type: ignore[attr-defined]


def test_quote_literal_scalars() -> None:
    assert SQLITE.quote_literal(None) == "NULL"
    assert SQLITE.quote_literal(True) == "1"
    assert POSTGRES.quote_literal(False) == "FALSE"
    assert MYSQL.quote_literal(Decimal("1.50")) == "1.50"
    assert MSSQL.quote_literal(7) == "7"


@pytest.mark.parametrize(
    ("dialect", "limit", "offset", "has_order_by", "expected"),
    [
        (MYSQL, None, None, False, ""),
        (MYSQL, 10, None, False, "LIMIT 10"),
        (MYSQL, 10, 20, False, "LIMIT 10 OFFSET 20"),
        (MYSQL, None, 20, False, "LIMIT 18446744073709551615 OFFSET 20"),
        (SQLITE, None, 5, False, "LIMIT -1 OFFSET 5"),
        (POSTGRES, None, 5, False, "OFFSET 5"),
        (POSTGRES, 0, None, False, "LIMIT 0"),
        (MSSQL, 10, None, True, "OFFSET 0 ROWS FETCH NEXT 10 ROWS ONLY"),
        (MSSQL, 10, 20, False, "ORDER BY (SELECT NULL) OFFSET 20 ROWS FETCH NEXT 10 ROWS ONLY"),
        (MSSQL, None, 20, True, "OFFSET 20 ROWS"),
    ],
)
def test_format_limit_offset(
    dialect: object, limit: int | None, offset: int | None, has_order_by: bool, expected: str
) -> None:
    assert dialect.format_limit_offset(limit, offset, has_order_by) == expected  # type: ignore[attr-defined]


def test_dialect_capabilities() -> None:
    assert MYSQL.supports_find_in_set is True
    assert not any(dialect.supports_find_in_set for dialect in (POSTGRES, SQLITE, MSSQL))
    assert SQLITE.supports_truncate is False
    assert MSSQL.procedure_keyword == "EXEC"
    assert POSTGRES.procedure_keyword == "CALL"
    assert SQLITE.parenthesized_union is False
    assert MYSQL.backslash_escapes is True
    assert not any(dialect.backslash_escapes for dialect in (POSTGRES, SQLITE, MSSQL))
    assert ":table_name" in SQLITE.table_exists_sql


def test_sqlglot_dialect() -> None:
    assert MSSQL.sqlglot_dialect is not None
    assert type(POSTGRES.sqlglot_dialect).__name__ == "Postgres"


def test_compound_paging_orders_by_first_column_on_mssql() -> None:
    assert MSSQL.format_limit_offset(1, None, has_order_by=False, compound=True) == (
        "ORDER BY 1 OFFSET 0 ROWS FETCH NEXT 1 ROWS ONLY"
    )
    assert SQLITE.format_limit_offset(1, None, has_order_by=False, compound=True) == "LIMIT 1"
