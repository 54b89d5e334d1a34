"""pyodbc (SQL Server) adapter tests against a recording DB-API double."""

from __future__ import annotations

from typing import Any

import pytest

pyodbc = pytest.importorskip("pyodbc")

from fluentsql.adapters.pyodbc import PyodbcConfig, PyodbcDriver  # noqa: E402
from fluentsql.adapters.pyodbc.core import build_connection_string, create_mapped_exception  # noqa: E402
from fluentsql.exceptions import (  # noqa: E402
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


def test_insert_uses_qmark_and_identity(fake_connection: Any) -> None:
    new_id = PyodbcDriver(fake_connection).insert("users", {"name": "Ada", "age": 36})

    assert new_id == 42
    assert fake_connection.statements == [
        ('INSERT INTO "users" ("name", "age") VALUES (?, ?)', ["Ada", 36]),
        ("SELECT @@IDENTITY", None),
    ]


def test_update_orders_positional_parameters(fake_connection: Any) -> None:
    PyodbcDriver(fake_connection).update("users", {"name": "Bob", "age": 40}, {"id": 3})

    assert fake_connection.statements[-1] == ('UPDATE "users" SET "name" = ?, "age" = ? WHERE "id" = ?', ["Bob", 40, 3])


def test_statement_without_parameters(fake_connection: Any) -> None:
    PyodbcDriver(fake_connection).execute("SELECT 1")

    assert fake_connection.statements[-1] == ("SELECT 1", None)


def test_paging_uses_offset_fetch(fake_connection: Any) -> None:
    driver = PyodbcDriver(fake_connection)

    driver.select().from_("users").limit(5).offset(10).get()
    unordered = fake_connection.statements[-1][0]
    driver.select("id").from_("users").order_by("id", "desc").first()
    ordered = fake_connection.statements[-1][0]

    assert unordered == 'SELECT * FROM "users" ORDER BY (SELECT NULL) OFFSET 10 ROWS FETCH NEXT 5 ROWS ONLY'
    assert ordered == 'SELECT "id" FROM "users" ORDER BY "id" DESC OFFSET 0 ROWS FETCH NEXT 1 ROWS ONLY'


def test_record_exists_uses_offset_fetch(fake_connection: Any) -> None:
    PyodbcDriver(fake_connection).record_exists("users", {"name": "Ada"})

    assert fake_connection.statements[-1] == (
        'SELECT 1 FROM "users" WHERE "name" = ? ORDER BY (SELECT NULL) OFFSET 0 ROWS FETCH NEXT 1 ROWS ONLY',
        ["Ada"],
    )


def test_call_procedure_uses_exec(fake_connection: Any) -> None:
    driver = PyodbcDriver(fake_connection)

    driver.call_procedure("refresh_stats", [1, "x"])
    with_arguments = fake_connection.statements[-1]
    driver.call_procedure("refresh_stats")

    assert with_arguments == ('EXEC "refresh_stats" ?, ?', [1, "x"])
    assert fake_connection.statements[-1] == ('EXEC "refresh_stats"', None)


def test_driver_errors_are_mapped(make_connection: Any) -> None:
    error = pyodbc.ProgrammingError("42S02", "[42S02] Invalid object name 'missing'. (208)")
    driver = PyodbcDriver(make_connection(error=error))

    with pytest.raises(OperationalError) as exc_info:
        driver.execute("SELECT * FROM missing")

    assert exc_info.value.__cause__ is error


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (pyodbc.IntegrityError("23000", "Violation of UNIQUE KEY constraint 'uq_name'"), UniqueViolationError),
        (pyodbc.IntegrityError("23000", "Violation of PRIMARY KEY constraint 'pk_users'"), UniqueViolationError),
        (pyodbc.IntegrityError("23000", "The INSERT statement conflicted with the FOREIGN KEY constraint"), ForeignKeyViolationError),
        (pyodbc.IntegrityError("23000", "Cannot insert the value NULL into column 'name'"), NotNullViolationError),
        (pyodbc.IntegrityError("23000", "The INSERT statement conflicted with the CHECK constraint"), CheckViolationError),
        (pyodbc.IntegrityError("23000", "Some other constraint"), IntegrityError),
        (pyodbc.OperationalError("08001", "TCP Provider: connection refused"), DatabaseConnectionError),
        (pyodbc.ProgrammingError("42S22", "Invalid column name 'x'"), OperationalError),
        (pyodbc.ProgrammingError("42000", "Incorrect syntax near 'FORM'"), SQLParsingError),
        (pyodbc.OperationalError("HYT00", "Query timeout expired"), OperationalError),
        (pyodbc.Error("HY000", "General error"), ExecutionError),
    ],
)
def test_create_mapped_exception(error: Exception, expected: type[ExecutionError]) -> None:
    mapped = create_mapped_exception(error)

    assert type(mapped) is expected
    assert mapped.__cause__ is error


def test_build_connection_string() -> None:
    connection_string = build_connection_string(
        {
            "driver": "{ODBC Driver 18 for SQL Server}",
            "server": "db,1433",
            "database": "shop",
            "user": "sa",
            "password": "p;w",
            "encrypt": True,
            "trust_server_certificate": False,
            "ApplicationIntent": "ReadOnly",
            "timeout": None,
        }
    )

    assert connection_string == (
        "DRIVER={ODBC Driver 18 for SQL Server};SERVER=db,1433;DATABASE=shop;UID=sa;PWD={p;w};"
        "Encrypt=yes;TrustServerCertificate=no;ApplicationIntent=ReadOnly"
    )


def test_config_builds_connection_string(monkeypatch: pytest.MonkeyPatch, make_connection: Any) -> None:
    calls: list[tuple[str, dict[str, Any]]] = []

    def connect(connection_string: str, **kwargs: Any) -> Any:
        calls.append((connection_string, kwargs))
        return make_connection()

    monkeypatch.setattr(pyodbc, "connect", connect)
    config = PyodbcConfig(
        connection_config={"server": "db", "database": "shop", "user": "sa", "password": "secret", "timeout": 5}
    )

    with config.provide_session() as driver:
        assert isinstance(driver, PyodbcDriver)
    config.close()

    assert calls == [
        (
            "SERVER=db;DATABASE=shop;UID=sa;PWD=secret;DRIVER={ODBC Driver 18 for SQL Server}",
            {"autocommit": True, "timeout": 5},
        )
    ]
    assert "secret" not in repr(config)


def test_config_prefers_explicit_connection_string(monkeypatch: pytest.MonkeyPatch, make_connection: Any) -> None:
    calls: list[str] = []

    def connect(connection_string: str, **kwargs: Any) -> Any:
        calls.append(connection_string)
        return make_connection()

    monkeypatch.setattr(pyodbc, "connect", connect)

    PyodbcConfig(connection_config={"connection_string": "DSN=shop;UID=sa;PWD=secret"}).create_connection()

    assert calls == ["DSN=shop;UID=sa;PWD=secret"]


def test_config_wraps_connection_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def connect(connection_string: str, **kwargs: Any) -> Any:
        raise pyodbc.InterfaceError("IM002", "Data source name not found")

    monkeypatch.setattr(pyodbc, "connect", connect)

    with pytest.raises(DatabaseConnectionError, match="IM002"):
        PyodbcConfig(connection_config={"server": "db"}).create_connection()
