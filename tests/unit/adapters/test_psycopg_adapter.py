"""psycopg adapter tests against a recording DB-API double."""

from __future__ import annotations

from typing import Any

import pytest

psycopg = pytest.importorskip("psycopg")

from psycopg import errors as pg_errors  # noqa: E402

from fluentsql.adapters.psycopg import PsycopgConfig, PsycopgDriver  # noqa: E402
from fluentsql.adapters.psycopg.core import create_mapped_exception  # noqa: E402
from fluentsql.exceptions import (  # noqa: E402
    CheckViolationError,
    DatabaseConnectionError,
    ExecutionError,
    ForeignKeyViolationError,
    NotNullViolationError,
    OperationalError,
    SQLParsingError,
    UniqueViolationError,
)


def test_insert_reads_id_with_lastval(fake_connection: Any) -> None:
    driver = PsycopgDriver(fake_connection)

    new_id = driver.insert("users", {"name": "Ada", "profile": {"lang": "en"}})

    assert new_id == 42
    assert fake_connection.statements == [
        (
            'INSERT INTO "users" ("name", "profile") VALUES (%(name_0)s, %(profile_1)s)',
            {"name_0": "Ada", "profile_1": '{"lang":"en"}'},
        ),
        ("SELECT lastval()", None),
    ]


def test_last_insert_id_with_sequence_name(fake_connection: Any) -> None:
    driver = PsycopgDriver(fake_connection)

    assert driver.last_insert_id("users_id_seq") == 42
    assert fake_connection.statements[-1] == ("SELECT currval(%s)", ("users_id_seq",))


def test_last_insert_id_before_any_insert(make_connection: Any) -> None:
    connection = make_connection(error=pg_errors.ObjectNotInPrerequisiteState("lastval is not yet defined in this session"))

    assert PsycopgDriver(connection).last_insert_id() is None


def test_builder_quotes_every_identifier(fake_connection: Any) -> None:
    driver = PsycopgDriver(fake_connection)

    driver.select("u.id", "u.name").from_("users", "u").where_in("u.id", [1, 2]).order_by("u.name").limit(10).get()

    sql, parameters = fake_connection.statements[-1]
    assert sql == (
        'SELECT "u"."id", "u"."name" FROM "users" AS "u" WHERE "u"."id" IN (%(where_in_0_0)s, %(where_in_0_1)s) '
        'ORDER BY "u"."name" ASC LIMIT 10'
    )
    assert parameters == {"where_in_0_0": 1, "where_in_0_1": 2}


def test_casts_survive_conversion(fake_connection: Any) -> None:
    PsycopgDriver(fake_connection).execute("SELECT :value::jsonb ->> 'a'", {"value": {"a": 1}})

    assert fake_connection.statements[-1] == ("SELECT %(value)s::jsonb ->> 'a'", {"value": '{"a":1}'})


def test_truncate_uses_truncate_table(fake_connection: Any) -> None:
    assert PsycopgDriver(fake_connection).truncate("users") is True
    assert fake_connection.statements[-1] == ('TRUNCATE TABLE "users"', {})


def test_driver_errors_are_mapped(make_connection: Any) -> None:
    connection = make_connection(error=pg_errors.UndefinedTable('relation "missing" does not exist'))
    driver = PsycopgDriver(connection)

    with pytest.raises(OperationalError, match="42P01"):
        driver.select().from_("missing").get()


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (pg_errors.UniqueViolation("duplicate key value"), UniqueViolationError),
        (pg_errors.ForeignKeyViolation("violates foreign key constraint"), ForeignKeyViolationError),
        (pg_errors.NotNullViolation("null value in column"), NotNullViolationError),
        (pg_errors.CheckViolation("violates check constraint"), CheckViolationError),
        (pg_errors.SyntaxError("syntax error at or near"), SQLParsingError),
        (pg_errors.UndefinedColumn("column does not exist"), OperationalError),
        (pg_errors.InsufficientPrivilege("permission denied"), SQLParsingError),
        (pg_errors.ConnectionException("connection lost"), DatabaseConnectionError),
        (pg_errors.SerializationFailure("could not serialize access"), OperationalError),
        (pg_errors.InvalidTextRepresentation("invalid input syntax for type integer"), ExecutionError),
        (psycopg.OperationalError("server closed the connection"), OperationalError),
        (psycopg.Error("boom"), ExecutionError),
    ],
)
def test_create_mapped_exception(error: Exception, expected: type[ExecutionError]) -> None:
    mapped = create_mapped_exception(error)

    assert type(mapped) is expected
    assert mapped.__cause__ is error


def test_config_passes_conninfo_positionally(monkeypatch: pytest.MonkeyPatch, make_connection: Any) -> None:
    calls: list[tuple[str, dict[str, Any]]] = []

    def connect(conninfo: str = "", **kwargs: Any) -> Any:
        calls.append((conninfo, kwargs))
        return make_connection()

    monkeypatch.setattr(psycopg, "connect", connect)
    config = PsycopgConfig(connection_config={"conninfo": "postgresql://app:secret@db/shop", "application_name": "api"})

    with config.provide_session() as driver:
        assert isinstance(driver, PsycopgDriver)
    config.close()

    assert calls == [("postgresql://app:secret@db/shop", {"application_name": "api", "autocommit": True})]
    assert "secret" not in repr(config)


def test_config_wraps_connection_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    def connect(conninfo: str = "", **kwargs: Any) -> Any:
        raise psycopg.OperationalError("connection refused")

    monkeypatch.setattr(psycopg, "connect", connect)

    with pytest.raises(DatabaseConnectionError, match="connection refused"):
        PsycopgConfig(connection_config={"host": "db"}).create_connection()
