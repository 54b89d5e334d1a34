from __future__ import annotations

from collections.abc import Generator
from typing import Any

import pytest

from fluentsql.adapters.sqlite import SqliteConfig, SqliteDriver
from fluentsql.exceptions import ExecutionError
from fluentsql.result import SQLResult


USERS_DDL = (
    "CREATE TABLE users ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT, "
    "name TEXT NOT NULL UNIQUE, "
    "email TEXT, "
    "age INTEGER, "
    "tags TEXT)"
)

USERS = [
    {"name": "Ada", "email": "ada@example.com", "age": 36, "tags": "admin,staff"},
    {"name": "Grace", "email": "grace@example.com", "age": 45, "tags": "staff"},
    {"name": "Linus", "email": None, "age": 28, "tags": None},
]


class RecordingExecutor:
    """Execution collaborator double that records every call."""

    def __init__(self, rows: list[dict[str, Any]] | None = None, error: Exception | None = None) -> None:
        self.rows = rows or []
        self.error = error
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @property
    def last_sql(self) -> str:
        return self.calls[-1][0]

    @property
    def last_parameters(self) -> dict[str, Any]:
        return self.calls[-1][1]

    def execute(self, sql: str, parameters: Any = None) -> SQLResult:
        self.calls.append((sql, dict(parameters or {})))
        if self.error is not None:
            raise self.error
        columns = list(self.rows[0]) if self.rows else []
        return SQLResult(statement=sql, data=list(self.rows), column_names=columns, operation_type="SELECT")


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor(rows=[{"id": 1, "name": "Ada"}, {"id": 2, "name": "Grace"}])


@pytest.fixture
def failing_executor() -> RecordingExecutor:
    return RecordingExecutor(error=ExecutionError("no such table: missing"))


@pytest.fixture
def sqlite_config() -> Generator[SqliteConfig, None, None]:
    config = SqliteConfig()
    yield config
    config.close()


@pytest.fixture
def sqlite_driver(sqlite_config: SqliteConfig) -> Generator[SqliteDriver, None, None]:
    """In-memory SQLite session with a populated ``users`` table."""
    with sqlite_config.provide_session() as driver:
        driver.execute(USERS_DDL)
        for user in USERS:
            driver.insert("users", user)
        yield driver


@pytest.fixture
def make_executor() -> type[RecordingExecutor]:
    return RecordingExecutor


class FakeCursor:
    """DB-API cursor double recording statements; ``fetchone`` answers id lookups."""

    def __init__(self, connection: FakeConnection) -> None:
        self.connection = connection
        self.description: Any = None
        self.rowcount = -1
        self.lastrowid = connection.lastrowid
        self.closed = False

    def execute(self, sql: str, parameters: Any = None) -> None:
        self.connection.statements.append((sql, parameters))
        if self.connection.error is not None:
            raise self.connection.error
        self.rowcount = 1

    def executemany(self, sql: str, parameter_sets: Any) -> None:
        self.connection.statements.append((sql, list(parameter_sets)))
        self.rowcount = len(parameter_sets)

    def fetchall(self) -> list[Any]:
        return []

    def fetchone(self) -> Any:
        return (self.connection.identity,)

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    def __init__(self, lastrowid: Any = None, identity: Any = 42, error: Exception | None = None) -> None:
        self.lastrowid = lastrowid
        self.identity = identity
        self.error = error
        self.statements: list[tuple[str, Any]] = []
        self.cursors: list[FakeCursor] = []
        self.closed = False

    def cursor(self) -> FakeCursor:
        cursor = FakeCursor(self)
        self.cursors.append(cursor)
        return cursor

    def insert_id(self) -> Any:
        return self.identity

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def make_connection() -> type[FakeConnection]:
    return FakeConnection
