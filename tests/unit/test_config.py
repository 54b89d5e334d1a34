"""Tests for the configuration base class and the SQLite configuration."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any

import pytest

from fluentsql.adapters.sqlite import SqliteConfig, SqliteDriver
from fluentsql.config import NoPoolSyncConfig
from fluentsql.exceptions import DatabaseConnectionError
from fluentsql.mapping import TypeRegistry
from fluentsql.notifications import ErrorNotificationConfig, SMTPErrorNotifier


class RecordingConfig(NoPoolSyncConfig[Any, SqliteDriver]):
    """Configuration handing out fake connections."""

    __slots__ = ("_factory", "opened")

    driver_type = SqliteDriver
    connection_type = object

    def __init__(self, connection_factory: Any, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.opened: list[Any] = []
        self._factory = connection_factory

    def create_connection(self) -> Any:
        connection = self._factory()
        self.opened.append(connection)
        return connection


def test_persistent_config_reuses_one_connection(make_connection: Any) -> None:
    config = RecordingConfig(make_connection)

    with config.provide_connection() as first, config.provide_connection() as second:
        assert first is second
    with config.provide_session() as driver:
        assert driver.connection is first

    assert len(config.opened) == 1
    assert first.closed is False
    config.close()
    assert first.closed is True
    config.close()


def test_non_persistent_config_closes_each_connection(make_connection: Any) -> None:
    config = RecordingConfig(make_connection, persistent=False)

    with config.provide_connection() as first:
        assert first.closed is False
    with config.provide_connection() as second:
        pass

    assert first is not second
    assert first.closed is True
    assert second.closed is True


def test_non_persistent_connection_closed_on_error(make_connection: Any) -> None:
    config = RecordingConfig(make_connection, persistent=False)

    with pytest.raises(RuntimeError), config.provide_connection():
        raise RuntimeError("boom")

    assert config.opened[0].closed is True


def test_context_manager_closes(make_connection: Any) -> None:
    with RecordingConfig(make_connection) as config, config.provide_connection() as connection:
        pass

    assert connection.closed is True


def test_session_receives_driver_options(make_connection: Any) -> None:
    registry = TypeRegistry()
    notification = ErrorNotificationConfig(send_on_error=True, to_email="dba@example.com")
    config = RecordingConfig(
        make_connection, debug=True, suppress_errors=True, error_notification=notification, type_registry=registry
    )

    with config.provide_session() as driver:
        assert driver.debug is True
        assert driver.suppress_errors is True
        assert driver.type_registry is registry
        assert isinstance(driver.notifier, SMTPErrorNotifier)
        assert driver.query_builder().suppress_errors is True


def test_explicit_notifier_wins(make_connection: Any) -> None:
    class Notifier:
        def notify(self, message: str, last_query: str | None = None) -> bool:
            return True

    notifier = Notifier()
    config = RecordingConfig(
        make_connection,
        notifier=notifier,
        error_notification=ErrorNotificationConfig(send_on_error=True, to_email="dba@example.com"),
    )

    with config.provide_session() as driver:
        assert driver.notifier is notifier


def test_repr_hides_secrets(make_connection: Any) -> None:
    config = RecordingConfig(
        make_connection,
        connection_config={"host": "db", "password": "hunter2", "conninfo": "postgresql://u:hunter2@db/x"},
    )

    assert repr(config) == "RecordingConfig(host='db', persistent=True)"


class TestSqliteConfig:
    def test_defaults_to_memory(self) -> None:
        assert SqliteConfig().connection_config == {"database": ":memory:"}

    def test_file_uri_enables_uri_mode(self) -> None:
        config = SqliteConfig(connection_config={"database": "file:memdb1?mode=memory&cache=shared"})

        assert config.connection_config["uri"] is True

    def test_connection_is_autocommit(self, tmp_path: Path) -> None:
        database = tmp_path / "app.db"
        config = SqliteConfig(connection_config={"database": str(database)})
        with config.provide_session() as driver:
            driver.create_table("notes", {"id": "INTEGER PRIMARY KEY", "body": "TEXT"})
            driver.insert("notes", {"body": "hello"})
            assert driver.connection.isolation_level is None
        config.close()

        with sqlite3.connect(database) as connection:
            rows = connection.execute("SELECT body FROM notes").fetchall()
        connection.close()

        assert rows == [("hello",)]

    def test_unopenable_database(self, tmp_path: Path) -> None:
        config = SqliteConfig(connection_config={"database": str(tmp_path / "missing" / "app.db")})

        with pytest.raises(DatabaseConnectionError, match="app.db"):
            config.create_connection()

    def test_non_persistent_file_database(self, tmp_path: Path) -> None:
        config = SqliteConfig(connection_config={"database": str(tmp_path / "app.db")}, persistent=False)

        with config.provide_session() as driver:
            driver.create_table("notes", {"id": "INTEGER PRIMARY KEY"})
        with config.provide_session() as driver:
            assert driver.table_exists("notes") is True
