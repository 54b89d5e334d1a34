"""SQLite database configuration."""

import sqlite3
from typing import TYPE_CHECKING, Any, ClassVar, Optional, TypedDict, Union, cast

from typing_extensions import NotRequired

from fluentsql.adapters.sqlite.driver import SqliteConnection, SqliteDriver
from fluentsql.config import NoPoolSyncConfig
from fluentsql.exceptions import DatabaseConnectionError
from fluentsql.utils.logging import get_logger

if TYPE_CHECKING:
    from fluentsql.mapping import TypeRegistry
    from fluentsql.notifications import ErrorNotificationConfig, ErrorNotifier

__all__ = ("SqliteConfig", "SqliteConnectionParams")

logger = get_logger("adapters.sqlite")


class SqliteConnectionParams(TypedDict, total=False):
    """SQLite connection parameters."""

    database: NotRequired[str]
    timeout: NotRequired[float]
    detect_types: NotRequired[int]
    check_same_thread: NotRequired[bool]
    cached_statements: NotRequired[int]
    uri: NotRequired[bool]


class SqliteConfig(NoPoolSyncConfig[SqliteConnection, SqliteDriver]):
    """SQLite configuration.

    Connections run in autocommit mode (``isolation_level=None``) so every
    statement is committed as soon as it completes. An in-memory database
    lives as long as its connection, so keep ``persistent=True`` for
    ``:memory:``.
    """

    __slots__ = ()

    driver_type: "ClassVar[type[SqliteDriver]]" = SqliteDriver
    connection_type: "ClassVar[type[SqliteConnection]]" = SqliteConnection

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[SqliteConnectionParams, dict[str, Any]]]" = None,
        persistent: bool = True,
        debug: bool = False,
        suppress_errors: bool = False,
        error_notification: "Optional[ErrorNotificationConfig]" = None,
        notifier: "Optional[ErrorNotifier]" = None,
        type_registry: "Optional[TypeRegistry]" = None,
    ) -> None:
        connection_config = dict(connection_config or {})
        connection_config.setdefault("database", ":memory:")
        database = str(connection_config["database"])
        if database.startswith("file:") and not connection_config.get("uri"):
            logger.debug("Database URI detected (%s), enabling uri mode", database)
            connection_config["uri"] = True
        super().__init__(
            connection_config=cast("dict[str, Any]", connection_config),
            persistent=persistent,
            debug=debug,
            suppress_errors=suppress_errors,
            error_notification=error_notification,
            notifier=notifier,
            type_registry=type_registry,
        )

    def create_connection(self) -> SqliteConnection:
        """Open a new autocommit connection.

        Raises:
            DatabaseConnectionError: If the database file cannot be opened.
        """
        try:
            return sqlite3.connect(**{**self.connection_config, "isolation_level": None})
        except sqlite3.Error as e:
            msg = f"Could not open SQLite database {self.connection_config['database']!r}: {e}"
            raise DatabaseConnectionError(msg) from e
