"""PyMySQL database configuration."""

from typing import TYPE_CHECKING, Any, ClassVar, Optional, TypedDict, Union, cast

import pymysql
from typing_extensions import NotRequired

from fluentsql.adapters.pymysql.driver import PyMySQLConnection, PyMySQLDriver
from fluentsql.config import NoPoolSyncConfig
from fluentsql.exceptions import DatabaseConnectionError

if TYPE_CHECKING:
    from fluentsql.mapping import TypeRegistry
    from fluentsql.notifications import ErrorNotificationConfig, ErrorNotifier

__all__ = ("PyMySQLConfig", "PyMySQLConnectionParams")


class PyMySQLConnectionParams(TypedDict, total=False):
    """PyMySQL connection parameters."""

    host: NotRequired[str]
    port: NotRequired[int]
    user: NotRequired[str]
    password: NotRequired[str]
    database: NotRequired[str]
    unix_socket: NotRequired[str]
    charset: NotRequired[str]
    connect_timeout: NotRequired[int]
    read_timeout: NotRequired[int]
    write_timeout: NotRequired[int]
    ssl: NotRequired["dict[str, Any]"]
    init_command: NotRequired[str]
    sql_mode: NotRequired[str]


class PyMySQLConfig(NoPoolSyncConfig[PyMySQLConnection, PyMySQLDriver]):
    """MySQL configuration on PyMySQL, in autocommit mode."""

    __slots__ = ()

    driver_type: "ClassVar[type[PyMySQLDriver]]" = PyMySQLDriver
    connection_type: "ClassVar[type[PyMySQLConnection]]" = PyMySQLConnection

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[PyMySQLConnectionParams, dict[str, Any]]]" = None,
        persistent: bool = True,
        debug: bool = False,
        suppress_errors: bool = False,
        error_notification: "Optional[ErrorNotificationConfig]" = None,
        notifier: "Optional[ErrorNotifier]" = None,
        type_registry: "Optional[TypeRegistry]" = None,
    ) -> None:
        connection_config = dict(connection_config or {})
        connection_config.setdefault("charset", "utf8mb4")
        super().__init__(
            connection_config=cast("dict[str, Any]", connection_config),
            persistent=persistent,
            debug=debug,
            suppress_errors=suppress_errors,
            error_notification=error_notification,
            notifier=notifier,
            type_registry=type_registry,
        )

    def create_connection(self) -> PyMySQLConnection:
        """Open a new autocommit connection.

        Raises:
            DatabaseConnectionError: If the server cannot be reached or rejects the login.
        """
        try:
            return pymysql.connect(**{**self.connection_config, "autocommit": True})
        except pymysql.MySQLError as e:
            msg = f"Could not connect to MySQL at {self.connection_config.get('host', 'localhost')!r}: {e}"
            raise DatabaseConnectionError(msg) from e
