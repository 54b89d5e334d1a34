"""psycopg database configuration."""

from typing import TYPE_CHECKING, Any, ClassVar, Optional, TypedDict, Union, cast

import psycopg
from typing_extensions import NotRequired

from fluentsql.adapters.psycopg.driver import PsycopgConnection, PsycopgDriver
from fluentsql.config import NoPoolSyncConfig
from fluentsql.exceptions import DatabaseConnectionError

if TYPE_CHECKING:
    from fluentsql.mapping import TypeRegistry
    from fluentsql.notifications import ErrorNotificationConfig, ErrorNotifier

__all__ = ("PsycopgConfig", "PsycopgConnectionParams")


class PsycopgConnectionParams(TypedDict, total=False):
    """psycopg connection parameters."""

    conninfo: NotRequired[str]
    """Connection string (``postgresql://...`` or ``key=value`` pairs)."""
    host: NotRequired[str]
    port: NotRequired[int]
    user: NotRequired[str]
    password: NotRequired[str]
    dbname: NotRequired[str]
    connect_timeout: NotRequired[int]
    options: NotRequired[str]
    application_name: NotRequired[str]
    sslmode: NotRequired[str]


class PsycopgConfig(NoPoolSyncConfig["PsycopgConnection[Any]", PsycopgDriver]):
    """PostgreSQL configuration on psycopg 3, in autocommit mode."""

    __slots__ = ()

    driver_type: "ClassVar[type[PsycopgDriver]]" = PsycopgDriver
    connection_type: "ClassVar[type[PsycopgConnection[Any]]]" = PsycopgConnection

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[PsycopgConnectionParams, dict[str, Any]]]" = None,
        persistent: bool = True,
        debug: bool = False,
        suppress_errors: bool = False,
        error_notification: "Optional[ErrorNotificationConfig]" = None,
        notifier: "Optional[ErrorNotifier]" = None,
        type_registry: "Optional[TypeRegistry]" = None,
    ) -> None:
        super().__init__(
            connection_config=cast("Optional[dict[str, Any]]", connection_config),
            persistent=persistent,
            debug=debug,
            suppress_errors=suppress_errors,
            error_notification=error_notification,
            notifier=notifier,
            type_registry=type_registry,
        )

    def create_connection(self) -> "PsycopgConnection[Any]":
        """Open a new autocommit connection.

        Raises:
            DatabaseConnectionError: If the server cannot be reached or rejects the login.
        """
        params = dict(self.connection_config)
        conninfo = params.pop("conninfo", "")
        params["autocommit"] = True
        try:
            return psycopg.connect(conninfo, **params)
        except psycopg.Error as e:
            msg = f"Could not connect to PostgreSQL: {e}"
            raise DatabaseConnectionError(msg) from e
