"""pyodbc database configuration."""

from typing import TYPE_CHECKING, Any, ClassVar, Optional, TypedDict, Union, cast

import pyodbc
from typing_extensions import NotRequired

from fluentsql.adapters.pyodbc.core import build_connection_string
from fluentsql.adapters.pyodbc.driver import PyodbcConnection, PyodbcDriver
from fluentsql.config import NoPoolSyncConfig
from fluentsql.exceptions import DatabaseConnectionError

if TYPE_CHECKING:
    from fluentsql.mapping import TypeRegistry
    from fluentsql.notifications import ErrorNotificationConfig, ErrorNotifier

__all__ = ("PyodbcConfig", "PyodbcConnectionParams")


class PyodbcConnectionParams(TypedDict, total=False):
    """pyodbc connection parameters.

    ``connection_string`` is used as given; otherwise the remaining keys are
    assembled into one.
    """

    connection_string: NotRequired[str]
    driver: NotRequired[str]
    server: NotRequired[str]
    database: NotRequired[str]
    user: NotRequired[str]
    password: NotRequired[str]
    trusted_connection: NotRequired[bool]
    encrypt: NotRequired[bool]
    trust_server_certificate: NotRequired[bool]
    timeout: NotRequired[int]


class PyodbcConfig(NoPoolSyncConfig[PyodbcConnection, PyodbcDriver]):
    """SQL Server configuration on pyodbc, in autocommit mode."""

    __slots__ = ()

    driver_type: "ClassVar[type[PyodbcDriver]]" = PyodbcDriver
    connection_type: "ClassVar[type[PyodbcConnection]]" = PyodbcConnection

    def __init__(
        self,
        *,
        connection_config: "Optional[Union[PyodbcConnectionParams, dict[str, Any]]]" = None,
        persistent: bool = True,
        debug: bool = False,
        suppress_errors: bool = False,
        error_notification: "Optional[ErrorNotificationConfig]" = None,
        notifier: "Optional[ErrorNotifier]" = None,
        type_registry: "Optional[TypeRegistry]" = None,
    ) -> None:
        connection_config = dict(connection_config or {})
        if "connection_string" not in connection_config:
            connection_config.setdefault("driver", "{ODBC Driver 18 for SQL Server}")
        super().__init__(
            connection_config=cast("dict[str, Any]", connection_config),
            persistent=persistent,
            debug=debug,
            suppress_errors=suppress_errors,
            error_notification=error_notification,
            notifier=notifier,
            type_registry=type_registry,
        )

    def create_connection(self) -> PyodbcConnection:
        """Open a new autocommit connection.

        Raises:
            DatabaseConnectionError: If the ODBC driver cannot connect.
        """
        params = dict(self.connection_config)
        timeout = params.pop("timeout", 0)
        connection_string = params.pop("connection_string", None) or build_connection_string(params)
        try:
            return pyodbc.connect(connection_string, autocommit=True, timeout=timeout)
        except pyodbc.Error as e:
            msg = f"Could not connect through ODBC: {e}"
            raise DatabaseConnectionError(msg) from e
