from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Optional, TypeVar

from fluentsql.utils.logging import correlation_context, get_logger

if TYPE_CHECKING:
    from collections.abc import Generator

    from fluentsql.driver import SyncDriverAdapterBase
    from fluentsql.mapping import TypeRegistry
    from fluentsql.notifications import ErrorNotificationConfig, ErrorNotifier


__all__ = ("ConnectionT", "DatabaseConfigProtocol", "DriverT", "NoPoolSyncConfig", "SyncConfigT")

ConnectionT = TypeVar("ConnectionT")
DriverT = TypeVar("DriverT", bound="SyncDriverAdapterBase")
SyncConfigT = TypeVar("SyncConfigT", bound="NoPoolSyncConfig[Any, Any]")

logger = get_logger("config")


class DatabaseConfigProtocol(ABC, Generic[ConnectionT, DriverT]):
    """Protocol defining the interface for database configurations."""

    __slots__ = ()
    driver_type: "ClassVar[type[Any]]"
    connection_type: "ClassVar[type[Any]]"

    @abstractmethod
    def create_connection(self) -> ConnectionT:
        """Create and return a new database connection."""
        raise NotImplementedError

    @abstractmethod
    def provide_connection(self, *args: Any, **kwargs: Any) -> "Generator[ConnectionT, None, None]":
        """Provide a database connection context manager."""
        raise NotImplementedError

    @abstractmethod
    def provide_session(self, *args: Any, **kwargs: Any) -> "Generator[DriverT, None, None]":
        """Provide a database session context manager."""
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Release every connection held by the configuration."""
        raise NotImplementedError


class NoPoolSyncConfig(DatabaseConfigProtocol[ConnectionT, DriverT]):
    """Base class for sync database configurations that do not implement a pool.

    With ``persistent=True`` (the default) the first connection is kept open
    and handed to every later session until :meth:`close` is called; otherwise
    each :meth:`provide_connection` opens a connection and closes it on exit.
    """

    __slots__ = (
        "_connection",
        "connection_config",
        "debug",
        "error_notification",
        "notifier",
        "persistent",
        "suppress_errors",
        "type_registry",
    )

    def __init__(
        self,
        *,
        connection_config: "Optional[dict[str, Any]]" = None,
        persistent: bool = True,
        debug: bool = False,
        suppress_errors: bool = False,
        error_notification: "Optional[ErrorNotificationConfig]" = None,
        notifier: "Optional[ErrorNotifier]" = None,
        type_registry: "Optional[TypeRegistry]" = None,
    ) -> None:
        """Initialize the configuration.

        Args:
            connection_config: Keyword arguments for the DB-API ``connect`` call.
            persistent: Keep one connection open across sessions.
            debug: Passed to drivers; log tracebacks of failed statements.
            suppress_errors: Passed to drivers; see :class:`~fluentsql.driver.SyncDriverAdapterBase`.
            error_notification: E-mail settings for failed statements.
            notifier: Custom notifier, takes precedence over ``error_notification``.
            type_registry: Result types available to ``select_as``.
        """
        self.connection_config: "dict[str, Any]" = dict(connection_config or {})
        self.persistent = persistent
        self.debug = debug
        self.suppress_errors = suppress_errors
        self.error_notification = error_notification
        self.notifier = notifier
        self.type_registry = type_registry
        self._connection: Optional[ConnectionT] = None

    def __repr__(self) -> str:
        parts = ", ".join(
            f"{key}={value!r}"
            for key, value in self.connection_config.items()
            if key not in {"password", "passwd", "pwd", "conninfo", "connection_string"}
        )
        return f"{type(self).__name__}({parts}, persistent={self.persistent!r})"

    def __enter__(self: "SyncConfigT") -> "SyncConfigT":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _close_connection(self, connection: ConnectionT) -> None:
        connection.close()  # type: ignore[attr-defined]

    @contextmanager
    def provide_connection(self, *args: Any, **kwargs: Any) -> "Generator[ConnectionT, None, None]":
        """Provide a connection, reusing the persistent one when enabled.

        Yields:
            An open DB-API connection.
        """
        if self.persistent:
            if self._connection is None:
                self._connection = self.create_connection()
                logger.debug("Opened persistent connection for %s", type(self).__name__)
            yield self._connection
            return
        connection = self.create_connection()
        try:
            yield connection
        finally:
            self._close_connection(connection)

    @contextmanager
    def provide_session(self, *args: Any, **kwargs: Any) -> "Generator[DriverT, None, None]":
        """Provide a driver bound to a connection from :meth:`provide_connection`.

        Statements logged during the session carry a correlation id: the
        caller's when one is set, otherwise one generated for the session.

        Yields:
            A driver instance.
        """
        with correlation_context(), self.provide_connection(*args, **kwargs) as connection:
            yield self.create_driver(connection)

    def create_driver(self, connection: ConnectionT) -> DriverT:
        """Create a driver for ``connection`` with this configuration's options."""
        return self.driver_type(  # type: ignore[no-any-return]
            connection,
            debug=self.debug,
            suppress_errors=self.suppress_errors,
            error_notification=self.error_notification,
            notifier=self.notifier,
            type_registry=self.type_registry,
        )

    def close(self) -> None:
        """Close the persistent connection, if one is open."""
        if self._connection is not None:
            connection, self._connection = self._connection, None
            self._close_connection(connection)
            logger.debug("Closed persistent connection for %s", type(self).__name__)
