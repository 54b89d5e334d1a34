"""psycopg adapter for fluentsql."""

from fluentsql.exceptions import MissingDependencyError

try:
    import psycopg  # noqa: F401
except ImportError as e:
    raise MissingDependencyError(package="psycopg", install_package="psycopg") from e

from fluentsql.adapters.psycopg.config import PsycopgConfig, PsycopgConnectionParams
from fluentsql.adapters.psycopg.driver import PsycopgConnection, PsycopgCursor, PsycopgDriver

__all__ = ("PsycopgConfig", "PsycopgConnection", "PsycopgConnectionParams", "PsycopgCursor", "PsycopgDriver")
