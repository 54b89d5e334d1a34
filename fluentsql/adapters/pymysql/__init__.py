"""PyMySQL adapter for fluentsql."""

from fluentsql.exceptions import MissingDependencyError

try:
    import pymysql  # noqa: F401
except ImportError as e:
    raise MissingDependencyError(package="pymysql", install_package="pymysql") from e

from fluentsql.adapters.pymysql.config import PyMySQLConfig, PyMySQLConnectionParams
from fluentsql.adapters.pymysql.driver import PyMySQLConnection, PyMySQLCursor, PyMySQLDriver

__all__ = ("PyMySQLConfig", "PyMySQLConnection", "PyMySQLConnectionParams", "PyMySQLCursor", "PyMySQLDriver")
