"""pyodbc (SQL Server) adapter for fluentsql."""

from fluentsql.exceptions import MissingDependencyError

try:
    import pyodbc  # noqa: F401
except ImportError as e:
    raise MissingDependencyError(package="pyodbc", install_package="pyodbc") from e

from fluentsql.adapters.pyodbc.config import PyodbcConfig, PyodbcConnectionParams
from fluentsql.adapters.pyodbc.driver import PyodbcConnection, PyodbcCursor, PyodbcDriver

__all__ = ("PyodbcConfig", "PyodbcConnection", "PyodbcConnectionParams", "PyodbcCursor", "PyodbcDriver")
