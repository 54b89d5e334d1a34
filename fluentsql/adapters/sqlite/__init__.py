"""SQLite adapter for fluentsql."""

from fluentsql.adapters.sqlite.config import SqliteConfig, SqliteConnectionParams
from fluentsql.adapters.sqlite.driver import SqliteConnection, SqliteCursor, SqliteDriver

__all__ = ("SqliteConfig", "SqliteConnection", "SqliteConnectionParams", "SqliteCursor", "SqliteDriver")
