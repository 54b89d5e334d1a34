"""Database adapters.

Each adapter lives in its own subpackage and is imported explicitly
(``from fluentsql.adapters.sqlite import SqliteConfig``) so only the DB-API
module actually used has to be installed.
"""
