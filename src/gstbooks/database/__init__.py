"""Database layer for gstbooks application."""

from gstbooks.database.base import Database
from gstbooks.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
