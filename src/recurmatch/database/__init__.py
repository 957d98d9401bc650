"""Database layer for recurmatch application."""

from recurmatch.database.base import Database
from recurmatch.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
