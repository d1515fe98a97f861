"""Database layer for autoledger."""

from autoledger.database.base import Database
from autoledger.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
