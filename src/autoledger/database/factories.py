"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from autoledger.database.sqlalchemy_db import SQLAlchemyDatabase

DB_PATH_ENVVAR = "AUTOLEDGER_DB_PATH"
DEFAULT_DATABASE_PATH = Path.home() / ".autoledger" / "autoledger.db"


def resolve_database_path(database_path: Optional[str] = None) -> Path:
    """Pick the ledger file: explicit path, then the environment, then the default.

    A leading ``~`` is expanded and the parent directory is created, so a
    fresh path can be used straight away.
    """
    path = Path(database_path or os.environ.get(DB_PATH_ENVVAR) or DEFAULT_DATABASE_PATH)
    path = path.expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to the ledger file. If None, AUTOLEDGER_DB_PATH is
            used, then ~/.autoledger/autoledger.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    return SQLAlchemyDatabase(f"sqlite:///{resolve_database_path(database_path)}")
