"""
Database connection management.

Provides SQLite connections for the cache and project tables.
"""

import os
import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = "volcano.db"


def default_db_path() -> str:
    """Database path from VOLCANO_DB_PATH, falling back to ./volcano.db."""
    return os.environ.get("VOLCANO_DB_PATH") or DEFAULT_DB_PATH


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Create and return a SQLite connection in WAL journal mode.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLite connection
    """
    path = Path(db_path)
    conn = sqlite3.connect(str(path))
    conn.execute("PRAGMA journal_mode = WAL")
    return conn
