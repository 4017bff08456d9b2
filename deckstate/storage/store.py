"""
SQLite key/value storage for persisted deck state.

This module provides a small local-storage style store: string keys mapped to
string values in a single SQLite table. It holds one writer at a time and
makes no attempt at cross-process coordination.
"""

import sqlite3
from pathlib import Path
from typing import Optional, Union

SCHEMA_SQL = """
-- Key/value pairs written by the persistence gateway
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);
"""


class SQLiteKeyValueStore:
    """
    Store and retrieve string values by key in SQLite.

    Errors from SQLite propagate to the caller; the persistence gateway is
    responsible for turning them into silent failures.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """
        Initialize the key/value store.

        Args:
            db_path: Optional path to the database file. If None, an in-memory
                database is used.
        """
        self.db_path = str(db_path) if db_path else ":memory:"
        self.conn = sqlite3.connect(self.db_path)
        self.initialize_database()

    def _cursor(self) -> sqlite3.Cursor:
        if self.conn is None:
            raise sqlite3.ProgrammingError("Cannot operate on a closed store")
        return self.conn.cursor()

    def initialize_database(self) -> None:
        """Create the key/value table if it doesn't already exist."""
        cursor = self._cursor()
        cursor.executescript(SCHEMA_SQL)
        self.conn.commit()

    def get_item(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: The key to read

        Returns:
            The stored string, or None if the key is absent
        """
        cursor = self._cursor()
        cursor.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        """
        Write a value under a key, replacing any previous value.

        Args:
            key: The key to write
            value: The string to store
        """
        cursor = self._cursor()
        cursor.execute(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (key, value),
        )
        self.conn.commit()

    def remove_item(self, key: str) -> None:
        cursor = self._cursor()
        cursor.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self.conn.commit()

    def clear(self) -> None:
        cursor = self._cursor()
        cursor.execute("DELETE FROM kv_store")
        self.conn.commit()

    def close(self) -> None:
        """Close the database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None
