"""SQLite preferences adapter.

Implements the core PreferencesPort using a simple SQLite database so the
chosen language and UI flags survive restarts.
"""

from __future__ import annotations

import os
import sqlite3
from datetime import datetime, timezone
from typing import Optional


class SQLitePreferences:
    """Thin SQLite wrapper that satisfies the PreferencesPort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the preferences table if it does not exist.

        Fields:
        - key: preference name (PRIMARY KEY)
        - value: string value; booleans are stored as "true"/"false"
        - updated_at: timestamp of the last write, for debugging
        """

        directory = os.path.dirname(self._db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS preferences (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )

    def get(self, key: str) -> Optional[str]:
        """Return the stored value for a key, if any."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM preferences WHERE key = ?",
                (key,),
            ).fetchone()
        return str(row["value"]) if row else None

    def set(self, key: str, value: str) -> None:
        """Upsert a preference value."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO preferences (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value, now.isoformat()),
            )
