"""SQLite database manager — connection, schema creation, and initialization.

Creates 2 tables on first run: designs, app_settings.
"""

import sqlite3
from pathlib import Path

from playset.constants import DB_FILENAME

_SCHEMA_SQL = """
-- Saved designs, one JSON snapshot per row
CREATE TABLE IF NOT EXISTS designs (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    name TEXT NOT NULL,
    design_json TEXT NOT NULL,
    instance_count INTEGER NOT NULL DEFAULT 0,
    total_price REAL NOT NULL DEFAULT 0,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_designs_owner ON designs (owner_id, updated_at);

-- Application settings (pricing / validation overrides)
CREATE TABLE IF NOT EXISTS app_settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""

EXPECTED_TABLES = [
    "app_settings",
    "designs",
]


class DatabaseManager:
    """Manages SQLite database connection and schema lifecycle.

    The connection may be used from persistence worker threads; callers
    serialize access (see DesignRepository).
    """

    def __init__(self, db_path: Path | str | None = None):
        if db_path is None:
            db_path = Path.cwd() / DB_FILENAME
        self._db_path = Path(db_path)
        self._conn: sqlite3.Connection | None = None

    @property
    def db_path(self) -> Path:
        return self._db_path

    def connect(self) -> sqlite3.Connection:
        """Open (or return existing) database connection."""
        if self._conn is None:
            self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            self._conn.execute("PRAGMA journal_mode=WAL")
        return self._conn

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def initialize_database(self) -> None:
        """Create all tables if they don't exist."""
        conn = self.connect()
        conn.executescript(_SCHEMA_SQL)
        conn.commit()

    def get_tables(self) -> list[str]:
        """Return list of table names in the database."""
        conn = self.connect()
        cursor = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
        )
        return [row[0] for row in cursor.fetchall()]

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
