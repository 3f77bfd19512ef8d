"""SQLite database for the persistent analysis cache and cost ledger.

Handles connection lifecycle, schema creation, and migrations.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_SCHEMA_V1 = """
-- One row per cached AI analysis (persistent layer)
CREATE TABLE IF NOT EXISTS analysis_cache (
    cache_key    TEXT PRIMARY KEY,
    context_json TEXT NOT NULL,
    payload_enc  TEXT NOT NULL,
    user_id      TEXT NOT NULL DEFAULT '',
    created_at   REAL NOT NULL,
    expires_at   REAL NOT NULL
);

-- Estimated AI spend per user per UTC date
CREATE TABLE IF NOT EXISTS cost_records (
    user_id       TEXT NOT NULL,
    usage_date    TEXT NOT NULL,
    total_cost    REAL NOT NULL DEFAULT 0,
    request_count INTEGER NOT NULL DEFAULT 0,
    updated_at    TEXT NOT NULL DEFAULT (datetime('now')),
    PRIMARY KEY (user_id, usage_date)
);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_cache_expires ON analysis_cache(expires_at);
CREATE INDEX IF NOT EXISTS idx_cost_date     ON cost_records(usage_date);
"""


class DatabaseError(Exception):
    """Raised when database operations fail."""


class CacheDatabase:
    """SQLite manager for cached analyses and cost records.

    ``:memory:`` gives a throwaway database for tests.
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """The active connection.

        Raises:
            DatabaseError: If the database has not been initialized.
        """
        if self._conn is None:
            raise DatabaseError("Database not initialized. Call initialize() first.")
        return self._conn

    def initialize(self) -> None:
        """Open the connection and ensure the schema exists. Idempotent."""
        if self._conn is not None:
            return

        if self._db_path != ":memory:":
            db_file = Path(self._db_path).expanduser()
            db_file.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(db_file))
            self._conn.execute("PRAGMA journal_mode=WAL")
        else:
            self._conn = sqlite3.connect(":memory:")

        self._conn.row_factory = sqlite3.Row
        self._ensure_schema()
        logger.info("Cache database initialized: %s", self._db_path)

    def _ensure_schema(self) -> None:
        conn = self.connection
        conn.executescript(_SCHEMA_V1)

        current_version = self.get_schema_version()
        if current_version < SCHEMA_VERSION:
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))
            conn.commit()
            logger.info("Schema updated from version %d to %d", current_version, SCHEMA_VERSION)

    def get_schema_version(self) -> int:
        row = self.connection.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] if row[0] is not None else 0

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Cache database closed")

    def __enter__(self) -> CacheDatabase:
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()
