"""Tests for CacheDatabase — schema creation, versioning, lifecycle."""

from __future__ import annotations

import pytest

from tempo.core.storage.database import SCHEMA_VERSION, CacheDatabase, DatabaseError


class TestInitialization:
    def test_in_memory_initialize(self):
        db = CacheDatabase(":memory:")
        db.initialize()
        assert db.connection is not None
        db.close()

    def test_double_initialize_is_idempotent(self):
        db = CacheDatabase(":memory:")
        db.initialize()
        conn1 = db.connection
        db.initialize()
        assert db.connection is conn1
        db.close()

    def test_connection_before_init_raises(self):
        db = CacheDatabase(":memory:")
        with pytest.raises(DatabaseError, match="not initialized"):
            _ = db.connection

    def test_context_manager(self):
        with CacheDatabase(":memory:") as db:
            assert db.connection is not None
        with pytest.raises(DatabaseError):
            _ = db.connection


class TestSchema:
    def test_schema_version_recorded(self):
        with CacheDatabase(":memory:") as db:
            assert db.get_schema_version() == SCHEMA_VERSION

    def test_tables_created(self):
        with CacheDatabase(":memory:") as db:
            cursor = db.connection.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            tables = {row[0] for row in cursor.fetchall()}
        assert {"analysis_cache", "cost_records", "schema_version"} <= tables

    def test_indexes_created(self):
        with CacheDatabase(":memory:") as db:
            cursor = db.connection.execute("SELECT name FROM sqlite_master WHERE type='index'")
            indexes = {row[0] for row in cursor.fetchall()}
        assert {"idx_cache_expires", "idx_cost_date"} <= indexes


class TestFileDatabase:
    def test_creates_parent_directories(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "cache.db"
        db = CacheDatabase(str(db_path))
        db.initialize()
        assert db_path.exists()
        assert db.get_schema_version() == SCHEMA_VERSION
        db.close()

    def test_wal_mode_for_files(self, tmp_path):
        with CacheDatabase(str(tmp_path / "cache.db")) as db:
            mode = db.connection.execute("PRAGMA journal_mode").fetchone()[0].lower()
        assert mode == "wal"

    def test_reopen_keeps_single_version_row(self, tmp_path):
        path = str(tmp_path / "cache.db")
        with CacheDatabase(path):
            pass
        with CacheDatabase(path) as db:
            count = db.connection.execute("SELECT COUNT(*) FROM schema_version").fetchone()[0]
        assert count == 1


class TestClose:
    def test_double_close_is_safe(self):
        db = CacheDatabase(":memory:")
        db.initialize()
        db.close()
        db.close()
