"""Cache repository — persistence for cached analyses and cost records.

Implements the ``CacheStore`` and ``CostStore`` protocols used by the
analysis cache and cost tracker.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from tempo.core.cache.analysis_cache import CacheContext, CacheEntry
from tempo.core.storage.database import CacheDatabase
from tempo.core.storage.encryption import EncryptionError, FieldEncryptor

logger = logging.getLogger(__name__)


class CacheRepository:
    """SQLite-backed store for the persistent cache layer and the cost ledger.

    Usage::

        db = CacheDatabase(":memory:")
        db.initialize()
        repo = CacheRepository(db, FieldEncryptor(key))
        cache = IntelligentAnalysisCache(store=repo)
    """

    def __init__(self, database: CacheDatabase, encryptor: FieldEncryptor | None = None) -> None:
        self._db = database
        self._enc = encryptor

    @property
    def encrypted(self) -> bool:
        return self._enc is not None

    def _dump(self, payload: dict[str, Any]) -> str:
        if self._enc is not None:
            return self._enc.encrypt(payload)
        return json.dumps(payload, ensure_ascii=False)

    def _load(self, text: str) -> dict[str, Any]:
        if self._enc is not None:
            return self._enc.decrypt(text)
        return json.loads(text)

    # ------------------------------------------------------------------
    # Cache entries
    # ------------------------------------------------------------------

    def save_entry(self, entry: CacheEntry) -> None:
        conn = self._db.connection
        conn.execute(
            """INSERT OR REPLACE INTO analysis_cache (
                cache_key, context_json, payload_enc, user_id, created_at, expires_at
            ) VALUES (?, ?, ?, ?, ?, ?)""",
            (
                entry.key,
                json.dumps(entry.context.to_dict()),
                self._dump(entry.payload),
                entry.user_id,
                entry.created_at,
                entry.expires_at,
            ),
        )
        conn.commit()

    def load_entries(self, now: float) -> list[CacheEntry]:
        """Return every unexpired entry; unreadable rows are skipped and deleted."""
        rows = self._db.connection.execute(
            "SELECT * FROM analysis_cache WHERE expires_at > ? ORDER BY created_at",
            (now,),
        ).fetchall()

        entries: list[CacheEntry] = []
        for row in rows:
            try:
                payload = self._load(row["payload_enc"])
            except (EncryptionError, ValueError) as exc:
                logger.warning("Dropping unreadable cache entry %s: %s", row["cache_key"], exc)
                self.delete_entry(row["cache_key"])
                continue
            entries.append(
                CacheEntry(
                    key=row["cache_key"],
                    context=CacheContext.from_dict(json.loads(row["context_json"])),
                    payload=payload,
                    created_at=row["created_at"],
                    expires_at=row["expires_at"],
                    user_id=row["user_id"],
                )
            )
        return entries

    def delete_entry(self, key: str) -> None:
        conn = self._db.connection
        conn.execute("DELETE FROM analysis_cache WHERE cache_key = ?", (key,))
        conn.commit()

    def delete_expired(self, now: float) -> int:
        conn = self._db.connection
        cursor = conn.execute("DELETE FROM analysis_cache WHERE expires_at <= ?", (now,))
        conn.commit()
        return cursor.rowcount

    def clear(self) -> None:
        conn = self._db.connection
        conn.execute("DELETE FROM analysis_cache")
        conn.commit()

    def count_entries(self) -> int:
        row = self._db.connection.execute("SELECT COUNT(*) FROM analysis_cache").fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Cost ledger
    # ------------------------------------------------------------------

    def save_cost(self, user_id: str, date: str, cost: float, request_count: int) -> None:
        conn = self._db.connection
        conn.execute(
            """INSERT INTO cost_records (user_id, usage_date, total_cost, request_count)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(user_id, usage_date) DO UPDATE SET
                   total_cost = excluded.total_cost,
                   request_count = excluded.request_count,
                   updated_at = datetime('now')""",
            (user_id, date, cost, request_count),
        )
        conn.commit()

    def load_costs(self, date: str) -> list[tuple[str, float, int]]:
        rows = self._db.connection.execute(
            "SELECT user_id, total_cost, request_count FROM cost_records WHERE usage_date = ?",
            (date,),
        ).fetchall()
        return [(r["user_id"], r["total_cost"], r["request_count"]) for r in rows]
