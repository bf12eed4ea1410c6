"""String-keyed cache with optional per-entry expiry, stored in sqlite."""

import json
import time
from typing import Any, Optional

from storage import SqliteStore


class KeyValueCache(SqliteStore):
    def _init_db(self):
        with self._connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_cache (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expires_at REAL
                )
                """
            )
            conn.commit()

    def set(self, key: str, value: Any, expire_seconds: Optional[int] = None):
        expires_at = time.time() + expire_seconds if expire_seconds else None
        with self._connection() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv_cache (key, value, expires_at) VALUES (?, ?, ?)",
                (key, json.dumps(value, ensure_ascii=False), expires_at),
            )
            conn.commit()

    def get(self, key: str) -> Any:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT value, expires_at FROM kv_cache WHERE key = ?",
                (key,),
            ).fetchone()
            if row is None:
                return None
            if row["expires_at"] is not None and row["expires_at"] <= time.time():
                conn.execute("DELETE FROM kv_cache WHERE key = ?", (key,))
                conn.commit()
                return None
        return json.loads(row["value"])

    def delete(self, key: str):
        with self._connection() as conn:
            conn.execute("DELETE FROM kv_cache WHERE key = ?", (key,))
            conn.commit()

    def increment(self, key: str) -> int:
        with self._connection() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute("SELECT value FROM kv_cache WHERE key = ?", (key,)).fetchone()
            try:
                current = int(json.loads(row["value"])) if row else 0
            except (TypeError, ValueError):
                current = 0
            count = current + 1
            conn.execute(
                "INSERT OR REPLACE INTO kv_cache (key, value, expires_at) VALUES (?, ?, NULL)",
                (key, json.dumps(count)),
            )
            conn.commit()
        return count

    def cleanup_expired(self) -> int:
        with self._connection() as conn:
            cursor = conn.execute(
                "DELETE FROM kv_cache WHERE expires_at IS NOT NULL AND expires_at <= ?",
                (time.time(),),
            )
            conn.commit()
            return cursor.rowcount
