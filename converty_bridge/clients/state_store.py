"""Server-side store for pending OAuth ``state`` values."""

from __future__ import annotations

import secrets
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from converty_bridge.core.errors import StorageError


class SQLiteStateStore:
    """Single-use anti-forgery nonces with TTL pruning.

    Every authorization start gets its own random state bound to the user
    initiating it. A state is removed the first time it is consumed, and
    states older than ``ttl_seconds`` are never accepted.
    """

    def __init__(self, db_path: str, ttl_seconds: int = 900) -> None:
        self._db_path = Path(db_path)
        self._ttl = ttl_seconds
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS oauth_states (
                    state TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
                """
            )

    def _threshold(self) -> str:
        return (datetime.now(timezone.utc) - timedelta(seconds=self._ttl)).isoformat()

    def issue(self, user_id: str) -> str:
        state = secrets.token_urlsafe(32)
        created_at = datetime.now(timezone.utc).isoformat()
        try:
            with self._connect() as conn:
                conn.execute(
                    "DELETE FROM oauth_states WHERE created_at < ?",
                    (self._threshold(),),
                )
                conn.execute(
                    "INSERT INTO oauth_states (state, user_id, created_at) VALUES (?, ?, ?)",
                    (state, user_id, created_at),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to store OAuth state: {exc}") from exc
        return state

    def consume(self, state: str) -> Optional[str]:
        """Return the user bound to ``state`` and forget it, or ``None``."""
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT user_id, created_at FROM oauth_states WHERE state = ?",
                    (state,),
                ).fetchone()
                if not row:
                    return None
                conn.execute("DELETE FROM oauth_states WHERE state = ?", (state,))
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read OAuth state: {exc}") from exc
        if row["created_at"] < self._threshold():
            return None
        return row["user_id"]


__all__ = ["SQLiteStateStore"]
