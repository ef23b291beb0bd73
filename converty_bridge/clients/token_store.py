"""SQLite-backed persistence of the OAuth token row kept for each user."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from converty_bridge.core.errors import StorageError
from converty_bridge.models.token import TokenRecord

logger = logging.getLogger(__name__)

_TOKEN_COLUMNS = (
    "access_token",
    "refresh_token",
    "token_type",
    "expires_in",
    "issued_at",
    "expires_at",
    "refresh_issued_at",
    "refresh_expires_at",
)


def _serialize(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return value


class SQLiteTokenStore:
    """One row per ``user_id``, enforced by a UNIQUE constraint."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
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
                CREATE TABLE IF NOT EXISTS token_infos (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL UNIQUE,
                    access_token TEXT NOT NULL,
                    refresh_token TEXT NOT NULL,
                    token_type TEXT,
                    expires_in INTEGER,
                    issued_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL,
                    refresh_issued_at TEXT NOT NULL,
                    refresh_expires_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def get(self, user_id: str) -> Optional[TokenRecord]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM token_infos WHERE user_id = ?",
                    (user_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read token for {user_id}: {exc}") from exc
        if not row:
            return None
        return TokenRecord(
            user_id=row["user_id"],
            **{column: row[column] for column in _TOKEN_COLUMNS},
        )

    def upsert(self, record: TokenRecord) -> None:
        """Create the user's row or overwrite it in place."""
        now = datetime.now(timezone.utc).isoformat()
        values = [_serialize(getattr(record, column)) for column in _TOKEN_COLUMNS]
        assignments = ", ".join(
            f"{column} = excluded.{column}" for column in _TOKEN_COLUMNS
        )
        try:
            with self._connect() as conn:
                conn.execute(
                    f"""
                    INSERT INTO token_infos (
                        user_id, {", ".join(_TOKEN_COLUMNS)}, created_at, updated_at
                    )
                    VALUES (?, {", ".join("?" for _ in _TOKEN_COLUMNS)}, ?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET
                        {assignments}, updated_at = excluded.updated_at
                    """,
                    (record.user_id, *values, now, now),
                )
        except sqlite3.Error as exc:
            raise StorageError(
                f"Failed to save token to database: {exc}"
            ) from exc
        logger.debug("Stored token row for user %s", record.user_id)

    def update_fields(self, user_id: str, fields: Dict[str, Any]) -> None:
        """Overwrite a subset of the token columns of an existing row."""
        unknown = set(fields) - set(_TOKEN_COLUMNS)
        if unknown:
            raise StorageError(f"Unknown token columns: {', '.join(sorted(unknown))}")
        if not fields:
            return
        columns = list(fields)
        assignments = ", ".join(f"{column} = ?" for column in columns)
        values = [_serialize(fields[column]) for column in columns]
        now = datetime.now(timezone.utc).isoformat()
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    f"UPDATE token_infos SET {assignments}, updated_at = ? "
                    "WHERE user_id = ?",
                    (*values, now, user_id),
                )
        except sqlite3.Error as exc:
            raise StorageError(
                f"Failed to update token in database: {exc}"
            ) from exc
        if cursor.rowcount == 0:
            raise StorageError(f"No token row exists for user {user_id}.")


__all__ = ["SQLiteTokenStore"]
