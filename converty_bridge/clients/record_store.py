"""SQLite-backed storage for chatbot interaction records."""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from converty_bridge.core.errors import RecordNotFound, StorageError
from converty_bridge.schemas.records import SQLITE_MAX_INTEGER, InteractionRecord


def _ensure_directory(db_path: Path) -> None:
    if db_path.parent and not db_path.parent.exists():
        db_path.parent.mkdir(parents=True, exist_ok=True)


class SQLiteRecordStore:
    """List, look up and insert free-form JSON interaction records."""

    def __init__(self, db_path: str) -> None:
        self._db_path = Path(db_path)
        _ensure_directory(self._db_path)
        self._ensure_tables()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_tables(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS interactions (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    type TEXT NOT NULL,
                    details TEXT NOT NULL,
                    status TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> InteractionRecord:
        return InteractionRecord(
            id=row["id"],
            user_id=row["user_id"],
            type=row["type"],
            details=json.loads(row["details"]) if row["details"] else {},
            status=row["status"] or "",
            created_at=row["created_at"],
        )

    def _select(self, query: str, params: tuple = ()) -> List[InteractionRecord]:
        try:
            with self._connect() as conn:
                rows = conn.execute(query, params).fetchall()
        except (sqlite3.Error, OverflowError) as exc:
            raise StorageError(f"Failed to fetch records: {exc}") from exc
        return [self._row_to_record(row) for row in rows]

    def list_records(self) -> List[InteractionRecord]:
        return self._select("SELECT * FROM interactions ORDER BY id")

    def list_issues(self) -> List[InteractionRecord]:
        return self._select(
            "SELECT * FROM interactions WHERE type = ? ORDER BY id", ("issue",)
        )

    def get_record(self, record_id: int) -> InteractionRecord:
        if not 0 <= record_id <= SQLITE_MAX_INTEGER:
            raise RecordNotFound(f"Record with ID {record_id} not found")
        records = self._select("SELECT * FROM interactions WHERE id = ?", (record_id,))
        if not records:
            raise RecordNotFound(f"Record with ID {record_id} not found")
        return records[0]

    def insert_record(
        self,
        *,
        user_id: int,
        record_type: str,
        details: Dict[str, Any],
        status: str,
    ) -> InteractionRecord:
        try:
            details_json = json.dumps(details)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Failed to serialize details: {exc}") from exc
        created_at = datetime.now(timezone.utc).isoformat()
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO interactions (user_id, type, details, status, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (user_id, record_type, details_json, status, created_at),
                )
                record_id = cursor.lastrowid
        except (sqlite3.Error, OverflowError) as exc:
            raise StorageError(f"Failed to insert record: {exc}") from exc
        return InteractionRecord(
            id=record_id,
            user_id=user_id,
            type=record_type,
            details=details,
            status=status,
            created_at=created_at,
        )


__all__ = ["SQLiteRecordStore"]
