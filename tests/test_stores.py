try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timedelta, timezone

import pytest

from converty_bridge.clients.record_store import SQLiteRecordStore
from converty_bridge.clients.state_store import SQLiteStateStore
from converty_bridge.clients.token_store import SQLiteTokenStore
from converty_bridge.core.errors import RecordNotFound, StorageError
from converty_bridge.models.token import TokenRecord


def _record(user_id: str = "user1", access_token: str = "a") -> TokenRecord:
    now = datetime.now(timezone.utc)
    return TokenRecord(
        user_id=user_id,
        access_token=access_token,
        refresh_token="r",
        expires_in=60,
        issued_at=now,
        expires_at=now + timedelta(seconds=60),
        refresh_issued_at=now,
        refresh_expires_at=now + timedelta(days=1),
    )


def test_token_store_round_trips_timestamps(tmp_path) -> None:
    store = SQLiteTokenStore(str(tmp_path / "nested" / "tokens.db"))
    record = _record()

    store.upsert(record)
    loaded = store.get("user1")

    assert loaded == record
    assert loaded.expires_at.tzinfo is not None
    assert store.get("someone-else") is None


def test_token_store_keeps_one_row_per_user(tmp_path) -> None:
    store = SQLiteTokenStore(str(tmp_path / "tokens.db"))
    store.upsert(_record(access_token="first"))
    store.upsert(_record(access_token="second"))
    store.upsert(_record(user_id="user2", access_token="other"))

    with store._connect() as conn:
        rows = conn.execute("SELECT user_id, access_token FROM token_infos ORDER BY user_id").fetchall()

    assert [tuple(row) for row in rows] == [("user1", "second"), ("user2", "other")]


def test_update_fields_overwrites_selected_columns(tmp_path) -> None:
    store = SQLiteTokenStore(str(tmp_path / "tokens.db"))
    store.upsert(_record())

    store.update_fields("user1", {"access_token": "b", "expires_in": 120})

    loaded = store.get("user1")
    assert loaded.access_token == "b"
    assert loaded.expires_in == 120
    assert loaded.refresh_token == "r"


def test_update_fields_rejects_unknown_columns_and_missing_rows(tmp_path) -> None:
    store = SQLiteTokenStore(str(tmp_path / "tokens.db"))

    with pytest.raises(StorageError, match="Unknown token columns"):
        store.update_fields("user1", {"user_id": "hijack"})
    with pytest.raises(StorageError, match="No token row exists"):
        store.update_fields("user1", {"access_token": "b"})


def test_token_record_expiry_checks() -> None:
    record = _record()
    later = record.expires_at + timedelta(seconds=1)

    assert not record.is_access_expired(now=record.expires_at)
    assert record.is_access_expired(now=later)
    assert not record.is_refresh_expired(now=later)


def test_state_is_bound_to_user_and_single_use(tmp_path) -> None:
    store = SQLiteStateStore(str(tmp_path / "states.db"))
    first = store.issue("user1")
    second = store.issue("user2")

    assert first != second
    assert store.consume(second) == "user2"
    assert store.consume(first) == "user1"
    assert store.consume(first) is None
    assert store.consume("never-issued") is None


def test_expired_state_is_not_accepted(tmp_path) -> None:
    store = SQLiteStateStore(str(tmp_path / "states.db"), ttl_seconds=60)
    state = store.issue("user1")
    stale = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
    with store._connect() as conn:
        conn.execute("UPDATE oauth_states SET created_at = ? WHERE state = ?", (stale, state))

    assert store.consume(state) is None


def test_issuing_prunes_expired_states(tmp_path) -> None:
    store = SQLiteStateStore(str(tmp_path / "states.db"), ttl_seconds=60)
    old = store.issue("user1")
    stale = (datetime.now(timezone.utc) - timedelta(minutes=5)).isoformat()
    with store._connect() as conn:
        conn.execute("UPDATE oauth_states SET created_at = ? WHERE state = ?", (stale, old))

    store.issue("user1")

    with store._connect() as conn:
        remaining = conn.execute(
            "SELECT COUNT(*) FROM oauth_states WHERE state = ?", (old,)
        ).fetchone()[0]
    assert remaining == 0


def test_record_store_lists_and_filters_issues(tmp_path) -> None:
    store = SQLiteRecordStore(str(tmp_path / "records.db"))
    issue = store.insert_record(
        user_id=3,
        record_type="issue",
        details={"type": "defective", "name": "Bob"},
        status="pending",
    )
    store.insert_record(
        user_id=3, record_type="order", details={"sku": "X1"}, status="completed"
    )

    assert [record.type for record in store.list_records()] == ["issue", "order"]
    assert [record.id for record in store.list_issues()] == [issue.id]
    assert store.get_record(issue.id).details == {"type": "defective", "name": "Bob"}


def test_record_store_missing_record(tmp_path) -> None:
    store = SQLiteRecordStore(str(tmp_path / "records.db"))

    with pytest.raises(RecordNotFound, match="Record with ID 42 not found"):
        store.get_record(42)
    assert store.list_records() == []


def test_record_store_handles_out_of_range_integers(tmp_path) -> None:
    store = SQLiteRecordStore(str(tmp_path / "records.db"))

    with pytest.raises(RecordNotFound):
        store.get_record(10**20)
    with pytest.raises(StorageError, match="Failed to insert record"):
        store.insert_record(
            user_id=10**20, record_type="order", details={}, status="pending"
        )
