import json
from unittest.mock import AsyncMock

import pytest
import redis.asyncio as redis

from autoshop.modules.errors import SessionStoreError
from autoshop.modules.session import (
    MemorySessionStore,
    RedisSessionStore,
    Session,
    SessionRecord,
    establish_identity,
    new_session_id,
)

from conftest import FakeClock


@pytest.fixture
def redis_store(mock_redis):
    """Create a RedisSessionStore instance with mock Redis."""
    return RedisSessionStore(mock_redis, ttl=86400)


def test_session_ids_are_unique_and_opaque():
    ids = {new_session_id() for _ in range(100)}
    assert len(ids) == 100
    assert all(len(session_id) >= 40 for session_id in ids)


@pytest.mark.asyncio
async def test_redis_save_uses_setex_with_ttl(redis_store, mock_redis):
    """Test saving writes JSON under the session key with the absolute TTL."""
    record = SessionRecord(session_id="abc", data={"user_id": "u1", "last_activity": 1000})

    await redis_store.save("abc", record)

    mock_redis.setex.assert_called_once()
    key, ttl, payload = mock_redis.setex.call_args[0]
    assert key == "session:abc"
    assert ttl == 86400
    stored = json.loads(payload)
    assert stored["session_id"] == "abc"
    assert stored["data"] == {"user_id": "u1", "last_activity": 1000}
    assert "created_at" in stored


@pytest.mark.asyncio
async def test_redis_load_roundtrip(redis_store, mock_redis):
    record = SessionRecord(session_id="abc", data={"user_role": "admin"})
    mock_redis.get.return_value = record.to_json()

    loaded = await redis_store.load("abc")

    mock_redis.get.assert_called_once_with("session:abc")
    assert loaded == record


@pytest.mark.asyncio
async def test_redis_load_missing_returns_none(redis_store, mock_redis):
    mock_redis.get.return_value = None
    assert await redis_store.load("gone") is None


@pytest.mark.asyncio
async def test_redis_load_corrupt_record_returns_none(redis_store, mock_redis):
    mock_redis.get.return_value = "{not json"
    assert await redis_store.load("abc") is None


@pytest.mark.asyncio
async def test_redis_destroy_deletes_key(redis_store, mock_redis):
    await redis_store.destroy("abc")
    mock_redis.delete.assert_called_once_with("session:abc")


@pytest.mark.asyncio
async def test_redis_errors_become_store_errors(redis_store, mock_redis):
    mock_redis.get = AsyncMock(side_effect=redis.ConnectionError("connection refused"))

    with pytest.raises(SessionStoreError) as exc_info:
        await redis_store.load("abc")

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_memory_store_expires_after_ttl():
    clock = FakeClock(start=0)
    store = MemorySessionStore(ttl=60, clock=clock)
    await store.save("abc", SessionRecord(session_id="abc"))

    clock.advance(59)
    assert await store.load("abc") is not None

    clock.advance(1)
    assert await store.load("abc") is None
    assert len(store) == 0


@pytest.mark.asyncio
async def test_memory_store_is_isolated_from_live_bag():
    store = MemorySessionStore()
    record = SessionRecord(session_id="abc", data={"user_id": "u1"})
    await store.save("abc", record)

    record.data["user_id"] = "someone-else"

    loaded = await store.load("abc")
    assert loaded.data["user_id"] == "u1"


@pytest.mark.asyncio
async def test_memory_store_destroy_is_idempotent():
    store = MemorySessionStore()
    await store.save("abc", SessionRecord(session_id="abc"))

    await store.destroy("abc")
    await store.destroy("abc")

    assert await store.load("abc") is None


def test_session_bag_tracks_modification():
    session = Session(SessionRecord(session_id="abc", data={"user_id": "u1"}))
    assert not session.modified

    assert session["user_id"] == "u1"
    assert session.get("missing") is None
    assert not session.modified

    session["user_role"] = "admin"
    assert session.modified
    assert dict(session) == {"user_id": "u1", "user_role": "admin"}


def test_session_invalidate_clears_payload():
    session = Session(SessionRecord(session_id="abc", data={"user_id": "u1"}))
    session["x"] = 1

    session.invalidate()

    assert session.invalidated
    assert not session.modified
    assert len(session) == 0


def test_session_regenerate_moves_payload_to_new_id():
    session = Session(SessionRecord(session_id="old", data={"last_activity": 5}))

    session.regenerate()

    assert session.id != "old"
    assert session.previous_id == "old"
    assert session.is_new
    assert session.modified
    assert session["last_activity"] == 5


def test_establish_identity_regenerates_and_binds_user():
    session = Session(SessionRecord(session_id="old-id", data={"cart": [1]}))

    establish_identity(session, "u42", user_name="Dana", user_role="mechanic")

    assert session.id != "old-id"
    assert session.previous_id == "old-id"
    assert session.modified is True
    assert session["user_id"] == "u42"
    assert session["user_name"] == "Dana"
    assert session["user_role"] == "mechanic"
    assert session["cart"] == [1]


def test_establish_identity_leaves_optional_fields_unset():
    session = Session(SessionRecord(session_id=new_session_id(), data={}), is_new=True)

    establish_identity(session, "u42")

    assert session["user_id"] == "u42"
    assert "user_name" not in session
    assert "user_role" not in session
