"""
Session Module - Black Box Interface

Purpose: Persist server-side sessions keyed by an opaque id
Interface: SessionStore.load(), save(), destroy(); Session bag;
           establish_identity() for authentication handlers
Hidden: Serialization, key layout, TTL expiry

Replaceable with any session backend (Redis, in-memory, relational).
"""

from .session import LAST_ACTIVITY_KEY, Session, SessionRecord, establish_identity, new_session_id
from .store import MemorySessionStore, RedisSessionStore, SessionStore

__all__ = [
    "LAST_ACTIVITY_KEY",
    "MemorySessionStore",
    "RedisSessionStore",
    "Session",
    "SessionRecord",
    "SessionStore",
    "establish_identity",
    "new_session_id",
]
