import logging
import time
from typing import Dict, Optional, Protocol, Tuple

import redis.asyncio as redis

from autoshop.modules.errors.exceptions import SessionStoreError

from .session import SessionRecord

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Protocol for session persistence backends. Expiry is owned by the backend."""

    async def load(self, session_id: str) -> Optional[SessionRecord]:
        ...

    async def save(self, session_id: str, record: SessionRecord) -> None:
        ...

    async def destroy(self, session_id: str) -> None:
        ...


class RedisSessionStore:
    def __init__(self, redis_client, ttl: int = 24 * 60 * 60, key_prefix: str = "session:"):
        """
        Initialize Redis-backed session store.

        Args:
            redis_client: Async Redis client
            ttl: Absolute session TTL in seconds, applied on every save
            key_prefix: Prefix for session keys
        """
        self.redis = redis_client
        self.ttl = ttl
        self.key_prefix = key_prefix

    def _key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    async def load(self, session_id: str) -> Optional[SessionRecord]:
        """
        Load a session record.

        Returns:
            SessionRecord or None if missing, expired or unreadable
        """
        try:
            data = await self.redis.get(self._key(session_id))
        except redis.RedisError as e:
            raise SessionStoreError(f"Failed to load session: {e}") from e

        if not data:
            return None

        try:
            return SessionRecord.from_json(data)
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Discarding corrupt session record {session_id[:8]}...: {e}")
            return None

    async def save(self, session_id: str, record: SessionRecord) -> None:
        """Write the record and reset its TTL."""
        try:
            await self.redis.setex(self._key(session_id), self.ttl, record.to_json())
        except redis.RedisError as e:
            raise SessionStoreError(f"Failed to save session: {e}") from e

    async def destroy(self, session_id: str) -> None:
        try:
            await self.redis.delete(self._key(session_id))
        except redis.RedisError as e:
            raise SessionStoreError(f"Failed to destroy session: {e}") from e


class MemorySessionStore:
    """In-process session store for development and tests."""

    def __init__(self, ttl: int = 24 * 60 * 60, clock=time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._records: Dict[str, Tuple[float, str]] = {}

    async def load(self, session_id: str) -> Optional[SessionRecord]:
        entry = self._records.get(session_id)
        if entry is None:
            return None

        expires_at, data = entry
        if self._clock() >= expires_at:
            del self._records[session_id]
            return None
        return SessionRecord.from_json(data)

    async def save(self, session_id: str, record: SessionRecord) -> None:
        # Serialized so later mutation of the live bag never leaks into the store
        self._records[session_id] = (self._clock() + self.ttl, record.to_json())

    async def destroy(self, session_id: str) -> None:
        self._records.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._records)
