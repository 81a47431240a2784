"""
Inactivity Guard

Terminates sessions that have been idle longer than the configured threshold.
"""

import logging
import time
from typing import Callable, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from autoshop.modules.errors import (
    ErrorReporter,
    SessionExpiredError,
)
from autoshop.modules.session import LAST_ACTIVITY_KEY, SessionStore

from .paths import should_skip


class InactivityGuard:
    """
    Enforces the idle timeout on every request that carries a session.

    Runs after the session middleware and before any handler. An expired
    session is destroyed and the request fails with 401 and the
    INACTIVITY_TIMEOUT code; otherwise last_activity is stamped and the
    request continues.
    """

    def __init__(
        self,
        store: SessionStore,
        reporter: ErrorReporter,
        idle_timeout_seconds: int,
        skip_paths: Optional[Dict[str, list]] = None,
        clock: Callable[[], float] = time.time,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.reporter = reporter
        self.idle_timeout_ms = idle_timeout_seconds * 1000
        self.skip_paths = skip_paths or {}
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def is_expired(self, last_activity: int, now_ms: int) -> bool:
        return now_ms - last_activity > self.idle_timeout_ms

    async def expire(self, request: Request, session) -> JSONResponse:
        """Destroy the session and build the timeout response."""
        user_id = session.get("user_id")
        await self.store.destroy(session.id)
        session.invalidate()

        self.logger.info(
            f"Session {session.id[:8]}... expired after inactivity "
            f"(user={user_id or 'anonymous'}, path={request.url.path})"
        )

        exc = SessionExpiredError()
        body = self.reporter.build_body(exc, client_message=str(exc), code=exc.code)
        return JSONResponse(
            status_code=exc.status_code, content=body.model_dump(exclude_none=True)
        )

    async def __call__(self, request: Request, call_next):
        if should_skip(self.skip_paths, request):
            return await call_next(request)

        session = getattr(request.state, "session", None)
        if session is None:
            return await call_next(request)

        now_ms = self.now_ms()
        last_activity = session.get(LAST_ACTIVITY_KEY)
        if not isinstance(last_activity, int):
            last_activity = None

        if last_activity is not None and self.is_expired(last_activity, now_ms):
            return await self.expire(request, session)

        # Strictly increasing, even when two requests land in the same millisecond
        if last_activity is None:
            session[LAST_ACTIVITY_KEY] = now_ms
        else:
            session[LAST_ACTIVITY_KEY] = max(now_ms, last_activity + 1)

        return await call_next(request)
