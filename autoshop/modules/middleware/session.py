"""
Session Middleware

Loads or creates the caller's session, exposes it as request.state.session,
and persists it afterwards only if the downstream pipeline changed it.
"""

import logging
from typing import Dict, Optional

from fastapi import Request, Response
from itsdangerous import BadSignature, Signer

from autoshop.config import SessionConfig
from autoshop.modules.session import Session, SessionRecord, SessionStore, new_session_id

from .paths import should_skip

SIGNER_SALT = "autoshop.session"


class SessionMiddleware:
    """
    Cookie-backed server-side session middleware.

    Lazy persistence: a session that nobody touched is neither saved nor
    re-issued as a cookie, so anonymous read-only traffic causes no writes.
    """

    def __init__(
        self,
        store: SessionStore,
        config: SessionConfig,
        skip_paths: Optional[Dict[str, list]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize session middleware.

        Args:
            store: Session persistence backend
            config: Secret, TTL and cookie attributes
            skip_paths: Dict of {path: [methods]} that bypass sessions entirely
            logger: Log sink, defaults to this module's logger
        """
        self.store = store
        self.config = config
        self.skip_paths = skip_paths or {}
        self.logger = logger or logging.getLogger(__name__)
        self.signer = Signer(config.secret, salt=SIGNER_SALT)

    def sign(self, session_id: str) -> str:
        return self.signer.sign(session_id).decode("utf-8")

    def read_session_id(self, request: Request) -> Optional[str]:
        """Return the verified session id from the cookie, if any."""
        raw = request.cookies.get(self.config.cookie_name)
        if not raw:
            return None

        try:
            return self.signer.unsign(raw).decode("utf-8")
        except BadSignature:
            self.logger.warning(
                f"Rejected session cookie with bad signature from "
                f"{request.client.host if request.client else 'unknown'}"
            )
            return None

    async def load_session(self, request: Request) -> Session:
        session_id = self.read_session_id(request)
        if session_id:
            record = await self.store.load(session_id)
            if record is not None:
                return Session(record)
            self.logger.debug(f"Session {session_id[:8]}... not found, starting a new one")

        return Session(SessionRecord(session_id=new_session_id()), is_new=True)

    def set_cookie(self, response: Response, session_id: str) -> None:
        response.set_cookie(
            key=self.config.cookie_name,
            value=self.sign(session_id),
            max_age=self.config.cookie_max_age,
            path=self.config.cookie_path,
            secure=self.config.cookie_secure,
            httponly=self.config.cookie_http_only,
            samesite=self.config.cookie_same_site,
        )

    def clear_cookie(self, response: Response) -> None:
        response.delete_cookie(
            key=self.config.cookie_name,
            path=self.config.cookie_path,
            secure=self.config.cookie_secure,
            httponly=self.config.cookie_http_only,
            samesite=self.config.cookie_same_site,
        )

    async def commit(self, session: Session, response: Response) -> None:
        """Write back session changes and set the matching cookie."""
        if session.previous_id:
            await self.store.destroy(session.previous_id)

        if session.invalidated:
            if not session.is_new:
                await self.store.destroy(session.id)
            self.clear_cookie(response)
            return

        if session.modified:
            await self.store.save(session.id, session.record)
            self.set_cookie(response, session.id)

    async def __call__(self, request: Request, call_next):
        """Process the request with a loaded session."""
        if should_skip(self.skip_paths, request):
            return await call_next(request)

        session = await self.load_session(request)
        request.state.session = session

        response = await call_next(request)
        await self.commit(session, response)
        return response
