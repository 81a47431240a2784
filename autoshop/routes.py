"""Built-in session routes. Business and authentication routes are registered separately."""

import logging

from fastapi import APIRouter, Request

from autoshop.modules.api import SessionSummary

logger = logging.getLogger(__name__)


def create_session_router() -> APIRouter:
    router = APIRouter(prefix="/session", tags=["session"])

    @router.get("", response_model=SessionSummary)
    async def get_session(request: Request):
        """Describe the caller's session without exposing its id."""
        return SessionSummary.from_session(request.state.session)

    @router.post("/logout")
    async def logout(request: Request):
        """End the session."""
        session = request.state.session
        user_id = session.get("user_id")
        session.invalidate()
        logger.info(f"User {user_id or 'anonymous'} logged out")
        return {"message": "Logged out"}

    return router
