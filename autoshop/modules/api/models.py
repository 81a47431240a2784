"""
Autoshop shared data models.

These models define the wire formats exchanged between the server
pipeline and its clients.
"""

import json
from typing import Any, Optional

from pydantic import BaseModel, Field

API_LOG_HEADER = "X-API-Log"


class DiagnosticLogRecord(BaseModel):
    """Per-request summary carried in the X-API-Log response header."""

    method: str
    path: str
    status: int
    duration: int = Field(..., description="Request latency in milliseconds", ge=0)
    timestamp: str = Field(..., description="ISO-8601 completion time")
    response: Optional[str] = Field(
        None, description="Leading characters of the serialized JSON response body"
    )

    def to_header(self) -> str:
        """Compact ASCII-only JSON, safe for an HTTP header value."""
        return json.dumps(self.model_dump(exclude_none=True), separators=(",", ":"))

    @property
    def is_error(self) -> bool:
        return self.status >= 400


class ErrorBody(BaseModel):
    """Client-facing error payload."""

    error: str
    code: Optional[str] = None
    details: Optional[str] = None
    stack: Optional[str] = None


class SessionSummary(BaseModel):
    """Non-sensitive view of the caller's session."""

    authenticated: bool
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_role: Optional[str] = None
    last_activity: Optional[int] = None

    @classmethod
    def from_session(cls, session: Any) -> "SessionSummary":
        return cls(
            authenticated="user_id" in session,
            user_id=session.get("user_id"),
            user_name=session.get("user_name"),
            user_role=session.get("user_role"),
            last_activity=session.get("last_activity"),
        )
