import json
import secrets
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict, Iterator, Optional

LAST_ACTIVITY_KEY = "last_activity"


def new_session_id() -> str:
    """Generate an opaque, unguessable session identifier."""
    return secrets.token_urlsafe(32)


@dataclass
class SessionRecord:
    """Persisted server-side session state."""

    session_id: str
    created_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def last_activity(self) -> Optional[int]:
        return self.data.get(LAST_ACTIVITY_KEY)

    def to_json(self) -> str:
        return json.dumps(
            {"session_id": self.session_id, "created_at": self.created_at, "data": self.data}
        )

    @classmethod
    def from_json(cls, raw: str) -> "SessionRecord":
        payload = json.loads(raw)
        return cls(
            session_id=payload["session_id"],
            created_at=payload["created_at"],
            data=payload.get("data") or {},
        )


class Session(MutableMapping):
    """
    Request-scoped session bag.

    Handlers read and write it like a dict through ``request.state.session``.
    Any mutation flags the session as modified so the middleware knows to
    persist it; an untouched session is never written back.
    """

    def __init__(self, record: SessionRecord, is_new: bool = False):
        self._record = record
        self.is_new = is_new
        self.modified = False
        self.invalidated = False
        self._previous_id: Optional[str] = None

    @property
    def id(self) -> str:
        return self._record.session_id

    @property
    def previous_id(self) -> Optional[str]:
        """Id replaced by regenerate(), still present in the store."""
        return self._previous_id

    @property
    def record(self) -> SessionRecord:
        return self._record

    def __getitem__(self, key: str) -> Any:
        return self._record.data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._record.data[key] = value
        self.modified = True

    def __delitem__(self, key: str) -> None:
        del self._record.data[key]
        self.modified = True

    def __iter__(self) -> Iterator[str]:
        return iter(self._record.data)

    def __len__(self) -> int:
        return len(self._record.data)

    def regenerate(self) -> None:
        """Move the payload to a fresh id, e.g. after a privilege change."""
        if self._previous_id is None and not self.is_new:
            self._previous_id = self._record.session_id
        self._record = SessionRecord(session_id=new_session_id(), data=dict(self._record.data))
        self.is_new = True
        self.modified = True

    def invalidate(self) -> None:
        """Drop the payload; the middleware destroys the stored record."""
        self._record.data.clear()
        self.invalidated = True
        self.modified = False


def establish_identity(
    session: Session,
    user_id: str,
    user_name: Optional[str] = None,
    user_role: Optional[str] = None,
) -> None:
    """
    Bind a verified identity to the session.

    Only call this after credentials have been checked. The session id is
    regenerated so a pre-login id cannot be reused.
    """
    session.regenerate()
    session["user_id"] = user_id
    if user_name is not None:
        session["user_name"] = user_name
    if user_role is not None:
        session["user_role"] = user_role
