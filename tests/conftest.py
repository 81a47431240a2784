"""
Shared pytest fixtures for Autoshop tests.

This module provides common fixtures including:
- Redis mocks for session store tests
- A controllable clock for inactivity tests
- Application factories wired with an in-memory session store
"""

import os
import sys
from typing import Callable, Optional
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI, HTTPException, Request
from fastapi.testclient import TestClient
from itsdangerous import Signer
from pydantic import BaseModel

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from autoshop.config import AppConfig, Environment, SessionConfig
from autoshop.main import create_app
from autoshop.modules.middleware.session import SIGNER_SALT
from autoshop.modules.api import SessionSummary
from autoshop.modules.session import MemorySessionStore, establish_identity

TEST_SECRET = "test-secret-key"
IDLE_TIMEOUT = 30 * 60
BASE_URL = "https://testserver"

# user_id -> (password, user_name, user_role)
TEST_USERS = {
    "u42": ("letmein", "Dana", "mechanic"),
    "u7": ("hunter2", "Sam", "admin"),
}


class FakeClock:
    """Manually advanced time source, in seconds since epoch."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.setex = AsyncMock()
    redis.delete = AsyncMock()
    redis.ping = AsyncMock(return_value=True)
    return redis


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session_config():
    return SessionConfig(secret=TEST_SECRET, idle_timeout_seconds=IDLE_TIMEOUT)


@pytest.fixture
def store():
    return MemorySessionStore()


@pytest.fixture
def make_app(session_config, store, clock) -> Callable[..., FastAPI]:
    """Factory for a fully wired app; environment and extra routes vary per test."""

    def _make(
        environment: Environment = Environment.PRODUCTION,
        register_routes: Optional[Callable[[FastAPI], None]] = None,
    ) -> FastAPI:
        def register(app: FastAPI) -> None:
            register_login_route(app)
            if register_routes is not None:
                register_routes(app)

        return create_app(
            app_config=AppConfig(environment=environment),
            session_config=session_config,
            store=store,
            register_routes=register,
            clock=clock,
        )

    return _make


@pytest.fixture
def client(make_app):
    with TestClient(make_app(), base_url=BASE_URL) as test_client:
        yield test_client


def session_id_from_cookie(value: str) -> str:
    """Verify and strip the signature from a session cookie value."""
    return Signer(TEST_SECRET, salt=SIGNER_SALT).unsign(value).decode("utf-8")


class LoginRequest(BaseModel):
    user_id: str
    password: str


def register_login_route(app: FastAPI) -> None:
    """Minimal authentication handler: check credentials, then bind the identity."""

    @app.post("/api/login", response_model=SessionSummary)
    async def login_handler(request: Request, credentials: LoginRequest):
        user = TEST_USERS.get(credentials.user_id)
        if user is None or user[0] != credentials.password:
            raise HTTPException(status_code=401, detail="Invalid credentials")
        _, user_name, user_role = user
        session = request.state.session
        establish_identity(session, credentials.user_id, user_name=user_name, user_role=user_role)
        return SessionSummary.from_session(session)


def login(client, user_id: str = "u42"):
    """Log in through the test authentication route."""
    return client.post("/api/login", json={"user_id": user_id, "password": TEST_USERS[user_id][0]})
