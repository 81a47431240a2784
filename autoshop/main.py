#!/usr/bin/env python3
"""
Autoshop - Main Entry Point

This is the thin orchestration layer that:
1. Loads configuration
2. Builds the session store and the request pipeline
3. Runs the API server

Route handlers and business logic live outside this package and are
plugged in through ``register_routes``. Login handlers bind the verified
identity with ``establish_identity`` from the session module.
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

import redis.asyncio as redis
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from autoshop import __version__
from autoshop.config import AppConfig, EnvConfigProvider, SessionConfig
from autoshop.logging_config import configure_logging, get_logging_config
from autoshop.modules.errors import ErrorReporter, register_exception_handlers
from autoshop.modules.middleware import (
    DiagnosticLoggingMiddleware,
    ErrorBoundaryMiddleware,
    InactivityGuard,
    SessionMiddleware,
)
from autoshop.modules.session import MemorySessionStore, RedisSessionStore, SessionStore
from autoshop.routes import create_session_router

logger = logging.getLogger(__name__)

DEFAULT_SKIP_PATHS = {
    "/health": ["GET"],
}


def build_store(app_config: AppConfig, session_config: SessionConfig):
    """
    Create the session store named by the configuration.

    Returns:
        Tuple of (store, redis_client or None)
    """
    if app_config.redis_url:
        redis_client = redis.from_url(app_config.redis_url, encoding="utf-8", decode_responses=True)
        return RedisSessionStore(redis_client, ttl=session_config.ttl_seconds), redis_client

    logger.warning("REDIS_URL not set, sessions are kept in process memory")
    return MemorySessionStore(ttl=session_config.ttl_seconds), None


def create_app(
    app_config: Optional[AppConfig] = None,
    session_config: Optional[SessionConfig] = None,
    store: Optional[SessionStore] = None,
    register_routes: Optional[Callable[[FastAPI], None]] = None,
    clock: Optional[Callable[[], float]] = None,
) -> FastAPI:
    """
    Build the application with the full request pipeline.

    Request flow, outermost first: session -> inactivity guard ->
    diagnostics -> error boundary -> routes.

    Args:
        app_config: Application configuration, read from the environment if omitted
        session_config: Session configuration, read from the environment if omitted
        store: Session store; built from app_config when omitted
        register_routes: Callback that adds business and authentication routes
        clock: Time source for the inactivity guard (seconds since epoch)
    """
    provider = EnvConfigProvider()
    if app_config is None:
        app_config = provider.get_app_config()
    if session_config is None:
        session_config = provider.get_session_config(app_config.environment)

    redis_client = None
    if store is None:
        store, redis_client = build_store(app_config, session_config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Manage application lifecycle - initialize and cleanup resources.
        """
        logger.info(
            f"Starting Autoshop API ({app_config.environment.value}, "
            f"idle timeout {session_config.idle_timeout_seconds}s)"
        )
        yield
        logger.info("Shutting down Autoshop API...")
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title="Autoshop API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = app_config
    app.state.session_store = store

    reporter = ErrorReporter(app_config.environment, logger=logging.getLogger("autoshop.errors"))
    app.state.error_reporter = reporter
    register_exception_handlers(app, reporter)

    guard_kwargs = {"clock": clock} if clock is not None else {}

    # add_middleware prepends, so register innermost first
    app.add_middleware(BaseHTTPMiddleware, dispatch=ErrorBoundaryMiddleware(reporter))
    app.add_middleware(
        BaseHTTPMiddleware,
        dispatch=DiagnosticLoggingMiddleware(
            api_prefix=app_config.api_prefix,
            max_header_bytes=app_config.max_header_bytes,
            max_logged_body_chars=app_config.max_logged_body_chars,
        ),
    )
    app.add_middleware(
        BaseHTTPMiddleware,
        dispatch=InactivityGuard(
            store,
            reporter,
            idle_timeout_seconds=session_config.idle_timeout_seconds,
            skip_paths=DEFAULT_SKIP_PATHS,
            **guard_kwargs,
        ),
    )
    app.add_middleware(
        BaseHTTPMiddleware,
        dispatch=SessionMiddleware(store, session_config, skip_paths=DEFAULT_SKIP_PATHS),
    )

    @app.get("/health")
    async def health():
        """Liveness plus session backend reachability."""
        if redis_client is not None:
            try:
                await redis_client.ping()
            except redis.RedisError as e:
                logger.error(f"Health check failed: {e}")
                return JSONResponse(
                    status_code=503, content={"status": "unhealthy", "error": "Session store unavailable"}
                )
        return {"status": "healthy", "version": __version__}

    app.include_router(create_session_router(), prefix=app_config.api_prefix)

    if register_routes is not None:
        register_routes(app)

    return app


def main() -> None:
    provider = EnvConfigProvider()
    app_config = provider.get_app_config()
    configure_logging(app_config.log_level)

    uvicorn.run(
        "autoshop.main:create_app",
        factory=True,
        host=app_config.host,
        port=app_config.port,
        log_level=app_config.log_level.lower(),
        log_config=get_logging_config(app_config.log_level),
    )


if __name__ == "__main__":
    main()
