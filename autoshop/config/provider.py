"""Configuration provider following Black Box Design principles."""
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

DEV_SESSION_SECRET = "autoshop-dev-secret-change-in-production"


class Environment(str, Enum):
    """Deployment environment. Only DEVELOPMENT exposes error internals."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TEST = "test"

    @property
    def is_development(self) -> bool:
        return self is Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        return self is Environment.PRODUCTION


@dataclass(frozen=True)
class SessionConfig:
    """Session cookie and lifetime configuration."""
    secret: str
    ttl_seconds: int = 24 * 60 * 60
    idle_timeout_seconds: int = 30 * 60
    cookie_name: str = "sid"
    cookie_secure: bool = True
    cookie_http_only: bool = True
    cookie_same_site: str = "lax"
    cookie_max_age: int = 24 * 60 * 60
    cookie_path: str = "/"


@dataclass(frozen=True)
class AppConfig:
    """Application configuration."""
    environment: Environment = Environment.PRODUCTION
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    redis_url: Optional[str] = None
    max_header_bytes: int = 4096
    max_logged_body_chars: int = 500

    @property
    def debug(self) -> bool:
        return self.environment.is_development


class ConfigProvider(Protocol):
    """Protocol for configuration providers."""

    def get_session_config(self) -> SessionConfig:
        """Get session configuration."""
        ...

    def get_app_config(self) -> AppConfig:
        """Get application configuration."""
        ...


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class EnvConfigProvider:
    """Environment-based configuration provider."""

    def get_app_config(self) -> AppConfig:
        """Get application configuration from environment variables."""
        raw_env = os.getenv("APP_ENV", os.getenv("NODE_ENV", "production")).lower()
        try:
            environment = Environment(raw_env)
        except ValueError:
            raise ValueError(
                f"Unknown APP_ENV '{raw_env}'. "
                f"Expected one of: {', '.join(e.value for e in Environment)}"
            )

        return AppConfig(
            environment=environment,
            api_prefix=os.getenv("API_PREFIX", "/api"),
            host=os.getenv("API_HOST", "0.0.0.0"),
            port=int(os.getenv("API_PORT", "5000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            redis_url=os.getenv("REDIS_URL") or None,
        )

    def get_session_config(self, environment: Optional[Environment] = None) -> SessionConfig:
        """
        Get session configuration from environment variables.

        Args:
            environment: Deployment environment, read from APP_ENV when omitted

        Raises:
            ValueError: If SESSION_SECRET is missing in production
        """
        if environment is None:
            environment = self.get_app_config().environment

        secret = os.getenv("SESSION_SECRET")
        if not secret:
            if environment.is_production:
                raise ValueError(
                    "SESSION_SECRET environment variable is required in production. "
                    "Generate one with: python -c 'import secrets; print(secrets.token_hex(32))'"
                )
            logger.warning("SESSION_SECRET not set, using development secret")
            secret = DEV_SESSION_SECRET

        ttl = int(os.getenv("SESSION_TTL", str(24 * 60 * 60)))
        return SessionConfig(
            secret=secret,
            ttl_seconds=ttl,
            idle_timeout_seconds=int(os.getenv("SESSION_IDLE_TIMEOUT", str(30 * 60))),
            cookie_name=os.getenv("SESSION_COOKIE_NAME", "sid"),
            cookie_secure=_env_bool("SESSION_COOKIE_SECURE", "true"),
            cookie_max_age=ttl,
        )
