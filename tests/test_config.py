import logging

import pytest

from autoshop.config import EnvConfigProvider, Environment
from autoshop.config.provider import DEV_SESSION_SECRET
from autoshop.logging_config import HealthCheckFilter, get_logging_config


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "APP_ENV",
        "NODE_ENV",
        "SESSION_SECRET",
        "SESSION_TTL",
        "SESSION_IDLE_TIMEOUT",
        "SESSION_COOKIE_NAME",
        "SESSION_COOKIE_SECURE",
        "REDIS_URL",
        "API_PREFIX",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_are_production(clean_env):
    config = EnvConfigProvider().get_app_config()

    assert config.environment is Environment.PRODUCTION
    assert config.api_prefix == "/api"
    assert config.redis_url is None
    assert config.max_header_bytes == 4096


def test_missing_secret_fails_in_production(clean_env):
    with pytest.raises(ValueError, match="SESSION_SECRET"):
        EnvConfigProvider().get_session_config()


def test_missing_secret_falls_back_in_development(clean_env, caplog):
    clean_env.setenv("APP_ENV", "development")

    with caplog.at_level(logging.WARNING):
        config = EnvConfigProvider().get_session_config()

    assert config.secret == DEV_SESSION_SECRET
    assert "SESSION_SECRET not set" in caplog.text


def test_session_config_from_env(clean_env):
    clean_env.setenv("SESSION_SECRET", "s3cret")
    clean_env.setenv("SESSION_IDLE_TIMEOUT", "600")
    clean_env.setenv("SESSION_COOKIE_NAME", "shop.sid")

    config = EnvConfigProvider().get_session_config(Environment.PRODUCTION)

    assert config.secret == "s3cret"
    assert config.idle_timeout_seconds == 600
    assert config.cookie_name == "shop.sid"
    assert config.cookie_max_age == 86400
    assert config.cookie_secure is True
    assert config.cookie_http_only is True
    assert config.cookie_same_site == "lax"


def test_unknown_environment_rejected(clean_env):
    clean_env.setenv("APP_ENV", "staging")

    with pytest.raises(ValueError, match="Unknown APP_ENV"):
        EnvConfigProvider().get_app_config()


def test_health_check_access_lines_are_filtered():
    health_filter = HealthCheckFilter()

    def access_record(message):
        return logging.LogRecord("uvicorn.access", logging.INFO, __file__, 1, message, None, None)

    assert not health_filter.filter(access_record('127.0.0.1 - "GET /health HTTP/1.1" 200'))
    assert not health_filter.filter(access_record('127.0.0.1 - "GET /health?full=1 HTTP/1.1" 200'))
    assert health_filter.filter(access_record('127.0.0.1 - "GET /api/session HTTP/1.1" 200'))


@pytest.mark.parametrize(
    "request_line",
    [
        "GET /healthz HTTP/1.1",
        "GET /api/health-report HTTP/1.1",
        "GET /api/vehicles/health HTTP/1.1",
        "POST /health HTTP/1.1",
    ],
)
def test_only_exact_health_check_is_filtered(request_line):
    args = ("127.0.0.1:5000", request_line, 200)
    record = logging.LogRecord("uvicorn.access", logging.INFO, __file__, 1, '%s - "%s" %d', args, None)

    assert HealthCheckFilter().filter(record)


def test_logging_config_level():
    config = get_logging_config("debug")

    assert config["loggers"]["autoshop"]["level"] == "DEBUG"
    assert config["root"]["level"] == "DEBUG"
