"""
Config Module - Black Box Interface

Purpose: Explicit application and session configuration
Interface: EnvConfigProvider, AppConfig, SessionConfig, Environment
Hidden: Environment variable names and parsing

Configuration is read once at startup and passed into every component.
"""

from .provider import (
    AppConfig,
    ConfigProvider,
    EnvConfigProvider,
    Environment,
    SessionConfig,
)

__all__ = [
    "AppConfig",
    "ConfigProvider",
    "EnvConfigProvider",
    "Environment",
    "SessionConfig",
]
