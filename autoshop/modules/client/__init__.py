"""
Client Module - Black Box Interface

Purpose: Client-side request wrapper that correlates server diagnostics
Interface: ApiClient.request(), query(), parse_api_log(), QueryCache
Hidden: Header decoding, console styling, session-expiry reset
"""

from .cache import QueryCache
from .correlator import (
    SESSION_EXPIRED_MESSAGE,
    ApiClient,
    ApiError,
    ClientSessionExpiredError,
    parse_api_log,
    render_api_log,
)

__all__ = [
    "SESSION_EXPIRED_MESSAGE",
    "ApiClient",
    "ApiError",
    "ClientSessionExpiredError",
    "QueryCache",
    "parse_api_log",
    "render_api_log",
]
