"""
Middleware Module - Black Box Interface

Purpose: The request pipeline around route handlers
Interface: SessionMiddleware, InactivityGuard, DiagnosticLoggingMiddleware,
           ErrorBoundaryMiddleware; each is a (request, call_next) callable
Hidden: Cookie signing, idle bookkeeping, response capture

Each middleware receives its collaborators explicitly and can be tested alone.
"""

from .boundary import ErrorBoundaryMiddleware
from .diagnostics import API_LOG_HEADER, CapturedResponse, DiagnosticLoggingMiddleware
from .inactivity import InactivityGuard
from .paths import in_namespace, should_skip
from .session import SessionMiddleware

__all__ = [
    "API_LOG_HEADER",
    "CapturedResponse",
    "DiagnosticLoggingMiddleware",
    "ErrorBoundaryMiddleware",
    "InactivityGuard",
    "SessionMiddleware",
    "in_namespace",
    "should_skip",
]
