"""
Errors Module - Black Box Interface

Purpose: Uniform failure reporting for the request pipeline
Interface: ErrorReporter.respond(), respond_unhandled(),
           register_exception_handlers(), exception types
Hidden: Log entry layout, environment-gated body fields
"""

from .exceptions import (
    INACTIVITY_TIMEOUT,
    PipelineError,
    SessionExpiredError,
    SessionStoreError,
)
from .handlers import register_exception_handlers
from .reporter import (
    GENERIC_CLIENT_MESSAGE,
    ErrorLogOptions,
    ErrorReporter,
    options_from_request,
    status_from_error,
)

__all__ = [
    "GENERIC_CLIENT_MESSAGE",
    "INACTIVITY_TIMEOUT",
    "ErrorLogOptions",
    "ErrorReporter",
    "PipelineError",
    "SessionExpiredError",
    "SessionStoreError",
    "options_from_request",
    "register_exception_handlers",
    "status_from_error",
]
