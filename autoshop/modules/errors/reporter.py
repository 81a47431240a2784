"""
Error Reporting Facade.

Unexpected failures go through ErrorReporter so that the
server log always has the full picture and the client body only carries
internals in development.
"""

import logging
import traceback
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from autoshop.config import Environment
from autoshop.modules.api.models import ErrorBody

GENERIC_CLIENT_MESSAGE = "An error occurred"


@dataclass
class ErrorLogOptions:
    """What failed, where, and on whose behalf."""
    error: Any
    context: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    user_role: Optional[str] = None
    ip_address: Optional[str] = None


def error_message(error: Any) -> str:
    if isinstance(error, BaseException):
        return str(error) or error.__class__.__name__
    return str(error)


def error_stack(error: Any) -> Optional[str]:
    if isinstance(error, BaseException) and error.__traceback__ is not None:
        return "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return None


def status_from_error(error: Any, default: int = 500) -> int:
    """Use the error's declared status, if it has a sane one."""
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and 400 <= value <= 599:
            return value
    return default


class ErrorReporter:
    def __init__(self, environment: Environment, logger: Optional[logging.Logger] = None):
        """
        Initialize error reporter.

        Args:
            environment: Controls whether details and stack reach the client
            logger: Sink for server-side error entries
        """
        self.environment = environment
        self.logger = logger or logging.getLogger(__name__)

    def log(self, options: ErrorLogOptions) -> Dict[str, Any]:
        """Log full internal detail regardless of environment."""
        entry = {
            "message": error_message(options.error),
            "stack": error_stack(options.error),
            "user_id": options.user_id,
            "user_name": options.user_name,
            "user_role": options.user_role,
            "ip_address": options.ip_address,
            "timestamp": datetime.now(UTC).isoformat(),
        }
        self.logger.error(f"Error in {options.context}: {entry}")
        return entry

    def build_body(
        self,
        error: Any,
        client_message: Optional[str] = None,
        code: Optional[str] = None,
    ) -> ErrorBody:
        message = error_message(error)
        if client_message is None:
            client_message = message if self.environment.is_development else GENERIC_CLIENT_MESSAGE

        body = ErrorBody(error=client_message, code=code)
        if self.environment.is_development:
            body.details = message
            body.stack = error_stack(error)
        return body

    def respond(
        self,
        options: ErrorLogOptions,
        status_code: int = 500,
        client_message: Optional[str] = None,
        code: Optional[str] = None,
    ) -> JSONResponse:
        """
        Log a failure and build the sanitized client response.

        Args:
            options: Error plus context label and identity fields
            status_code: HTTP status for the response
            client_message: Overrides the environment-dependent client message
            code: Optional machine-readable error code

        Returns:
            JSONResponse for the caller to return
        """
        self.log(options)
        body = self.build_body(options.error, client_message=client_message, code=code)
        return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))

    def respond_unhandled(self, request: Request, exc: BaseException) -> JSONResponse:
        """Outer-boundary handler for exceptions nobody else caught."""
        options = options_from_request(request, exc, context=f"{request.method} {request.url.path}")
        status_code = status_from_error(exc)
        # Outside production the real message is shown, but internals stay development-only
        client_message = GENERIC_CLIENT_MESSAGE if self.environment.is_production else error_message(exc)
        code = getattr(exc, "code", None)
        return self.respond(
            options,
            status_code=status_code,
            client_message=client_message,
            code=code if isinstance(code, str) else None,
        )


def options_from_request(request: Request, error: Any, context: str) -> ErrorLogOptions:
    """Collect identity fields from the session and client address."""
    session = getattr(request.state, "session", None) or {}
    return ErrorLogOptions(
        error=error,
        context=context,
        user_id=session.get("user_id"),
        user_name=session.get("user_name"),
        user_role=session.get("user_role"),
        ip_address=request.client.host if request.client else None,
    )
