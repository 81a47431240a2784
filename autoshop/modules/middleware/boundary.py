"""Error boundary around route handlers."""

from fastapi import Request

from autoshop.modules.errors import ErrorReporter


class ErrorBoundaryMiddleware:
    """
    Turns any exception escaping a handler into a reported error response.

    Installed innermost, so the resulting response still flows through the
    diagnostic interceptor and session persistence on its way out.
    """

    def __init__(self, reporter: ErrorReporter):
        self.reporter = reporter

    async def __call__(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            return self.reporter.respond_unhandled(request, exc)
