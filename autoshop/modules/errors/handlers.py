"""Application-level exception handlers."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .reporter import ErrorReporter


def register_exception_handlers(app: FastAPI, reporter: ErrorReporter) -> None:
    """Render every failure with the {"error": ...} body contract."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        """Handle failures reported by handlers via HTTPException."""
        reporter.logger.warning(
            f"{request.method} {request.url.path} failed with {exc.status_code}: {exc.detail}"
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        reporter.logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        content = {"error": "Invalid request"}
        if reporter.environment.is_development:
            content["details"] = str(exc.errors())
        return JSONResponse(status_code=422, content=content)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        """Last resort for failures raised by the pipeline itself."""
        return reporter.respond_unhandled(request, exc)
