"""
Diagnostic Logging Interceptor

Times API requests, logs one line per completed response, and attaches a
compact JSON summary in the X-API-Log header for client-side correlation.
Everything here is best-effort: a diagnostic failure never changes the
status, body or headers the handler produced.

Event streams are not buffered. They get a header without a captured body,
and the log line follows the last chunk.
"""

import json
import logging
import time
from datetime import UTC, datetime
from typing import Any, List, Optional, Tuple

from fastapi import Request, Response
from starlette.background import BackgroundTask
from starlette.datastructures import Headers

from autoshop.modules.api.models import API_LOG_HEADER, DiagnosticLogRecord

from .paths import in_namespace

# Open-ended bodies are forwarded as they arrive instead of being buffered
STREAMING_MEDIA_TYPES = frozenset({"text/event-stream", "application/x-ndjson"})


def is_streaming(response: Response) -> bool:
    media_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
    return media_type in STREAMING_MEDIA_TYPES


class CapturedResponse:
    """
    Buffered copy of a downstream response.

    The body is drained exactly once; build() then emits a single equivalent
    response with identical status, headers and bytes, plus any extra
    headers. The decoded JSON is available for observation only.
    """

    def __init__(self, body: bytes, status_code: int, raw_headers: List[Tuple[bytes, bytes]]):
        self.body = body
        self.status_code = status_code
        self.raw_headers = raw_headers

    @classmethod
    async def collect(cls, response: Response) -> "CapturedResponse":
        body = getattr(response, "body", None)
        if body is None:
            chunks = []
            async for chunk in response.body_iterator:
                if isinstance(chunk, str):
                    chunk = chunk.encode(response.charset)
                chunks.append(chunk)
            body = b"".join(chunks)
        return cls(body, response.status_code, list(response.raw_headers))

    @property
    def content_type(self) -> str:
        return Headers(raw=self.raw_headers).get("content-type", "")

    @property
    def is_json(self) -> bool:
        media_type = self.content_type.split(";")[0].strip().lower()
        return media_type == "application/json" or media_type.endswith("+json")

    def json(self) -> Optional[Any]:
        """Decoded JSON body, or None when the body is not JSON."""
        if not self.is_json or not self.body:
            return None
        try:
            return json.loads(self.body)
        except ValueError:
            return None

    def build(self, background: Optional[BackgroundTask] = None) -> Response:
        response = Response(content=self.body, status_code=self.status_code, background=background)
        response.raw_headers = list(self.raw_headers)
        return response


class DiagnosticLoggingMiddleware:
    """Per-request diagnostics for paths under the API prefix."""

    def __init__(
        self,
        api_prefix: str = "/api",
        max_header_bytes: int = 4096,
        max_logged_body_chars: int = 500,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize diagnostic logging middleware.

        Args:
            api_prefix: Only paths in this namespace are logged
            max_header_bytes: Serialized records above this size are not attached
            max_logged_body_chars: Truncation length for the captured body
            logger: Sink for the per-request log line
        """
        self.api_prefix = api_prefix
        self.max_header_bytes = max_header_bytes
        self.max_logged_body_chars = max_logged_body_chars
        self.logger = logger or logging.getLogger(__name__)

    def build_record(
        self,
        request: Request,
        status_code: int,
        duration_ms: int,
        payload: Optional[Any] = None,
    ) -> DiagnosticLogRecord:
        truncated = None
        if payload is not None:
            # Truncate characters, not escape sequences; to_header() escapes later
            truncated = json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
            truncated = truncated[: self.max_logged_body_chars]

        return DiagnosticLogRecord(
            method=request.method,
            path=request.url.path,
            status=status_code,
            duration=duration_ms,
            timestamp=datetime.now(UTC).isoformat(),
            response=truncated,
        )

    def serialize(self, record: DiagnosticLogRecord) -> Optional[str]:
        """Header value for the record, or None if it cannot or should not be sent."""
        try:
            value = record.to_header()
        except (TypeError, ValueError) as e:
            self.logger.error(f"Failed to serialize API log header: {e}")
            return None

        if len(value.encode("ascii")) > self.max_header_bytes:
            self.logger.debug(
                f"API log header for {record.method} {record.path} exceeds "
                f"{self.max_header_bytes} bytes, not attached"
            )
            return None
        return value

    def attach(self, response: Response, record: DiagnosticLogRecord) -> None:
        value = self.serialize(record)
        if value is None:
            return
        try:
            response.headers[API_LOG_HEADER] = value
        except (UnicodeEncodeError, ValueError) as e:
            self.logger.error(f"Failed to set API log header: {e}")

    def emit(self, record: DiagnosticLogRecord) -> None:
        """Runs only after the response has been fully sent."""
        self.logger.info(f"{record.method} {record.path} {record.status} in {record.duration}ms")

    def observe_stream(self, response: Response, record: DiagnosticLogRecord) -> None:
        """Forward chunks as they arrive and log once the stream is exhausted."""
        body_iterator = response.body_iterator

        async def forward():
            async for chunk in body_iterator:
                yield chunk
            self.emit(record)

        response.body_iterator = forward()

    async def __call__(self, request: Request, call_next):
        if not in_namespace(request.url.path, self.api_prefix):
            return await call_next(request)

        start = time.perf_counter()
        response = await call_next(request)

        if is_streaming(response):
            # Duration covers time to first byte; the body is never captured
            duration_ms = int((time.perf_counter() - start) * 1000)
            record = self.build_record(request, response.status_code, duration_ms)
            self.observe_stream(response, record)
            self.attach(response, record)
            return response

        captured = await CapturedResponse.collect(response)
        duration_ms = int((time.perf_counter() - start) * 1000)

        record = self.build_record(request, captured.status_code, duration_ms, captured.json())
        rebuilt = captured.build(background=BackgroundTask(self.emit, record))
        self.attach(rebuilt, record)
        return rebuilt
