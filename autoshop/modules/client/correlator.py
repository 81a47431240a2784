"""
Client Log Correlator

Client-side counterpart of the diagnostic interceptor: every response is
checked for an X-API-Log header and rendered on the console, and the
inactivity sentinel triggers a full client reset before any error is raised.
"""

import json
import logging
from typing import Any, Callable, Literal, Mapping, Optional

import httpx
from pydantic import ValidationError
from rich.console import Console
from rich.text import Text

from autoshop.modules.api.models import API_LOG_HEADER, DiagnosticLogRecord
from autoshop.modules.errors.exceptions import INACTIVITY_TIMEOUT

from .cache import QueryCache

SESSION_EXPIRED_MESSAGE = "Session expired due to inactivity. Please login again."

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Non-success API response."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


class ClientSessionExpiredError(ApiError):
    """Server ended the session for inactivity; client state has been reset."""

    def __init__(self, status_code: int = 401):
        super().__init__(SESSION_EXPIRED_MESSAGE, status_code=status_code, code=INACTIVITY_TIMEOUT)


def parse_api_log(value: Optional[str]) -> Optional[DiagnosticLogRecord]:
    """
    Decode an X-API-Log header value.

    Pure function: the same input always yields an equal record.

    Raises:
        ValueError: If the value is not a valid diagnostic record
    """
    if not value:
        return None
    try:
        return DiagnosticLogRecord.model_validate_json(value)
    except ValidationError as e:
        raise ValueError(f"Invalid {API_LOG_HEADER} header: {e}") from e


def render_api_log(record: DiagnosticLogRecord) -> Text:
    """Build the styled console line for a record."""
    status_style = "bold red" if record.is_error else "bold green"
    text = Text()
    text.append(f"[API {record.method}] ", style="bold blue")
    text.append(f"{record.path} ", style="grey50")
    text.append(f"{record.status} ", style=status_style)
    text.append(f"{record.duration}ms", style="magenta")
    return text


def error_body(response: httpx.Response) -> Optional[Mapping]:
    """JSON object body of a response, or None."""
    try:
        body = json.loads(response.text)
    except ValueError:
        return None
    return body if isinstance(body, Mapping) else None


def default_navigate(path: str) -> None:
    logger.info(f"Navigation reset to {path}")


class ApiClient:
    """
    Thin wrapper around httpx.AsyncClient for talking to the API.

    Cookies persist across calls, so the server-side session is reused.
    Nothing is retried; a failed call raises straight to the caller.
    """

    def __init__(
        self,
        base_url: str = "",
        cache: Optional[QueryCache] = None,
        navigate: Callable[[str], None] = default_navigate,
        console: Optional[Console] = None,
        logger: Optional[logging.Logger] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        """
        Initialize API client.

        Args:
            base_url: Server origin, e.g. https://shop.example.com
            cache: Query cache cleared when the session expires
            navigate: Called with "/" to send the user back to the root
            console: Rich console for diagnostic output
            logger: Local log sink for parse failures
            transport: Optional httpx transport (e.g. httpx.ASGITransport)
            timeout: Request timeout in seconds
        """
        self.cache = cache if cache is not None else QueryCache()
        self.navigate = navigate
        self.console = console or Console(stderr=True)
        self.logger = logger or logging.getLogger(__name__)
        self._client = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    def log_api_response(self, response: httpx.Response) -> Optional[DiagnosticLogRecord]:
        """Render the diagnostic header, if present. Never raises."""
        value = response.headers.get(API_LOG_HEADER)
        if not value:
            return None

        try:
            record = parse_api_log(value)
        except ValueError as e:
            self.logger.warning(f"Failed to parse API log header: {e}")
            return None

        self.console.print(render_api_log(record), style="red" if record.is_error else None)
        return record

    def reset_client_state(self) -> None:
        self.cache.clear()
        self.navigate("/")

    def raise_for_api_status(self, response: httpx.Response) -> None:
        """
        Raise for non-success responses.

        The inactivity sentinel is checked first so the client state is
        cleared no matter how the caller handles the error.

        Raises:
            ClientSessionExpiredError: Session ended for inactivity
            ApiError: Any other non-success response
        """
        if response.is_success:
            return

        text = response.text
        body = error_body(response)
        if body is None:
            raise ApiError(text or response.reason_phrase, status_code=response.status_code)

        if body.get("code") == INACTIVITY_TIMEOUT:
            self.reset_client_state()
            raise ClientSessionExpiredError(status_code=response.status_code)

        message = body.get("error") or body.get("message") or text or response.reason_phrase
        raise ApiError(message, status_code=response.status_code, code=body.get("code"))

    async def request(self, method: str, url: str, data: Any = None) -> httpx.Response:
        """Send a request, with a JSON body when data is given."""
        if data is not None:
            response = await self._client.request(method, url, json=data)
        else:
            response = await self._client.request(method, url)

        self.log_api_response(response)
        self.raise_for_api_status(response)
        return response

    async def query(
        self, *key: str, on_401: Literal["throw", "return_null"] = "throw"
    ) -> Any:
        """
        GET the URL formed by joining the key parts, through the cache.

        Args:
            key: URL parts, e.g. ("/api/customers", "42")
            on_401: "return_null" turns a 401 into None instead of raising
        """
        if key in self.cache:
            return self.cache.get(key)

        response = await self._client.get("/".join(key))
        self.log_api_response(response)

        if on_401 == "return_null" and response.status_code == 401:
            body = error_body(response)
            if body is None or body.get("code") != INACTIVITY_TIMEOUT:
                return None

        self.raise_for_api_status(response)
        data = response.json()
        self.cache.set(key, data)
        return data
