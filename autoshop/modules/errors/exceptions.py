"""Exception types shared by the request pipeline."""

INACTIVITY_TIMEOUT = "INACTIVITY_TIMEOUT"


class PipelineError(Exception):
    """Base error carrying an HTTP status and optional machine-readable code."""

    status_code = 500
    code = None

    def __init__(self, message: str, status_code: int = None, code: str = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class SessionExpiredError(PipelineError):
    """Session exceeded the idle timeout and has been invalidated."""

    status_code = 401
    code = INACTIVITY_TIMEOUT

    def __init__(self, message: str = "Session expired due to inactivity"):
        super().__init__(message)


class SessionStoreError(PipelineError):
    """Session backend unavailable or failed."""

    status_code = 503
