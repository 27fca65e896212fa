"""Failure taxonomy shared by the adapters and the PDF pipeline."""


class FederationError(Exception):
    """Base class for every error raised inside the federation layer."""


class NetworkError(FederationError):
    """Transport-level failure (connection refused, reset, timeout). Retryable."""


class RateLimited(FederationError):
    """Upstream answered 429. Retryable, honouring Retry-After when present."""

    def __init__(self, retry_after: float | None = None):
        self.retry_after = retry_after
        message = "Rate limited (429)"
        if retry_after is not None:
            message += f", retry after {retry_after}s"
        super().__init__(message)


class HttpError(FederationError):
    """Non-2xx response other than 429. Never retried."""

    def __init__(self, status_code: int, message: str | None = None):
        self.status_code = status_code
        super().__init__(message or f"HTTP error: {status_code}")


class NotFound(HttpError):
    """404 on a detail lookup. Adapters turn this into ``None``."""

    def __init__(self, message: str | None = None):
        super().__init__(404, message or "Not found")


class PdfValidationError(FederationError):
    """Downloaded payload does not look like a PDF."""


class RetriesExhausted(FederationError):
    """Every attempt of a retryable operation failed."""

    def __init__(self, attempts: int, last_error: Exception | None = None):
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"Request failed after {attempts} attempts{detail}")
