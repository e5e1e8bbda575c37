"""Custom exception classes for the application."""

from enum import Enum
from typing import List, Optional


class ProductQAException(Exception):
    """Base exception for all ProductQA errors."""

    def __init__(self, message: str = "An unexpected error occurred"):
        self.message = message
        super().__init__(self.message)


class ValidationError(ProductQAException):
    """Raised when a request has a bad shape or out-of-range values."""


class GenerationError(ProductQAException):
    """Raised when the Q&A generator fails to produce items."""


class AcquisitionErrorKind(str, Enum):
    """Why page acquisition failed."""

    RATE_LIMITED = "rate_limited"
    ACCESS_DENIED = "access_denied"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    HTTP_ERROR = "http_error"
    NETWORK_ERROR = "network_error"
    RENDER_ERROR = "render_error"


class AcquisitionError(ProductQAException):
    """Raised when page content could not be acquired.

    Attributes:
        kind: Failure category
        status_code: HTTP status of the last response, if any
        attempts: FetchAttempt records made before giving up
    """

    kind: AcquisitionErrorKind = AcquisitionErrorKind.NETWORK_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        attempts: Optional[List] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.attempts = list(attempts or [])


class RateLimitedError(AcquisitionError):
    """Server kept answering 429."""

    kind = AcquisitionErrorKind.RATE_LIMITED


class AccessDeniedError(AcquisitionError):
    """Server kept answering 403 (bot protection)."""

    kind = AcquisitionErrorKind.ACCESS_DENIED


class UpstreamUnavailableError(AcquisitionError):
    """Server kept answering 502/503."""

    kind = AcquisitionErrorKind.UPSTREAM_UNAVAILABLE


class HttpStatusError(AcquisitionError):
    """Non-retryable HTTP status (404, 410, 500, ...)."""

    kind = AcquisitionErrorKind.HTTP_ERROR

    def __init__(self, status_code: int, attempts: Optional[List] = None):
        super().__init__(
            f"HTTP status {status_code}", status_code=status_code, attempts=attempts
        )


class NetworkError(AcquisitionError):
    """DNS, connect, reset, timeout or oversized-payload failure."""

    kind = AcquisitionErrorKind.NETWORK_ERROR


class RenderError(AcquisitionError):
    """Browser rendering fallback failed.

    When raised after the lightweight budget was exhausted, ``original_error``
    holds the last lightweight failure so both causes are reported.
    """

    kind = AcquisitionErrorKind.RENDER_ERROR

    def __init__(
        self,
        message: str,
        original_error: Optional[AcquisitionError] = None,
        attempts: Optional[List] = None,
    ):
        if original_error is not None:
            message = (
                f"{message} (direct fetch failed first: "
                f"{original_error.kind.value}: {original_error.message})"
            )
        super().__init__(
            message,
            status_code=original_error.status_code if original_error else None,
            attempts=attempts,
        )
        self.original_error = original_error
