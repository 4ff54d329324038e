"""Custom TTS exceptions and failure classification."""

import re
from enum import Enum

import httpx


class ErrorCode(str, Enum):
    """Failure classes reported by speech synthesis."""

    AUTH_INVALID = "AUTH_INVALID"
    RATE_LIMITED = "RATE_LIMITED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


TRANSIENT_CODES = frozenset(
    {ErrorCode.RATE_LIMITED, ErrorCode.SERVICE_UNAVAILABLE, ErrorCode.NETWORK_ERROR}
)

_STATUS_PATTERN = re.compile(r"\b([45]\d\d)\b")


class TTSError(Exception):
    """Base exception for TTS-related errors."""

    default_code = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        code: ErrorCode | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code or self.default_code
        self.original_error = original_error

    @property
    def retryable(self) -> bool:
        """Whether a later attempt of the same call may succeed."""
        return self.code in TRANSIENT_CODES

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, code={self.code.value})"


class TTSAuthError(TTSError):
    """Exception raised for authentication failures.

    This typically occurs when:
    - API key is missing or invalid
    - Account has insufficient credits
    - API key permissions are insufficient
    """

    default_code = ErrorCode.AUTH_INVALID


class TTSValidationError(TTSError):
    """Exception raised when the request itself is unacceptable.

    Empty or oversized text, unknown voices and rejected parameters all end
    up here. Retrying never helps.
    """

    default_code = ErrorCode.VALIDATION_ERROR


class TTSNetworkError(TTSError):
    """Exception raised when the service could not be reached."""

    default_code = ErrorCode.NETWORK_ERROR


class TTSAPIError(TTSError):
    """Exception raised for API communication errors.

    This typically occurs when:
    - API server is unavailable (5xx errors)
    - Rate limits are exceeded (429 error)
    - Request format is invalid (4xx errors)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        original_error: Exception | None = None,
        code: ErrorCode | None = None,
    ) -> None:
        super().__init__(
            message, code or code_for_status(status_code), original_error
        )
        self.status_code = status_code


def code_for_status(status_code: int | None) -> ErrorCode:
    """Map an HTTP status code onto an error class."""
    if status_code is None:
        return ErrorCode.UNKNOWN
    if status_code in (401, 403):
        return ErrorCode.AUTH_INVALID
    if status_code == 429:
        return ErrorCode.RATE_LIMITED
    if status_code in (400, 413, 422):
        return ErrorCode.VALIDATION_ERROR
    if 500 <= status_code < 600:
        return ErrorCode.SERVICE_UNAVAILABLE
    return ErrorCode.UNKNOWN


def _status_from(error: Exception) -> int | None:
    status = getattr(error, "status_code", None)
    if isinstance(status, int):
        return status
    match = _STATUS_PATTERN.search(str(error))
    return int(match.group(1)) if match else None


def classify_error(error: Exception) -> TTSError:
    """Wrap an arbitrary synthesis failure in the matching TTSError.

    Already-typed errors pass through untouched. SDK errors are classified by
    their HTTP status, transport failures become network errors.
    """
    if isinstance(error, TTSError):
        return error

    if isinstance(error, (httpx.TransportError, ConnectionError, TimeoutError)):
        return TTSNetworkError(f"Network error: {error}", original_error=error)

    status = _status_from(error)
    if status is None and "unauthorized" in str(error).lower():
        status = 401

    code = code_for_status(status)
    if code is ErrorCode.AUTH_INVALID:
        return TTSAuthError(f"Authentication failed: {error}", original_error=error)
    if code is ErrorCode.RATE_LIMITED:
        return TTSAPIError(f"Rate limit exceeded: {error}", status, error)
    if code is ErrorCode.VALIDATION_ERROR:
        return TTSValidationError(f"Invalid request: {error}", original_error=error)
    if code is ErrorCode.SERVICE_UNAVAILABLE:
        return TTSAPIError(f"Server error: {error}", status, error)
    return TTSAPIError(f"API call failed: {error}", status, error)


def is_transient(error: BaseException) -> bool:
    """Return True for failures worth retrying under the default policy."""
    return isinstance(error, TTSError) and error.retryable
