"""Error taxonomy for the design API boundary.

Every failure that leaves the API client is a ``FigmaApiError`` tagged with
exactly one ``ApiErrorType``. Callers branch on ``error.error_type`` rather
than on exception subclasses.
"""

from enum import Enum
from typing import Optional


class ApiErrorType(str, Enum):
    """Closed set of failure kinds."""
    AUTHENTICATION_ERROR = "auth_error"
    RATE_LIMIT_ERROR = "rate_limit"
    FILE_NOT_FOUND = "file_not_found"
    NETWORK_ERROR = "network_error"
    PARSING_ERROR = "parsing_error"
    UNKNOWN_ERROR = "unknown_error"


class FigmaApiError(Exception):
    """Typed failure raised by the design API client.

    Attributes are exposed as read-only properties.
    """

    def __init__(
        self,
        error_type: ApiErrorType,
        message: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
    ):
        """Initializes the error.

        Args:
            error_type: The failure kind.
            message: Human readable description.
            status_code: HTTP status code, if the failure came from a response.
            retry_after: Seconds the server asked us to wait (429 only).
        """
        super().__init__(message)
        self._error_type = ApiErrorType(error_type)
        self._message = message
        self._status_code = status_code
        self._retry_after = retry_after

    @property
    def error_type(self) -> ApiErrorType:
        return self._error_type

    @property
    def message(self) -> str:
        return self._message

    @property
    def status_code(self) -> Optional[int]:
        return self._status_code

    @property
    def retry_after(self) -> Optional[float]:
        return self._retry_after

    def __repr__(self) -> str:
        return (
            f"FigmaApiError(error_type={self._error_type.name}, message={self._message!r}, "
            f"status_code={self._status_code}, retry_after={self._retry_after})"
        )
