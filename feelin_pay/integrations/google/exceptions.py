"""
Google Drive/Sheets exceptions for error handling.

Follows the same shape as the FCM exceptions so service code can treat
both integrations uniformly.
"""

from typing import Optional, Dict, Any


class GoogleAPIError(Exception):
    """Base exception for Google Drive/Sheets API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        response: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.response = response or {}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, status_code={self.status_code})"


class GoogleAuthenticationError(GoogleAPIError):
    """Raised when the token is rejected (401) or lacks permission (403)."""

    def __init__(
        self,
        message: str = "Authentication failed - Google token may be invalid or expired",
        status_code: int = 401,
        **kwargs,
    ):
        super().__init__(message, status_code=status_code, **kwargs)


class GoogleNotFoundError(GoogleAPIError):
    """Raised when a file or folder does not exist (404)."""

    def __init__(
        self,
        message: str = "Resource not found",
        resource_id: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, status_code=404, **kwargs)
        self.resource_id = resource_id


class GoogleRateLimitError(GoogleAPIError):
    """Raised when API rate limit is exceeded (429)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded - please retry after a delay",
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after


class GoogleConnectionError(GoogleAPIError):
    """Raised when network/connection errors occur."""

    def __init__(
        self,
        message: str = "Connection error - unable to reach Google APIs",
        **kwargs,
    ):
        super().__init__(message, **kwargs)


class GoogleTimeoutError(GoogleAPIError):
    """Raised when request times out."""

    def __init__(
        self,
        message: str = "Request timed out",
        **kwargs,
    ):
        super().__init__(message, **kwargs)


class GoogleCredentialError(GoogleAPIError):
    """Raised when an access token cannot be minted or refreshed."""

    def __init__(
        self,
        message: str = "Unable to obtain Google access token",
        **kwargs,
    ):
        super().__init__(message, **kwargs)


def is_resource_unavailable(error: Exception) -> bool:
    """
    True if the error means the referenced file/folder is gone or no longer
    reachable with the current credential (404, or 403 on the resource).
    """
    if isinstance(error, GoogleNotFoundError):
        return True
    return isinstance(error, GoogleAuthenticationError) and error.status_code == 403
