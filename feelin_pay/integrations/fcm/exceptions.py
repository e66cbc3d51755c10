"""
Firebase Cloud Messaging exceptions.

Same shape as the Google Workspace exceptions.
"""

from typing import Optional, Dict, Any


class FCMError(Exception):
    """Base exception for FCM API errors."""

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


class FCMAuthenticationError(FCMError):
    """Raised when the service-account token is rejected (401/403)."""

    def __init__(
        self,
        message: str = "Authentication failed - FCM credentials may be invalid",
        status_code: int = 401,
        **kwargs,
    ):
        super().__init__(message, status_code=status_code, **kwargs)


class FCMRateLimitError(FCMError):
    """Raised when the project's send quota is exceeded (429)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded - please retry after a delay",
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after


class FCMConnectionError(FCMError):
    """Raised when network/connection errors occur."""

    def __init__(
        self,
        message: str = "Connection error - unable to reach FCM",
        **kwargs,
    ):
        super().__init__(message, **kwargs)


class FCMTimeoutError(FCMError):
    """Raised when request times out."""

    def __init__(
        self,
        message: str = "Request timed out",
        **kwargs,
    ):
        super().__init__(message, **kwargs)
