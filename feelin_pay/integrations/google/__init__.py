"""
Google Workspace integration for the payment ledger.

Drive v3 for folders and file placement, Sheets v4 for the daily ledger
spreadsheets, google-auth for token minting.
"""

from feelin_pay.integrations.google.auth import (
    AccessToken,
    ServiceAccountTokenProvider,
    refresh_delegated_token,
)
from feelin_pay.integrations.google.client import GoogleWorkspaceClient
from feelin_pay.integrations.google.exceptions import (
    GoogleAPIError,
    GoogleAuthenticationError,
    GoogleNotFoundError,
    GoogleRateLimitError,
    GoogleConnectionError,
    GoogleTimeoutError,
    GoogleCredentialError,
    is_resource_unavailable,
)
from feelin_pay.integrations.google.models import AppendResult, DriveFile

__all__ = [
    # Auth
    "AccessToken",
    "ServiceAccountTokenProvider",
    "refresh_delegated_token",
    # Client
    "GoogleWorkspaceClient",
    # Exceptions
    "GoogleAPIError",
    "GoogleAuthenticationError",
    "GoogleNotFoundError",
    "GoogleRateLimitError",
    "GoogleConnectionError",
    "GoogleTimeoutError",
    "GoogleCredentialError",
    "is_resource_unavailable",
    # Models
    "AppendResult",
    "DriveFile",
]
