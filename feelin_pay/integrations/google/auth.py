"""
Access-token minting for Google APIs.

Two sources:
- ServiceAccountTokenProvider: the system service account (google-auth,
  key file from settings). Used when no delegated owner token is available.
- refresh_delegated_token: exchanges an owner's stored refresh token for a
  fresh access token.

google-auth refreshes synchronously over its requests transport, so both
run in a worker thread to keep the event loop free.

SECURITY: Tokens are never logged.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

import google.auth.exceptions
import google.auth.transport.requests
import google.oauth2.credentials
from google.oauth2 import service_account

from feelin_pay.integrations.google.exceptions import GoogleCredentialError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessToken:
    """A bearer token and its expiry (aware UTC, if known)."""
    token: str
    expires_at: Optional[datetime] = None
    refresh_token: Optional[str] = None


def _aware(expiry: Optional[datetime]) -> Optional[datetime]:
    # google-auth reports expiry as naive UTC
    if expiry is None:
        return None
    if expiry.tzinfo is None:
        return expiry.replace(tzinfo=timezone.utc)
    return expiry


class ServiceAccountTokenProvider:
    """
    Mints access tokens for the system service account.

    Credentials are loaded lazily from the key file and refreshed by
    google-auth only when the cached token is no longer valid.
    """

    def __init__(self, key_file: Optional[str], scopes: List[str], timeout: float = 10.0):
        self.key_file = key_file
        self.scopes = list(scopes)
        self.timeout = timeout
        self._credentials: Optional[service_account.Credentials] = None
        self._lock = asyncio.Lock()

    def _load(self) -> service_account.Credentials:
        if self._credentials is None:
            if not self.key_file:
                raise GoogleCredentialError("Service account key file is not configured")
            try:
                self._credentials = service_account.Credentials.from_service_account_file(
                    self.key_file, scopes=self.scopes
                )
            except (OSError, ValueError) as e:
                raise GoogleCredentialError(f"Cannot load service account key: {e}")
        return self._credentials

    def _refresh_blocking(self) -> AccessToken:
        credentials = self._load()
        if not credentials.valid:
            request = google.auth.transport.requests.Request()
            try:
                credentials.refresh(request)
            except google.auth.exceptions.GoogleAuthError as e:
                raise GoogleCredentialError(f"Service account token refresh failed: {e}")
            logger.info("Service account token refreshed")
        return AccessToken(token=credentials.token, expires_at=_aware(credentials.expiry))

    async def get_token(self) -> AccessToken:
        """Return a valid service-account access token."""
        async with self._lock:
            try:
                return await asyncio.wait_for(
                    asyncio.to_thread(self._refresh_blocking), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                raise GoogleCredentialError("Service account token refresh timed out")


def _refresh_delegated_blocking(
    refresh_token: str,
    client_id: str,
    client_secret: str,
    token_uri: str,
) -> AccessToken:
    credentials = google.oauth2.credentials.Credentials(
        token=None,
        refresh_token=refresh_token,
        client_id=client_id,
        client_secret=client_secret,
        token_uri=token_uri,
    )
    try:
        credentials.refresh(google.auth.transport.requests.Request())
    except google.auth.exceptions.GoogleAuthError as e:
        raise GoogleCredentialError(f"Delegated token refresh failed: {e}")

    return AccessToken(
        token=credentials.token,
        expires_at=_aware(credentials.expiry),
        # Google only returns a new refresh token when it rotates
        refresh_token=credentials.refresh_token if credentials.refresh_token != refresh_token else None,
    )


async def refresh_delegated_token(
    refresh_token: str,
    client_id: Optional[str],
    client_secret: Optional[str],
    token_uri: str,
    timeout: float = 10.0,
) -> AccessToken:
    """
    Exchange a stored refresh token for a new access token.

    Raises:
        GoogleCredentialError: If OAuth client config is missing or Google rejects the refresh
    """
    if not client_id or not client_secret:
        raise GoogleCredentialError("Google OAuth client is not configured")

    try:
        return await asyncio.wait_for(
            asyncio.to_thread(
                _refresh_delegated_blocking, refresh_token, client_id, client_secret, token_uri
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        raise GoogleCredentialError("Delegated token refresh timed out")
