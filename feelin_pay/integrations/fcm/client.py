"""
FCM HTTP v1 client for topic push notifications.

Documentation: https://firebase.google.com/docs/reference/fcm/rest/v1/projects.messages/send

SECURITY:
- The service-account token is minted per send and never logged
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

import httpx

from feelin_pay.integrations.fcm.exceptions import (
    FCMError,
    FCMAuthenticationError,
    FCMRateLimitError,
    FCMConnectionError,
    FCMTimeoutError,
)
from feelin_pay.integrations.google.auth import ServiceAccountTokenProvider
from feelin_pay.integrations.google.exceptions import GoogleCredentialError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://fcm.googleapis.com/v1"
DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass
class PushMessage:
    """A topic message. FCM requires data values to be strings."""
    topic: str
    title: str
    body: str
    data: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": {
                "topic": self.topic,
                "notification": {"title": self.title, "body": self.body},
                "data": {k: str(v) for k, v in self.data.items()},
                "android": {"priority": "high"},
            }
        }


class FCMClient:
    """Async client for FCM HTTP v1."""

    def __init__(
        self,
        project_id: Optional[str],
        token_provider: ServiceAccountTokenProvider,
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            project_id: Firebase project id
            token_provider: Mints service-account tokens with the messaging scope
            base_url: FCM API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.project_id = project_id
        self.token_provider = token_provider
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "FCMClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def send(self, message: PushMessage) -> str:
        """
        Publish a message.

        Returns:
            The FCM message name

        Raises:
            FCMError: On configuration, credential or API errors
        """
        if not self.project_id:
            raise FCMError("Firebase project id is not configured")

        try:
            access = await self.token_provider.get_token()
        except GoogleCredentialError as e:
            raise FCMAuthenticationError(message=e.message)

        url = f"{self.base_url}/projects/{self.project_id}/messages:send"
        try:
            response = await self._client.post(
                url,
                json=message.to_dict(),
                headers={"Authorization": f"Bearer {access.token}"},
            )
        except httpx.TimeoutException as e:
            logger.error("FCM timeout", extra={"topic": message.topic, "error": str(e)})
            raise FCMTimeoutError(f"Request timeout: {e}")
        except httpx.RequestError as e:
            logger.error("FCM connection error", extra={"topic": message.topic, "error": str(e)})
            raise FCMConnectionError(f"Connection error: {e}")

        if response.status_code in (401, 403):
            raise FCMAuthenticationError(status_code=response.status_code)

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise FCMRateLimitError(
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
            )

        if response.status_code >= 400:
            try:
                error_body = response.json()
            except ValueError:
                error_body = {}
            error = error_body.get("error", {}) if isinstance(error_body, dict) else {}
            raise FCMError(
                message=f"FCM API error: {response.status_code} - {error.get('message', '')}",
                status_code=response.status_code,
                code=error.get("status"),
                response=error_body if isinstance(error_body, dict) else {},
            )

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict) or not body.get("name"):
            logger.error(
                "FCM returned a malformed body",
                extra={"topic": message.topic, "status_code": response.status_code},
            )
            raise FCMError(
                message=f"Malformed response from FCM: {response.status_code}",
                status_code=response.status_code,
                code="MALFORMED_RESPONSE",
            )

        name = body["name"]
        logger.info("Push message sent", extra={"topic": message.topic, "message_name": name})
        return name
