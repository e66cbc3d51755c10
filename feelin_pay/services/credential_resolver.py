"""
Credential resolution for ledger writes.

A request runs under exactly one CredentialSource, chosen once:

1. Delegated(token) supplied with the request
2. The owner's stored delegated token, refreshed first when it expires
   within the refresh margin (the refreshed token is persisted encrypted)
3. SystemDefault: the service account

Resolution never fails the payment: any problem with stored credentials
falls through to SystemDefault.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from sqlalchemy.orm import Session

from feelin_pay.config.settings import Settings
from feelin_pay.integrations.google.auth import (
    AccessToken,
    ServiceAccountTokenProvider,
    refresh_delegated_token,
)
from feelin_pay.integrations.google.exceptions import GoogleCredentialError
from feelin_pay.models.owner import Owner
from feelin_pay.platform.clock import utc_now
from feelin_pay.platform.secrets import EncryptionError, decrypt_secret, encrypt_secret
from feelin_pay.repositories.owner_repository import OwnerRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delegated:
    """Act as the owner, with their own OAuth access token."""
    token: str

    @property
    def is_delegated(self) -> bool:
        return True

    def __repr__(self) -> str:
        return "Delegated(token=[REDACTED])"


@dataclass(frozen=True)
class SystemDefault:
    """Act as the system service account."""

    @property
    def is_delegated(self) -> bool:
        return False


CredentialSource = Union[Delegated, SystemDefault]


class DelegatedTokenService:
    """Reads, refreshes and persists an owner's delegated Google token."""

    def __init__(self, db_session: Session, settings: Settings):
        self.owners = OwnerRepository(db_session)
        self.settings = settings

    def _needs_refresh(self, owner: Owner, now: datetime) -> bool:
        if not owner.google_access_token_encrypted or owner.google_token_expires_at is None:
            return True
        margin = timedelta(minutes=self.settings.token_refresh_margin_minutes)
        return owner.google_token_expires_at - now <= margin

    async def _refresh(self, owner: Owner, now: datetime) -> Optional[str]:
        refresh_token = await decrypt_secret(owner.google_refresh_token_encrypted)
        access: AccessToken = await refresh_delegated_token(
            refresh_token,
            client_id=self.settings.google_client_id,
            client_secret=self.settings.google_client_secret,
            token_uri=self.settings.google_token_uri,
            timeout=self.settings.external_timeout_seconds,
        )
        self.owners.save_google_tokens(
            owner,
            access_token_encrypted=await encrypt_secret(access.token),
            expires_at=access.expires_at or now + timedelta(hours=1),
            refresh_token_encrypted=(
                await encrypt_secret(access.refresh_token) if access.refresh_token else None
            ),
        )
        logger.info("Delegated Google token refreshed", extra={"owner_id": owner.id})
        return access.token

    async def get_valid_token(self, owner: Owner, now: Optional[datetime] = None) -> Optional[str]:
        """
        Return a usable delegated access token for the owner, or None.

        Errors while decrypting or refreshing are logged and yield None.
        """
        if not owner.has_delegated_credentials:
            return None

        now = now or utc_now()
        try:
            if not self._needs_refresh(owner, now):
                return await decrypt_secret(owner.google_access_token_encrypted)
            if not owner.google_refresh_token_encrypted:
                logger.info("Delegated token expired with no refresh token", extra={"owner_id": owner.id})
                return None
            return await self._refresh(owner, now)
        except (GoogleCredentialError, EncryptionError, ValueError) as e:
            logger.warning(
                "Delegated token unavailable, falling back to service account",
                extra={"owner_id": owner.id, "error": str(e), "error_type": type(e).__name__},
            )
            return None


class CredentialResolver:
    """Chooses the CredentialSource for a request and turns it into a bearer token."""

    def __init__(
        self,
        token_service: DelegatedTokenService,
        service_account: ServiceAccountTokenProvider,
    ):
        self.token_service = token_service
        self.service_account = service_account

    async def resolve(
        self,
        owner: Owner,
        request_token: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> CredentialSource:
        """Pick the credential source. Called once per request."""
        if request_token:
            return Delegated(request_token)

        stored = await self.token_service.get_valid_token(owner, now)
        if stored:
            return Delegated(stored)

        return SystemDefault()

    async def access_token(self, source: CredentialSource) -> str:
        """
        Bearer token for a resolved source.

        Raises:
            GoogleCredentialError: If the service account cannot mint a token
        """
        if isinstance(source, Delegated):
            return source.token
        return (await self.service_account.get_token()).token
