"""
Unit tests for credential resolution.

Order: request token, stored delegated token (refreshed within the
5 minute margin and persisted encrypted), system service account.
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from feelin_pay.integrations.google.auth import AccessToken
from feelin_pay.integrations.google.exceptions import GoogleCredentialError
from feelin_pay.platform.secrets import decrypt_secret, encrypt_secret
from feelin_pay.services.credential_resolver import (
    CredentialResolver,
    Delegated,
    DelegatedTokenService,
    SystemDefault,
)
from feelin_pay.tests.fakes import FakeServiceAccount

REFRESH_PATH = "feelin_pay.services.credential_resolver.refresh_delegated_token"


@pytest.fixture
def service_account():
    return FakeServiceAccount(token="system-token")


@pytest.fixture
def resolver(db_session, settings, service_account):
    return CredentialResolver(DelegatedTokenService(db_session, settings), service_account)


async def _owner_with_tokens(make_owner, now, expires_in: timedelta, refresh: bool = True):
    return make_owner(
        google_access_token_encrypted=await encrypt_secret("stored-access"),
        google_refresh_token_encrypted=await encrypt_secret("stored-refresh") if refresh else None,
        google_token_expires_at=now + expires_in,
    )


class TestCredentialResolver:

    @pytest.mark.asyncio
    async def test_request_token_wins(self, resolver, make_owner, now):
        owner = await _owner_with_tokens(make_owner, now, timedelta(hours=1))

        source = await resolver.resolve(owner, "request-token", now)

        assert source == Delegated("request-token")

    @pytest.mark.asyncio
    async def test_valid_stored_token_is_used_without_refresh(self, resolver, make_owner, now):
        owner = await _owner_with_tokens(make_owner, now, timedelta(minutes=30))

        with patch(REFRESH_PATH, new_callable=AsyncMock) as mock_refresh:
            source = await resolver.resolve(owner, None, now)

        assert source == Delegated("stored-access")
        mock_refresh.assert_not_called()

    @pytest.mark.asyncio
    async def test_token_inside_margin_is_refreshed_and_persisted(
        self, resolver, db_session, make_owner, now
    ):
        owner = await _owner_with_tokens(make_owner, now, timedelta(minutes=4))
        refreshed = AccessToken(token="fresh-access", expires_at=now + timedelta(hours=1))

        with patch(REFRESH_PATH, new=AsyncMock(return_value=refreshed)) as mock_refresh:
            source = await resolver.resolve(owner, None, now)

        assert source == Delegated("fresh-access")
        assert mock_refresh.await_args.args[0] == "stored-refresh"
        db_session.refresh(owner)
        assert await decrypt_secret(owner.google_access_token_encrypted) == "fresh-access"
        assert owner.google_access_token_encrypted != "fresh-access"
        assert owner.google_token_expires_at == now + timedelta(hours=1)
        assert await decrypt_secret(owner.google_refresh_token_encrypted) == "stored-refresh"

    @pytest.mark.asyncio
    async def test_failed_refresh_falls_back_to_system(self, resolver, make_owner, now):
        owner = await _owner_with_tokens(make_owner, now, timedelta(minutes=-10))

        with patch(REFRESH_PATH, new=AsyncMock(side_effect=GoogleCredentialError("invalid_grant"))):
            source = await resolver.resolve(owner, None, now)

        assert source == SystemDefault()

    @pytest.mark.asyncio
    async def test_expired_token_without_refresh_token_falls_back(self, resolver, make_owner, now):
        owner = await _owner_with_tokens(make_owner, now, timedelta(minutes=1), refresh=False)

        assert await resolver.resolve(owner, None, now) == SystemDefault()

    @pytest.mark.asyncio
    async def test_owner_without_credentials_uses_system(self, resolver, make_owner, now):
        assert await resolver.resolve(make_owner(), None, now) == SystemDefault()

    @pytest.mark.asyncio
    async def test_access_token_for_each_source(self, resolver, service_account):
        assert await resolver.access_token(Delegated("abc")) == "abc"
        assert await resolver.access_token(SystemDefault()) == "system-token"
        assert service_account.calls == 1

    def test_delegated_repr_hides_token(self):
        assert "abc" not in repr(Delegated("abc"))
