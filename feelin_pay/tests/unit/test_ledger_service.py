"""
Unit tests for ledger persistence with auto-heal.

Covers:
- First write creates folder (shared with owner under system credential),
  daily sheet with header, and appends the row
- Existing folder and sheet are reused
- Missing stored folder heals exactly once and persists the new folder id
- Repeated failure after healing reports failure without raising
- Non-resource failures (timeouts) are not healed
- Trashed folders are detected before a new sheet is created
- Malformed 2xx responses become a failed outcome
"""

from datetime import datetime, timezone
from decimal import Decimal

import httpx
import pytest

from feelin_pay.constants.business import LEDGER_HEADER_ROW
from feelin_pay.integrations.google.client import GoogleWorkspaceClient
from feelin_pay.integrations.google.exceptions import GoogleNotFoundError, GoogleTimeoutError
from feelin_pay.repositories.owner_repository import OwnerRepository
from feelin_pay.services.credential_resolver import (
    CredentialResolver,
    Delegated,
    DelegatedTokenService,
    SystemDefault,
)
from feelin_pay.services.ledger_service import LedgerEntry, LedgerService, LedgerStatus
from feelin_pay.tests.fakes import FakeGoogleWorkspace, FakeServiceAccount

FOLDER_NAME = "Reporte de Pagos - Feelin Pay"

# 2025-03-11 03:15:42 UTC is 2025-03-10 22:15:42 business time
RECEIVED_AT = datetime(2025, 3, 11, 3, 15, 42, tzinfo=timezone.utc)


@pytest.fixture
def google():
    return FakeGoogleWorkspace()


@pytest.fixture
def ledger(db_session, settings, google):
    credentials = CredentialResolver(DelegatedTokenService(db_session, settings), FakeServiceAccount())
    return LedgerService(google, credentials, OwnerRepository(db_session), settings)


def _entry(**overrides) -> LedgerEntry:
    defaults = {
        "payer_name": "Juan Perez",
        "amount": Decimal("25.50"),
        "received_at": RECEIVED_AT,
        "security_code": "123",
        "method": "yape",
    }
    defaults.update(overrides)
    return LedgerEntry(**defaults)


class TestLedgerEntry:

    def test_sheet_name_uses_business_local_date(self):
        assert _entry().sheet_name == "10-03-2025"

    def test_row_layout(self):
        assert _entry().to_row() == ["Juan Perez", "25.50", "10/03/2025 22:15:42", "123", "Yape"]

    def test_plin_without_code_has_empty_code_column(self):
        row = _entry(method="plin", security_code=None).to_row()

        assert row[3] == ""
        assert row[4] == "Plin"


class TestLedgerWrite:

    @pytest.mark.asyncio
    async def test_first_write_creates_folder_sheet_and_header(self, ledger, google, make_owner):
        owner = make_owner(email="dueno@example.com")

        outcome = await ledger.record(owner, _entry(), SystemDefault())

        assert outcome.status == LedgerStatus.OK
        assert outcome.recorded
        assert owner.drive_folder_id == outcome.folder_id
        assert google.folders[owner.drive_folder_id] == FOLDER_NAME
        assert google.permissions == [(owner.drive_folder_id, "dueno@example.com", "writer")]
        sheet = google.sheets[outcome.spreadsheet_id]
        assert sheet["name"] == "10-03-2025"
        assert sheet["header"] == LEDGER_HEADER_ROW
        assert sheet["rows"] == [["Juan Perez", "25.50", "10/03/2025 22:15:42", "123", "Yape"]]

    @pytest.mark.asyncio
    async def test_existing_folder_found_by_name_is_persisted(self, ledger, google, make_owner):
        existing = google.add_folder(FOLDER_NAME)
        owner = make_owner()

        outcome = await ledger.record(owner, _entry(), SystemDefault())

        assert outcome.folder_id == existing
        assert owner.drive_folder_id == existing
        assert "create_folder" not in google.calls

    @pytest.mark.asyncio
    async def test_same_day_reuses_sheet(self, ledger, google, make_owner):
        owner = make_owner()

        await ledger.record(owner, _entry(payer_name="A"), SystemDefault())
        await ledger.record(owner, _entry(payer_name="B"), SystemDefault())

        assert google.calls.count("create_spreadsheet") == 1
        assert [r[0] for r in google.rows(owner.drive_folder_id, "10-03-2025")] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_delegated_credential_is_used_and_folder_not_shared(self, ledger, google, make_owner):
        owner = make_owner()

        await ledger.record(owner, _entry(), Delegated("owner-token"))

        assert set(google.tokens) == {"owner-token"}
        assert google.permissions == []


class TestLedgerAutoHeal:

    @pytest.mark.asyncio
    async def test_missing_folder_heals_once_and_updates_owner(self, ledger, google, make_owner):
        owner = make_owner(drive_folder_id="folder-deleted")

        outcome = await ledger.record(owner, _entry(), SystemDefault())

        assert outcome.status == LedgerStatus.RECOVERED
        assert outcome.recorded
        assert google.calls.count("create_folder") == 1
        assert owner.drive_folder_id != "folder-deleted"
        assert owner.drive_folder_id == outcome.folder_id
        assert google.rows(owner.drive_folder_id, "10-03-2025") == [
            ["Juan Perez", "25.50", "10/03/2025 22:15:42", "123", "Yape"]
        ]

    @pytest.mark.asyncio
    async def test_missing_folder_leaves_no_orphan_sheet(self, ledger, google, make_owner):
        owner = make_owner(drive_folder_id="folder-deleted")

        await ledger.record(owner, _entry(), SystemDefault())

        assert google.calls.count("create_spreadsheet") == 1
        assert len(google.sheets) == 1
        assert all(sheet["parents"] == [owner.drive_folder_id] for sheet in google.sheets.values())

    @pytest.mark.asyncio
    async def test_trashed_folder_heals_once(self, ledger, google, make_owner):
        trashed = google.add_folder(FOLDER_NAME)
        google.trash_folder(trashed)
        owner = make_owner(drive_folder_id=trashed)

        outcome = await ledger.record(owner, _entry(), SystemDefault())

        assert outcome.status == LedgerStatus.RECOVERED
        assert google.calls.count("create_folder") == 1
        assert owner.drive_folder_id not in (None, trashed)
        assert google.rows(trashed, "10-03-2025") == []
        assert len(google.rows(owner.drive_folder_id, "10-03-2025")) == 1

    @pytest.mark.asyncio
    async def test_folder_check_failure_is_not_healed(self, ledger, google, make_owner):
        folder = google.add_folder(FOLDER_NAME)
        owner = make_owner(drive_folder_id=folder)
        google.fail_on["folder_exists"] = GoogleTimeoutError()

        outcome = await ledger.record(owner, _entry(), SystemDefault())

        assert outcome.status == LedgerStatus.FAILED
        assert "create_spreadsheet" not in google.calls
        assert "find_folder_by_name" not in google.calls

    @pytest.mark.asyncio
    async def test_repeated_failure_reports_not_recorded(self, ledger, google, make_owner):
        owner = make_owner(drive_folder_id="folder-deleted")
        google.fail_on["move_to_folder"] = GoogleNotFoundError(resource_id="folder")

        outcome = await ledger.record(owner, _entry(), SystemDefault())

        assert outcome.status == LedgerStatus.FAILED
        assert not outcome.recorded
        assert "after recovery" in outcome.error
        assert google.calls.count("create_folder") == 1
        assert google.calls.count("move_to_folder") == 1
        assert google.total_rows == 0

    @pytest.mark.asyncio
    async def test_timeout_is_not_healed(self, ledger, google, make_owner):
        folder = google.add_folder(FOLDER_NAME)
        owner = make_owner(drive_folder_id=folder)
        google.fail_on["append_row"] = GoogleTimeoutError()

        outcome = await ledger.record(owner, _entry(), SystemDefault())

        assert outcome.status == LedgerStatus.FAILED
        assert "find_folder_by_name" not in google.calls
        assert owner.drive_folder_id == folder


class TestLedgerMalformedResponses:

    @pytest.mark.asyncio
    async def test_sheet_create_without_id_is_reported_not_raised(self, db_session, settings, make_owner):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/drive/v3/files":
                return httpx.Response(200, json={"files": []})
            if request.url.path == "/drive/v3/files/folder-1":
                return httpx.Response(200, json={"id": "folder-1", "trashed": False})
            return httpx.Response(200, json={})

        owner = make_owner(drive_folder_id="folder-1")
        credentials = CredentialResolver(DelegatedTokenService(db_session, settings), FakeServiceAccount())
        async with GoogleWorkspaceClient(transport=httpx.MockTransport(handler)) as client:
            ledger = LedgerService(client, credentials, OwnerRepository(db_session), settings)
            outcome = await ledger.record(owner, _entry(), SystemDefault())

        assert outcome.status == LedgerStatus.FAILED
        assert "Malformed response" in outcome.error
        assert owner.drive_folder_id == "folder-1"
