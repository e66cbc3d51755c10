"""
Payment ledger persistence with auto-heal.

Each payment becomes one row in a daily spreadsheet named "DD-MM-YYYY"
(business-local date) inside the owner's ledger folder in Google Drive.

Write path:
1. Resolve the owner's folder (stored id, else search by canonical name,
   else create). A newly obtained folder id is persisted on the owner.
2. Find today's sheet in the folder. Otherwise confirm the folder still
   exists and is not trashed, then create the sheet, move it into the
   folder and write the header row.
3. Append the payment row.

If the write path fails because the folder or sheet is gone or no longer
reachable, the ledger heals exactly once: it re-resolves the folder by
name (creating it if absent), persists the new id and retries the whole
write path once. Any other failure, or a second failure, is reported in
the outcome. Ledger failures never fail the payment.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from feelin_pay.config.settings import Settings
from feelin_pay.constants.business import (
    LEDGER_HEADER_ROW,
    LEDGER_SHEET_NAME_FORMAT,
    LEDGER_TIMESTAMP_FORMAT,
)
from feelin_pay.integrations.google.client import GoogleWorkspaceClient
from feelin_pay.integrations.google.exceptions import (
    GoogleAPIError,
    GoogleNotFoundError,
    is_resource_unavailable,
)
from feelin_pay.integrations.result import CallResult
from feelin_pay.models.owner import Owner
from feelin_pay.platform.clock import to_business_local
from feelin_pay.repositories.owner_repository import OwnerRepository
from feelin_pay.services.credential_resolver import (
    CredentialResolver,
    CredentialSource,
    SystemDefault,
)
from feelin_pay.services.errors import ExternalServiceError

logger = logging.getLogger(__name__)

METHOD_LABELS = {"yape": "Yape", "plin": "Plin"}


class LedgerStatus(str, Enum):
    OK = "ok"
    RECOVERED = "recovered"
    FAILED = "failed"


@dataclass(frozen=True)
class LedgerEntry:
    """One payment as it is written to the ledger."""
    payer_name: str
    amount: Decimal
    received_at: datetime
    security_code: Optional[str]
    method: str

    @property
    def local_received_at(self) -> datetime:
        return to_business_local(self.received_at)

    @property
    def sheet_name(self) -> str:
        return self.local_received_at.strftime(LEDGER_SHEET_NAME_FORMAT)

    def to_row(self) -> List[str]:
        return [
            self.payer_name,
            str(self.amount),
            self.local_received_at.strftime(LEDGER_TIMESTAMP_FORMAT),
            self.security_code or "",
            METHOD_LABELS.get(self.method, self.method.capitalize()),
        ]


@dataclass(frozen=True)
class LedgerOutcome:
    status: LedgerStatus
    error: Optional[str] = None
    folder_id: Optional[str] = None
    spreadsheet_id: Optional[str] = None

    @property
    def recorded(self) -> bool:
        return self.status != LedgerStatus.FAILED


class LedgerService:
    """Writes payment rows to the owner's spreadsheet ledger."""

    def __init__(
        self,
        google: GoogleWorkspaceClient,
        credentials: CredentialResolver,
        owners: OwnerRepository,
        settings: Settings,
    ):
        self.google = google
        self.credentials = credentials
        self.owners = owners
        self.settings = settings

    async def _call(self, operation: str, owner: Owner, coro) -> CallResult:
        """Await an integration call and convert its failure into a CallResult."""
        try:
            return CallResult.succeeded(await coro)
        except GoogleAPIError as e:
            error = ExternalServiceError(operation, e, owner_id=owner.id)
            logger.warning("Ledger call failed", extra=error.log_extra())
            return CallResult.failed(e)

    async def _find_or_create_folder(
        self, owner: Owner, token: str, source: CredentialSource
    ) -> CallResult:
        name = self.settings.ledger_folder_name
        found = await self._call("find_folder", owner, self.google.find_folder_by_name(token, name))
        if not found.ok:
            return found
        if found.value is not None:
            folder_id = found.value.id
        else:
            created = await self._call("create_folder", owner, self.google.create_folder(token, name))
            if not created.ok:
                return created
            folder_id = created.value.id
            await self._share_if_needed(owner, token, source, folder_id)

        self.owners.set_drive_folder(owner, folder_id)
        return CallResult.succeeded(folder_id)

    async def _share_if_needed(
        self, owner: Owner, token: str, source: CredentialSource, folder_id: str
    ) -> None:
        # Folders made by the service account are invisible to the owner until shared
        if not isinstance(source, SystemDefault) or not self.settings.share_folder_with_owner:
            return
        if not owner.email:
            return
        await self._call(
            "share_folder", owner, self.google.share_with_user(token, folder_id, owner.email)
        )

    async def _resolve_folder(self, owner: Owner, token: str, source: CredentialSource) -> CallResult:
        if owner.drive_folder_id:
            return CallResult.succeeded(owner.drive_folder_id)
        return await self._find_or_create_folder(owner, token, source)

    async def _ensure_sheet(self, owner: Owner, token: str, folder_id: str, name: str) -> CallResult:
        found = await self._call(
            "find_sheet", owner, self.google.find_spreadsheet_in_folder(token, folder_id, name)
        )
        if not found.ok:
            return found
        if found.value is not None:
            return CallResult.succeeded(found.value.id)

        # A trashed folder still accepts new files, so check before creating one
        exists = await self._call("check_folder", owner, self.google.folder_exists(token, folder_id))
        if not exists.ok:
            return exists
        if not exists.value:
            return CallResult.failed(GoogleNotFoundError(
                message=f"Ledger folder is missing or trashed: {folder_id}",
                resource_id=folder_id,
            ))

        created = await self._call("create_sheet", owner, self.google.create_spreadsheet(token, name))
        if not created.ok:
            return created
        spreadsheet_id = created.value

        moved = await self._call(
            "move_sheet", owner, self.google.move_to_folder(token, spreadsheet_id, folder_id)
        )
        if not moved.ok:
            return moved

        header = await self._call(
            "write_header", owner, self.google.write_header(token, spreadsheet_id, LEDGER_HEADER_ROW)
        )
        if not header.ok:
            return header

        logger.info(
            "Daily ledger sheet created",
            extra={"owner_id": owner.id, "spreadsheet_id": spreadsheet_id, "sheet_name": name},
        )
        return CallResult.succeeded(spreadsheet_id)

    async def _write(self, owner: Owner, token: str, folder_id: str, entry: LedgerEntry) -> CallResult:
        """Full write path against one folder. Returns the spreadsheet id."""
        sheet = await self._ensure_sheet(owner, token, folder_id, entry.sheet_name)
        if not sheet.ok:
            return sheet
        appended = await self._call(
            "append_row", owner, self.google.append_row(token, sheet.value, entry.to_row())
        )
        if not appended.ok:
            return appended
        return CallResult.succeeded(sheet.value)

    async def record(self, owner: Owner, entry: LedgerEntry, source: CredentialSource) -> LedgerOutcome:
        """
        Record one payment.

        Args:
            owner: Owner whose ledger receives the row
            entry: Payment to record
            source: Credential chosen for this request

        Returns:
            LedgerOutcome; never raises for integration failures
        """
        try:
            token = await self.credentials.access_token(source)
        except GoogleAPIError as e:
            logger.warning(
                "Ledger credential unavailable",
                extra=ExternalServiceError("access_token", e, owner_id=owner.id).log_extra(),
            )
            return LedgerOutcome(LedgerStatus.FAILED, error=e.message)

        folder = await self._resolve_folder(owner, token, source)
        if folder.ok:
            written = await self._write(owner, token, folder.value, entry)
            if written.ok:
                return LedgerOutcome(LedgerStatus.OK, folder_id=folder.value, spreadsheet_id=written.value)
            failure = written
        else:
            failure = folder

        if not is_resource_unavailable(failure.error):
            return LedgerOutcome(LedgerStatus.FAILED, error=failure.error_message)

        logger.warning(
            "Ledger folder unavailable, recovering",
            extra={"owner_id": owner.id, "folder_id": owner.drive_folder_id},
        )
        healed = await self._find_or_create_folder(owner, token, source)
        if not healed.ok:
            return LedgerOutcome(LedgerStatus.FAILED, error=f"Ledger recovery failed: {healed.error_message}")

        retried = await self._write(owner, token, healed.value, entry)
        if not retried.ok:
            return LedgerOutcome(
                LedgerStatus.FAILED,
                error=f"Ledger write failed after recovery: {retried.error_message}",
                folder_id=healed.value,
            )

        logger.info(
            "Ledger recovered",
            extra={"owner_id": owner.id, "folder_id": healed.value},
        )
        return LedgerOutcome(LedgerStatus.RECOVERED, folder_id=healed.value, spreadsheet_id=retried.value)
