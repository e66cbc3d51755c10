"""
In-memory stand-ins for the Google Workspace and FCM clients.

They keep just enough Drive semantics for the ledger: folders can be
deleted or trashed out from under the service, spreadsheets live in
folders, and calls are recorded for assertions.
"""

from collections import defaultdict
from typing import Dict, List, Optional, Set

from feelin_pay.integrations.fcm.client import PushMessage
from feelin_pay.integrations.fcm.exceptions import FCMError
from feelin_pay.integrations.google.auth import AccessToken
from feelin_pay.integrations.google.exceptions import GoogleNotFoundError
from feelin_pay.integrations.google.models import DriveFile, FOLDER_MIME_TYPE, SPREADSHEET_MIME_TYPE


class FakeGoogleWorkspace:
    """Implements the GoogleWorkspaceClient surface used by LedgerService."""

    def __init__(self):
        self.folders: Dict[str, str] = {}
        self.trashed: Set[str] = set()
        self.sheets: Dict[str, dict] = {}
        self.permissions: List[tuple] = []
        self.calls: List[str] = []
        self.tokens: List[str] = []
        # method name -> exception raised on every call
        self.fail_on: Dict[str, Exception] = {}
        self._ids = defaultdict(int)

    def _next_id(self, prefix: str) -> str:
        self._ids[prefix] += 1
        return f"{prefix}-{self._ids[prefix]}"

    def _enter(self, method: str, token: str) -> None:
        self.calls.append(method)
        self.tokens.append(token)
        if method in self.fail_on:
            raise self.fail_on[method]

    # Test helpers

    def add_folder(self, name: str) -> str:
        folder_id = self._next_id("folder")
        self.folders[folder_id] = name
        return folder_id

    def delete_folder(self, folder_id: str) -> None:
        self.folders.pop(folder_id, None)

    def trash_folder(self, folder_id: str) -> None:
        self.trashed.add(folder_id)

    def rows(self, folder_id: str, sheet_name: str) -> List[list]:
        for sheet in self.sheets.values():
            if sheet["name"] == sheet_name and folder_id in sheet["parents"]:
                return sheet["rows"]
        return []

    @property
    def total_rows(self) -> int:
        return sum(len(sheet["rows"]) for sheet in self.sheets.values())

    # Client surface

    async def find_folder_by_name(self, access_token: str, name: str) -> Optional[DriveFile]:
        self._enter("find_folder_by_name", access_token)
        for folder_id, folder_name in self.folders.items():
            if folder_name == name and folder_id not in self.trashed:
                return DriveFile(id=folder_id, name=folder_name, mime_type=FOLDER_MIME_TYPE)
        return None

    async def create_folder(self, access_token: str, name: str) -> DriveFile:
        self._enter("create_folder", access_token)
        folder_id = self.add_folder(name)
        return DriveFile(id=folder_id, name=name, mime_type=FOLDER_MIME_TYPE)

    async def folder_exists(self, access_token: str, folder_id: str) -> bool:
        self._enter("folder_exists", access_token)
        return folder_id in self.folders and folder_id not in self.trashed

    async def find_spreadsheet_in_folder(
        self, access_token: str, folder_id: str, name: str
    ) -> Optional[DriveFile]:
        self._enter("find_spreadsheet_in_folder", access_token)
        if folder_id not in self.folders or folder_id in self.trashed:
            return None
        for sheet_id, sheet in self.sheets.items():
            if sheet["name"] == name and folder_id in sheet["parents"]:
                return DriveFile(id=sheet_id, name=name, mime_type=SPREADSHEET_MIME_TYPE)
        return None

    async def create_spreadsheet(self, access_token: str, title: str) -> str:
        self._enter("create_spreadsheet", access_token)
        sheet_id = self._next_id("sheet")
        self.sheets[sheet_id] = {"name": title, "parents": ["root"], "header": None, "rows": []}
        return sheet_id

    async def move_to_folder(self, access_token: str, file_id: str, folder_id: str) -> None:
        self._enter("move_to_folder", access_token)
        if folder_id not in self.folders:
            raise GoogleNotFoundError(resource_id=folder_id)
        self.sheets[file_id]["parents"] = [folder_id]

    async def share_with_user(self, access_token: str, file_id: str, email: str, role: str = "writer") -> None:
        self._enter("share_with_user", access_token)
        self.permissions.append((file_id, email, role))

    async def write_header(self, access_token: str, spreadsheet_id: str, header: List[str]) -> None:
        self._enter("write_header", access_token)
        self.sheets[spreadsheet_id]["header"] = list(header)

    async def append_row(self, access_token: str, spreadsheet_id: str, row: list) -> None:
        self._enter("append_row", access_token)
        sheet = self.sheets.get(spreadsheet_id)
        if sheet is None or not any(parent in self.folders for parent in sheet["parents"]):
            raise GoogleNotFoundError(resource_id=spreadsheet_id)
        sheet["rows"].append(list(row))


class FakeServiceAccount:
    """Stands in for ServiceAccountTokenProvider."""

    def __init__(self, token: str = "system-token"):
        self.token = token
        self.calls = 0

    async def get_token(self) -> AccessToken:
        self.calls += 1
        return AccessToken(token=self.token)


class FakeFCM:
    """Implements the FCMClient surface used by NotificationFanout."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[PushMessage] = []

    async def send(self, message: PushMessage) -> str:
        if self.fail:
            raise FCMError("FCM API error: 503 - unavailable", status_code=503)
        self.sent.append(message)
        return f"projects/feelin-pay-test/messages/{len(self.sent)}"
