"""
Google Drive v3 and Sheets v4 REST client for the payment ledger.

This client handles:
- Folder lookup/creation and sharing (Drive)
- Daily spreadsheet lookup, creation and placement (Drive + Sheets)
- Header and row writes (Sheets)

Every method takes the bearer token to use, so one client serves both the
system service account and owners' delegated credentials.

Documentation:
- https://developers.google.com/drive/api/reference/rest/v3
- https://developers.google.com/sheets/api/reference/rest

SECURITY:
- Access tokens are passed per call and never logged
"""

import logging
from typing import Optional, List, Dict, Any

import httpx

from feelin_pay.integrations.google.exceptions import (
    GoogleAPIError,
    GoogleAuthenticationError,
    GoogleNotFoundError,
    GoogleRateLimitError,
    GoogleConnectionError,
    GoogleTimeoutError,
)
from feelin_pay.integrations.google.models import (
    AppendResult,
    DriveFile,
    FOLDER_MIME_TYPE,
    SPREADSHEET_MIME_TYPE,
)

logger = logging.getLogger(__name__)

# Default configuration
DEFAULT_DRIVE_BASE_URL = "https://www.googleapis.com/drive/v3"
DEFAULT_SHEETS_BASE_URL = "https://sheets.googleapis.com/v4"
DEFAULT_TIMEOUT_SECONDS = 10.0


def _quote_query_value(value: str) -> str:
    """Escape a literal for a Drive search query."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleWorkspaceClient:
    """
    Async client for the Drive and Sheets APIs.

    All methods are async and raise GoogleAPIError subclasses on failure.
    """

    def __init__(
        self,
        drive_base_url: Optional[str] = None,
        sheets_base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            drive_base_url: Drive API base URL
            sheets_base_url: Sheets API base URL
            timeout: Timeout applied to every request, in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.drive_base_url = (drive_base_url or DEFAULT_DRIVE_BASE_URL).rstrip("/")
        self.sheets_base_url = (sheets_base_url or DEFAULT_SHEETS_BASE_URL).rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "GoogleWorkspaceClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _request(
        self,
        method: str,
        url: str,
        access_token: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        resource_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Make an authorized request to a Google API.

        Raises:
            GoogleAPIError: On API errors
        """
        try:
            response = await self._client.request(
                method=method,
                url=url,
                json=json,
                params=params,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.TimeoutException as e:
            logger.error("Google API timeout", extra={"url": url, "error": str(e)})
            raise GoogleTimeoutError(f"Request timeout: {e}")
        except httpx.RequestError as e:
            logger.error("Google API connection error", extra={"url": url, "error": str(e)})
            raise GoogleConnectionError(f"Connection error: {e}")

        if response.status_code == 401:
            raise GoogleAuthenticationError()

        if response.status_code == 403:
            raise GoogleAuthenticationError(
                message="Permission denied for the requested resource",
                status_code=403,
                response=self._error_body(response),
            )

        if response.status_code == 404:
            raise GoogleNotFoundError(
                message=f"Resource not found: {resource_id or url}",
                resource_id=resource_id,
            )

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            logger.warning("Google API rate limited", extra={"url": url, "retry_after": retry_after})
            raise GoogleRateLimitError(
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None
            )

        if response.status_code >= 400:
            error_body = self._error_body(response)
            error = error_body.get("error", {}) if isinstance(error_body.get("error"), dict) else {}
            logger.error(
                "Google API error",
                extra={
                    "status_code": response.status_code,
                    "url": url,
                    "response": str(error_body)[:500],
                },
            )
            raise GoogleAPIError(
                message=f"Google API error: {response.status_code} - {error.get('message', '')}",
                status_code=response.status_code,
                code=error.get("status"),
                response=error_body,
            )

        if response.status_code == 204 or not response.content:
            return {}

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            logger.error(
                "Google API returned a malformed body",
                extra={"status_code": response.status_code, "url": url},
            )
            raise GoogleAPIError(
                message=f"Malformed response from Google API: {response.status_code}",
                status_code=response.status_code,
                code="MALFORMED_RESPONSE",
            )
        return body

    @staticmethod
    def _error_body(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    # Drive

    async def _search(self, access_token: str, query: str) -> List[DriveFile]:
        data = await self._request(
            "GET",
            f"{self.drive_base_url}/files",
            access_token,
            params={"q": query, "fields": "files(id, name, mimeType, parents)", "spaces": "drive"},
        )
        return [DriveFile.from_dict(f) for f in data.get("files", [])]

    async def find_folder_by_name(self, access_token: str, name: str) -> Optional[DriveFile]:
        """Return the first non-trashed folder with this exact name, if any."""
        query = (
            f"name = '{_quote_query_value(name)}' and mimeType = '{FOLDER_MIME_TYPE}' "
            "and trashed = false"
        )
        files = await self._search(access_token, query)
        return files[0] if files else None

    async def create_folder(self, access_token: str, name: str) -> DriveFile:
        """Create a folder in the credential's Drive root."""
        data = await self._request(
            "POST",
            f"{self.drive_base_url}/files",
            access_token,
            json={"name": name, "mimeType": FOLDER_MIME_TYPE},
            params={"fields": "id, name, mimeType"},
        )
        folder = DriveFile.from_dict(data)
        if not folder.id:
            raise GoogleAPIError(
                "Malformed response from Google API: folder id missing",
                code="MALFORMED_RESPONSE",
            )
        logger.info("Drive folder created", extra={"folder_id": folder.id})
        return folder

    async def folder_exists(self, access_token: str, folder_id: str) -> bool:
        """True if the folder exists and is not trashed."""
        try:
            data = await self._request(
                "GET",
                f"{self.drive_base_url}/files/{folder_id}",
                access_token,
                params={"fields": "id, trashed"},
                resource_id=folder_id,
            )
        except GoogleNotFoundError:
            return False
        return not data.get("trashed", False)

    async def find_spreadsheet_in_folder(
        self, access_token: str, folder_id: str, name: str
    ) -> Optional[DriveFile]:
        """Return the spreadsheet with this name inside the folder, if any."""
        query = (
            f"name = '{_quote_query_value(name)}' and '{_quote_query_value(folder_id)}' in parents "
            f"and trashed = false and mimeType = '{SPREADSHEET_MIME_TYPE}'"
        )
        files = await self._search(access_token, query)
        return files[0] if files else None

    async def move_to_folder(self, access_token: str, file_id: str, folder_id: str) -> None:
        """Re-parent a file into a folder, removing its previous parents."""
        current = await self._request(
            "GET",
            f"{self.drive_base_url}/files/{file_id}",
            access_token,
            params={"fields": "parents"},
            resource_id=file_id,
        )
        previous_parents = ",".join(current.get("parents", []))
        params = {"addParents": folder_id, "fields": "id, parents"}
        if previous_parents:
            params["removeParents"] = previous_parents
        await self._request(
            "PATCH",
            f"{self.drive_base_url}/files/{file_id}",
            access_token,
            json={},
            params=params,
            resource_id=folder_id,
        )

    async def share_with_user(
        self, access_token: str, file_id: str, email: str, role: str = "writer"
    ) -> None:
        """Grant a user access to a file or folder."""
        await self._request(
            "POST",
            f"{self.drive_base_url}/files/{file_id}/permissions",
            access_token,
            json={"role": role, "type": "user", "emailAddress": email},
            params={"fields": "id", "sendNotificationEmail": "false"},
            resource_id=file_id,
        )
        logger.info("Drive file shared", extra={"file_id": file_id, "role": role})

    # Sheets

    async def create_spreadsheet(self, access_token: str, title: str) -> str:
        """Create a spreadsheet and return its id. It lands in the Drive root."""
        data = await self._request(
            "POST",
            f"{self.sheets_base_url}/spreadsheets",
            access_token,
            json={"properties": {"title": title}},
            params={"fields": "spreadsheetId"},
        )
        spreadsheet_id = data.get("spreadsheetId")
        if not spreadsheet_id:
            raise GoogleAPIError(
                "Malformed response from Google API: spreadsheetId missing",
                code="MALFORMED_RESPONSE",
            )
        return spreadsheet_id

    async def write_header(self, access_token: str, spreadsheet_id: str, header: List[str]) -> None:
        """Write the header row into row 1."""
        last_column = chr(ord("A") + len(header) - 1)
        await self._request(
            "PUT",
            f"{self.sheets_base_url}/spreadsheets/{spreadsheet_id}/values/A1:{last_column}1",
            access_token,
            json={"values": [header]},
            params={"valueInputOption": "RAW"},
            resource_id=spreadsheet_id,
        )

    async def append_row(self, access_token: str, spreadsheet_id: str, row: List[Any]) -> AppendResult:
        """Append one row after the last non-empty row."""
        last_column = chr(ord("A") + len(row) - 1)
        data = await self._request(
            "POST",
            f"{self.sheets_base_url}/spreadsheets/{spreadsheet_id}/values/A:{last_column}:append",
            access_token,
            json={"values": [row]},
            params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
            resource_id=spreadsheet_id,
        )
        return AppendResult.from_dict(data)
