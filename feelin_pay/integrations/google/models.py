"""
Google Drive/Sheets response models.

Dataclasses for structured response handling.
"""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"


@dataclass
class DriveFile:
    """A file or folder in Google Drive."""
    id: str
    name: str = ""
    mime_type: Optional[str] = None
    parents: List[str] = field(default_factory=list)
    trashed: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DriveFile":
        return cls(
            id=data.get("id", ""),
            name=data.get("name", ""),
            mime_type=data.get("mimeType"),
            parents=list(data.get("parents", [])),
            trashed=bool(data.get("trashed", False)),
        )


@dataclass
class AppendResult:
    """Result of a Sheets values.append call."""
    spreadsheet_id: str
    updated_range: Optional[str] = None
    updated_rows: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppendResult":
        updates = data.get("updates", {})
        return cls(
            spreadsheet_id=data.get("spreadsheetId", ""),
            updated_range=updates.get("updatedRange"),
            updated_rows=updates.get("updatedRows", 0),
        )
