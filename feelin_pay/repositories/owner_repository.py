"""
Owner repository: the owner directory consumed by the payment pipeline.

Exposes entitlement fields, role, ledger folder reference and the
encrypted delegated-credential material.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from feelin_pay.models.owner import Owner

logger = logging.getLogger(__name__)


class OwnerRepository:
    """Repository for owner data access."""

    def __init__(self, db_session: Session):
        """
        Initialize repository with database session.

        Args:
            db_session: SQLAlchemy database session
        """
        self.db = db_session

    def get_by_id(self, owner_id: str) -> Optional[Owner]:
        return self.db.query(Owner).filter(Owner.id == owner_id).first()

    def get_for_update(self, owner_id: str) -> Optional[Owner]:
        """
        Get an owner with a row-level lock held until the transaction ends.

        Used to serialize owner-scoped multi-row writes (membership renewal).
        SQLite ignores FOR UPDATE; its database-level write lock serializes
        writers instead.
        """
        return (
            self.db.query(Owner)
            .filter(Owner.id == owner_id)
            .with_for_update()
            .first()
        )

    def set_drive_folder(self, owner: Owner, folder_id: str) -> None:
        """Persist the owner's ledger folder id."""
        previous = owner.drive_folder_id
        owner.drive_folder_id = folder_id
        self.db.commit()
        logger.info(
            "Owner ledger folder updated",
            extra={
                "owner_id": owner.id,
                "folder_id": folder_id,
                "replaced": previous is not None and previous != folder_id,
            },
        )

    def save_google_tokens(
        self,
        owner: Owner,
        access_token_encrypted: str,
        expires_at: datetime,
        refresh_token_encrypted: Optional[str] = None,
    ) -> None:
        """Store refreshed delegated tokens. Refresh token only replaced when a new one is issued."""
        owner.google_access_token_encrypted = access_token_encrypted
        owner.google_token_expires_at = expires_at
        if refresh_token_encrypted:
            owner.google_refresh_token_encrypted = refresh_token_encrypted
        self.db.commit()
