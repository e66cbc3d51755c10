"""
Membership repository: catalog lookups and grant history.

Grant rows are only ever inserted or soft-deactivated, never deleted.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from feelin_pay.models.membership import Membership, MembershipGrant

logger = logging.getLogger(__name__)


class MembershipRepository:
    """Repository for membership catalog and grant data access."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_membership(self, membership_id: str) -> Optional[Membership]:
        return self.db.query(Membership).filter(Membership.id == membership_id).first()

    def get_current_grant(self, owner_id: str, now: datetime) -> Optional[MembershipGrant]:
        """
        Latest active, unexpired grant for an owner.

        Args:
            owner_id: Owner ID
            now: Evaluation instant

        Returns:
            Grant with the furthest expiration, or None
        """
        return (
            self.db.query(MembershipGrant)
            .filter(
                MembershipGrant.owner_id == owner_id,
                MembershipGrant.is_active.is_(True),
                MembershipGrant.expires_at >= now,
            )
            .order_by(MembershipGrant.expires_at.desc())
            .first()
        )

    def deactivate_active_grants(self, owner_id: str) -> int:
        """
        Soft-deactivate every active grant for an owner.

        Does not commit; the caller owns the transaction.

        Returns:
            Number of grants deactivated
        """
        return (
            self.db.query(MembershipGrant)
            .filter(
                MembershipGrant.owner_id == owner_id,
                MembershipGrant.is_active.is_(True),
            )
            .update({MembershipGrant.is_active: False}, synchronize_session="fetch")
        )

    def add_grant(self, grant: MembershipGrant) -> MembershipGrant:
        """Insert a grant without committing."""
        self.db.add(grant)
        self.db.flush()
        return grant
