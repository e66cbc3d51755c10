"""
Membership extension engine.

Assigns or renews a membership for an owner. Renewals stack: the new
term starts where the current one (or the trial) ends, not from today.

Month arithmetic uses dateutil.relativedelta. Day-of-month overflow is
clamped to the last valid day of the target month (Jan 31 + 1 month is
Feb 28, or Feb 29 in leap years). Every extension path goes through
add_months() so the policy is applied uniformly.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from feelin_pay.models.membership import Membership, MembershipGrant
from feelin_pay.models.base import generate_uuid
from feelin_pay.platform.clock import utc_now
from feelin_pay.repositories.membership_repository import MembershipRepository
from feelin_pay.repositories.owner_repository import OwnerRepository
from feelin_pay.services.errors import NotFoundError

logger = logging.getLogger(__name__)


class RenewalBase(str, Enum):
    """Where a new membership term starts counting from."""
    CURRENT_GRANT = "current_grant"
    TRIAL_END = "trial_end"
    NOW = "now"


def add_months(base: datetime, months: int) -> datetime:
    """Calendar-month addition, clamping the day to the target month's length."""
    return base + relativedelta(months=months)


@dataclass
class MembershipStatus:
    """Snapshot of an owner's membership state."""
    has_active_membership: bool
    membership_name: Optional[str]
    membership_months: Optional[int]
    trial_end_date: Optional[datetime]
    effective_expiration_date: Optional[datetime]
    days_remaining: int

    def to_dict(self) -> dict:
        return {
            "hasActiveMembership": self.has_active_membership,
            "membership": (
                {"name": self.membership_name, "months": self.membership_months}
                if self.has_active_membership else None
            ),
            "trialEndDate": self.trial_end_date.isoformat() if self.trial_end_date else None,
            "effectiveExpirationDate": (
                self.effective_expiration_date.isoformat() if self.effective_expiration_date else None
            ),
            "daysRemaining": self.days_remaining,
        }


def days_remaining_until(expiration: Optional[datetime], now: datetime) -> int:
    """Ceiling of remaining days. Not clamped: negative once expired."""
    if expiration is None:
        return 0
    return math.ceil((expiration - now) / timedelta(days=1))


class MembershipRenewalService:
    """Service for assigning, renewing and reporting memberships."""

    def __init__(self, db_session: Session):
        self.db = db_session
        self.owners = OwnerRepository(db_session)
        self.memberships = MembershipRepository(db_session)

    def _resolve_membership(self, membership_id: str) -> Membership:
        membership = self.memberships.get_membership(membership_id)
        if membership is None or not membership.is_active:
            raise NotFoundError("Membership", membership_id, code="MEMBERSHIP_NOT_FOUND")
        return membership

    def assign_or_renew(
        self,
        owner_id: str,
        membership_id: str,
        now: Optional[datetime] = None,
    ) -> MembershipGrant:
        """
        Assign a membership or extend the current one.

        The owner row is locked for the duration of the transaction so that
        concurrent renewals for the same owner cannot both leave an active grant.

        Args:
            owner_id: Owner receiving the membership
            membership_id: Catalog membership to apply
            now: Evaluation instant (default: current UTC time)

        Returns:
            The newly created grant

        Raises:
            NotFoundError: If the membership is missing/inactive or the owner is unknown
        """
        now = now or utc_now()
        membership = self._resolve_membership(membership_id)

        try:
            owner = self.owners.get_for_update(owner_id)
            if owner is None:
                raise NotFoundError("Owner", owner_id, code="OWNER_NOT_FOUND")

            current = self.memberships.get_current_grant(owner_id, now)
            if current is not None:
                base, base_kind = current.expires_at, RenewalBase.CURRENT_GRANT
            elif owner.trial_ends_at and owner.trial_ends_at > now:
                base, base_kind = owner.trial_ends_at, RenewalBase.TRIAL_END
            else:
                base, base_kind = now, RenewalBase.NOW

            expires_at = add_months(base, membership.duration_months)

            deactivated = self.memberships.deactivate_active_grants(owner_id)
            grant = self.memberships.add_grant(
                MembershipGrant(
                    id=generate_uuid(),
                    owner_id=owner_id,
                    membership_id=membership.id,
                    starts_at=now,
                    expires_at=expires_at,
                    is_active=True,
                )
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Membership assigned",
            extra={
                "owner_id": owner_id,
                "membership_id": membership.id,
                "base": base_kind.value,
                "expires_at": expires_at.isoformat(),
                "grants_deactivated": deactivated,
            },
        )
        return grant

    def get_status(self, owner_id: str, now: Optional[datetime] = None) -> MembershipStatus:
        """
        Report the owner's membership/trial state.

        Raises:
            NotFoundError: If the owner is unknown
        """
        now = now or utc_now()
        owner = self.owners.get_by_id(owner_id)
        if owner is None:
            raise NotFoundError("Owner", owner_id, code="OWNER_NOT_FOUND")

        grant = self.memberships.get_current_grant(owner_id, now)
        effective = grant.expires_at if grant else owner.trial_ends_at

        return MembershipStatus(
            has_active_membership=grant is not None,
            membership_name=grant.membership.name if grant else None,
            membership_months=grant.membership.duration_months if grant else None,
            trial_end_date=owner.trial_ends_at,
            effective_expiration_date=effective,
            days_remaining=days_remaining_until(effective, now),
        )
