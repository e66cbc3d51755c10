"""
Entitlement gate: may this owner record payments right now?

Entitlement is derived purely from dates on every call:

    super_admin                      -> authorized (SUPER_ADMIN)
    now < trial end                  -> authorized (TRIAL_ACTIVE)
    active grant with expiry >= now  -> authorized (MEMBERSHIP_ACTIVE)
    otherwise                        -> BLOCKED

CRITICAL: The gate must run before any side-effecting pipeline step.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from feelin_pay.models.owner import Owner
from feelin_pay.platform.clock import utc_now
from feelin_pay.repositories.membership_repository import MembershipRepository
from feelin_pay.repositories.owner_repository import OwnerRepository
from feelin_pay.services.errors import EntitlementError, NotFoundError

logger = logging.getLogger(__name__)


class EntitlementReason(str, Enum):
    """Why the gate decided what it decided."""
    SUPER_ADMIN = "SUPER_ADMIN"
    TRIAL_ACTIVE = "TRIAL_ACTIVE"
    MEMBERSHIP_ACTIVE = "MEMBERSHIP_ACTIVE"
    BLOCKED = "BLOCKED"


@dataclass(frozen=True)
class EntitlementDecision:
    """Result of an entitlement check."""
    authorized: bool
    reason: EntitlementReason
    owner: Optional[Owner] = None
    expires_at: Optional[datetime] = None


def evaluate_entitlement(owner: Owner, current_grant_expires_at: Optional[datetime], now: datetime) -> EntitlementDecision:
    """
    Pure decision function over already-loaded state.

    Args:
        owner: Owner being checked
        current_grant_expires_at: Expiry of the owner's active unexpired grant, if any
        now: Evaluation instant (aware UTC)
    """
    if owner.is_super_admin:
        return EntitlementDecision(True, EntitlementReason.SUPER_ADMIN, owner)

    if owner.is_in_trial(now):
        return EntitlementDecision(True, EntitlementReason.TRIAL_ACTIVE, owner, owner.trial_ends_at)

    if current_grant_expires_at is not None and current_grant_expires_at >= now:
        return EntitlementDecision(True, EntitlementReason.MEMBERSHIP_ACTIVE, owner, current_grant_expires_at)

    return EntitlementDecision(False, EntitlementReason.BLOCKED, owner)


class EntitlementGate:
    """Answers entitlement questions from the owner directory and grant table."""

    def __init__(self, db_session: Session):
        self.owners = OwnerRepository(db_session)
        self.memberships = MembershipRepository(db_session)

    def check(self, owner_id: str, now: Optional[datetime] = None) -> EntitlementDecision:
        """
        Evaluate entitlement for an owner.

        Raises:
            NotFoundError: If the owner does not exist
        """
        now = now or utc_now()
        owner = self.owners.get_by_id(owner_id)
        if owner is None:
            raise NotFoundError("Owner", owner_id, code="OWNER_NOT_FOUND")

        # Super admins and trial owners never need the grant lookup
        if owner.is_super_admin or owner.is_in_trial(now):
            return evaluate_entitlement(owner, None, now)

        grant = self.memberships.get_current_grant(owner_id, now)
        return evaluate_entitlement(owner, grant.expires_at if grant else None, now)

    def require(self, owner_id: str, now: Optional[datetime] = None) -> EntitlementDecision:
        """
        Evaluate entitlement and raise if blocked.

        Raises:
            NotFoundError: If the owner does not exist
            EntitlementError: If the owner is blocked
        """
        decision = self.check(owner_id, now)
        if not decision.authorized:
            logger.warning(
                "Payment recording blocked - membership expired",
                extra={"owner_id": owner_id, "reason": decision.reason.value},
            )
            raise EntitlementError(owner_id)
        return decision
