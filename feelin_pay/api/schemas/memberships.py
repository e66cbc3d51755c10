"""
Pydantic schemas for membership assignment and status.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class AssignMembershipRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    owner_id: str = Field(..., alias="ownerId", min_length=1)
    membership_id: str = Field(..., alias="membershipId", min_length=1)


class GrantResponse(BaseModel):
    """A membership grant as returned to callers."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    owner_id: str = Field(..., alias="ownerId")
    membership_id: str = Field(..., alias="membershipId")
    starts_at: datetime = Field(..., alias="startsAt")
    expires_at: datetime = Field(..., alias="expiresAt")
    is_active: bool = Field(..., alias="isActive")


class MembershipSummary(BaseModel):
    name: str
    months: int


class MembershipStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    has_active_membership: bool = Field(..., alias="hasActiveMembership")
    membership: Optional[MembershipSummary] = None
    trial_end_date: Optional[datetime] = Field(None, alias="trialEndDate")
    effective_expiration_date: Optional[datetime] = Field(None, alias="effectiveExpirationDate")
    days_remaining: int = Field(..., alias="daysRemaining")
