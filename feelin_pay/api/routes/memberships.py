"""
Membership assignment and status API.
"""

from fastapi import APIRouter, Depends, status

from feelin_pay.api.dependencies.pipeline import get_membership_service
from feelin_pay.api.schemas.memberships import (
    AssignMembershipRequest,
    GrantResponse,
    MembershipStatusResponse,
)
from feelin_pay.services.membership_renewal import MembershipRenewalService

router = APIRouter(prefix="/api/memberships", tags=["memberships"])


@router.post("/assign", status_code=status.HTTP_201_CREATED)
async def assign_membership(
    body: AssignMembershipRequest,
    service: MembershipRenewalService = Depends(get_membership_service),
):
    """Assign a membership, or extend the owner's current one."""
    grant = service.assign_or_renew(body.owner_id, body.membership_id)
    data = GrantResponse.model_validate(grant.to_dict())
    return {"success": True, "data": data.model_dump(mode="json", by_alias=True)}


@router.get("/status/{owner_id}")
async def membership_status(
    owner_id: str,
    service: MembershipRenewalService = Depends(get_membership_service),
):
    """Trial/membership state and days remaining for an owner."""
    snapshot = service.get_status(owner_id)
    data = MembershipStatusResponse.model_validate(snapshot.to_dict())
    return {"success": True, "data": data.model_dump(mode="json", by_alias=True)}
