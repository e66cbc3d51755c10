"""
Owner-scoped read endpoints for the mobile SMS bridge.

GET /api/owners/{owner_id}/on-duty returns the phones the bridge should
forward payment alerts to. Blocked owners get 403 like payment events.
"""

from fastapi import APIRouter, Depends

from feelin_pay.api.dependencies.pipeline import get_duty_scheduler, get_entitlement_gate
from feelin_pay.services.duty_scheduler import DutyScheduler
from feelin_pay.services.entitlement_gate import EntitlementGate

router = APIRouter(prefix="/api/owners", tags=["owners"])


@router.get("/{owner_id}/on-duty")
async def on_duty_workers(
    owner_id: str,
    gate: EntitlementGate = Depends(get_entitlement_gate),
    scheduler: DutyScheduler = Depends(get_duty_scheduler),
):
    gate.require(owner_id)
    return {
        "success": True,
        "data": {"onDutyPhoneNumbers": scheduler.on_duty_phones(owner_id)},
    }
