"""
Payment events API.

POST /api/payments/events runs one payment through the pipeline:
entitlement gate, on-duty computation, ledger write and push.

Ledger and push failures never fail the request; they are reported
as ledgerRecorded/notified flags.
"""

import logging

from fastapi import APIRouter, Depends, status

from feelin_pay.api.dependencies.pipeline import get_payment_pipeline
from feelin_pay.api.schemas.payments import (
    PaymentEventRequest,
    PaymentEventResponse,
    PaymentResultData,
)
from feelin_pay.services.payment_pipeline import PaymentEvent, PaymentPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post(
    "/events",
    response_model=PaymentEventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment_event(
    body: PaymentEventRequest,
    pipeline: PaymentPipeline = Depends(get_payment_pipeline),
):
    """
    Record a received payment.

    Errors:
        400 VALIDATION_ERROR, 403 MEMBRESIA_VENCIDA, 404 OWNER_NOT_FOUND
    """
    event = PaymentEvent(
        owner_id=body.owner_id,
        payer_name=body.payer_name,
        amount=body.amount,
        security_code=body.security_code,
        method=body.method,
        delegated_token=body.delegated_credential_token,
    )
    outcome = await pipeline.process(event)
    outcome.raise_for_rejection()

    return PaymentEventResponse(data=PaymentResultData.model_validate(outcome.to_dict()))
