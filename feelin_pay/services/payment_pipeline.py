"""
Payment event pipeline.

    RECEIVED -> GATE_CHECK
      REJECTED   -> RESPONSE_ASSEMBLED (error MEMBRESIA_VENCIDA)
      AUTHORIZED -> DUTY_COMPUTED -> LEDGER_ATTEMPTED{ok|recovered|failed}
                 -> NOTIFIED{sent|failed} -> RESPONSE_ASSEMBLED

The entitlement gate runs before any side effect: a rejected event makes
no scheduler, ledger or push calls. Ledger and push failures are
non-fatal and surface only as flags on the outcome.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from feelin_pay.platform.clock import as_utc, utc_now
from feelin_pay.services.credential_resolver import CredentialResolver
from feelin_pay.services.duty_scheduler import DutyScheduler
from feelin_pay.services.entitlement_gate import EntitlementDecision, EntitlementGate
from feelin_pay.services.errors import EntitlementError, ValidationError
from feelin_pay.services.ledger_service import LedgerEntry, LedgerOutcome, LedgerService, LedgerStatus
from feelin_pay.services.notification_fanout import NotificationFanout, build_payment_message

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("yape", "plin")


class PipelineStage(str, Enum):
    RECEIVED = "RECEIVED"
    GATE_AUTHORIZED = "GATE_CHECK:AUTHORIZED"
    GATE_REJECTED = "GATE_CHECK:REJECTED"
    DUTY_COMPUTED = "DUTY_COMPUTED"
    LEDGER_OK = "LEDGER_ATTEMPTED:ok"
    LEDGER_RECOVERED = "LEDGER_ATTEMPTED:recovered"
    LEDGER_FAILED = "LEDGER_ATTEMPTED:failed"
    NOTIFIED_SENT = "NOTIFIED:sent"
    NOTIFIED_FAILED = "NOTIFIED:failed"
    RESPONSE_ASSEMBLED = "RESPONSE_ASSEMBLED"


_LEDGER_STAGES = {
    LedgerStatus.OK: PipelineStage.LEDGER_OK,
    LedgerStatus.RECOVERED: PipelineStage.LEDGER_RECOVERED,
    LedgerStatus.FAILED: PipelineStage.LEDGER_FAILED,
}


@dataclass
class PaymentEvent:
    """A payment notification as received from the mobile bridge. Never persisted."""
    owner_id: str
    payer_name: str
    amount: Decimal
    security_code: Optional[str] = None
    method: str = "yape"
    received_at: datetime = field(default_factory=utc_now)
    delegated_token: Optional[str] = None

    def validate(self) -> None:
        """
        Check the event independently of the HTTP schema.

        PaymentEventRequest applies the same rules at the API edge. The
        pipeline repeats them because it is also driven directly, without
        the schema, and must never write a malformed row to the ledger.

        Raises:
            ValidationError: On a missing or malformed field
        """
        if not self.owner_id:
            raise ValidationError("ownerId is required")
        if not self.payer_name or not self.payer_name.strip():
            raise ValidationError("payerName is required")
        if self.amount is None or Decimal(self.amount) <= 0:
            raise ValidationError("amount must be greater than zero")
        if self.method not in PAYMENT_METHODS:
            raise ValidationError(f"method must be one of: {', '.join(PAYMENT_METHODS)}")
        if self.method != "plin" and not (self.security_code or "").strip():
            raise ValidationError("securityCode is required for yape payments")

    def ledger_entry(self) -> LedgerEntry:
        return LedgerEntry(
            payer_name=self.payer_name.strip(),
            amount=Decimal(self.amount),
            received_at=as_utc(self.received_at),
            security_code=(self.security_code or "").strip() or None,
            method=self.method,
        )


@dataclass
class PaymentOutcome:
    event: PaymentEvent
    stages: List[PipelineStage] = field(default_factory=list)
    decision: Optional[EntitlementDecision] = None
    rejection: Optional[EntitlementError] = None
    on_duty_phone_numbers: List[str] = field(default_factory=list)
    ledger: Optional[LedgerOutcome] = None
    notified: bool = False

    @property
    def authorized(self) -> bool:
        return self.rejection is None

    @property
    def ledger_recorded(self) -> bool:
        return self.ledger is not None and self.ledger.recorded

    def raise_for_rejection(self) -> None:
        if self.rejection is not None:
            raise self.rejection

    def to_dict(self) -> dict:
        entry = self.event.ledger_entry()
        return {
            "payerName": entry.payer_name,
            "amount": float(entry.amount),
            "securityCode": entry.security_code,
            "ledgerRecorded": self.ledger_recorded,
            "ledgerError": self.ledger.error if self.ledger else None,
            "notified": self.notified,
            "onDutyPhoneNumbers": list(self.on_duty_phone_numbers),
        }


class PaymentPipeline:
    """Runs one payment event through gate, scheduler, ledger and push."""

    def __init__(
        self,
        gate: EntitlementGate,
        scheduler: DutyScheduler,
        credentials: CredentialResolver,
        ledger: LedgerService,
        fanout: NotificationFanout,
    ):
        self.gate = gate
        self.scheduler = scheduler
        self.credentials = credentials
        self.ledger = ledger
        self.fanout = fanout

    async def process(self, event: PaymentEvent) -> PaymentOutcome:
        """
        Process one payment event.

        Returns:
            PaymentOutcome. A blocked owner yields an outcome carrying the
            EntitlementError in ``rejection`` with no side effects performed.

        Raises:
            ValidationError: If the event is malformed
            NotFoundError: If the owner does not exist
        """
        outcome = PaymentOutcome(event=event, stages=[PipelineStage.RECEIVED])
        event.validate()
        now = as_utc(event.received_at)

        decision = self.gate.check(event.owner_id, now)
        outcome.decision = decision
        if not decision.authorized:
            outcome.stages.append(PipelineStage.GATE_REJECTED)
            outcome.rejection = EntitlementError(event.owner_id)
            outcome.stages.append(PipelineStage.RESPONSE_ASSEMBLED)
            logger.warning(
                "Payment rejected - membership expired",
                extra={"owner_id": event.owner_id, "reason": decision.reason.value},
            )
            return outcome
        outcome.stages.append(PipelineStage.GATE_AUTHORIZED)
        owner = decision.owner

        outcome.on_duty_phone_numbers = self.scheduler.on_duty_phones(owner.id, now)
        outcome.stages.append(PipelineStage.DUTY_COMPUTED)

        source = await self.credentials.resolve(owner, event.delegated_token, now)
        outcome.ledger = await self.ledger.record(owner, event.ledger_entry(), source)
        outcome.stages.append(_LEDGER_STAGES[outcome.ledger.status])

        message = build_payment_message(
            owner.id,
            event.payer_name.strip(),
            Decimal(event.amount),
            event.method,
            event.security_code,
        )
        pushed = await self.fanout.notify_payment(owner.id, message)
        outcome.notified = pushed.ok
        outcome.stages.append(PipelineStage.NOTIFIED_SENT if pushed.ok else PipelineStage.NOTIFIED_FAILED)

        outcome.stages.append(PipelineStage.RESPONSE_ASSEMBLED)
        logger.info(
            "Payment processed",
            extra={
                "owner_id": owner.id,
                "method": event.method,
                "entitlement": decision.reason.value,
                "ledger_status": outcome.ledger.status.value,
                "notified": outcome.notified,
                "on_duty_count": len(outcome.on_duty_phone_numbers),
                "credential": "delegated" if source.is_delegated else "system",
            },
        )
        return outcome
