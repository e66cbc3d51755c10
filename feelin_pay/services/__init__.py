"""
Domain services for the payment pipeline and membership engine.
"""

from feelin_pay.services.credential_resolver import (
    CredentialResolver,
    CredentialSource,
    Delegated,
    DelegatedTokenService,
    SystemDefault,
)
from feelin_pay.services.duty_scheduler import DutyScheduler
from feelin_pay.services.entitlement_gate import (
    EntitlementDecision,
    EntitlementGate,
    EntitlementReason,
)
from feelin_pay.services.ledger_service import LedgerEntry, LedgerOutcome, LedgerService, LedgerStatus
from feelin_pay.services.membership_renewal import MembershipRenewalService, MembershipStatus, add_months
from feelin_pay.services.notification_fanout import NotificationFanout
from feelin_pay.services.payment_pipeline import (
    PaymentEvent,
    PaymentOutcome,
    PaymentPipeline,
    PipelineStage,
)

__all__ = [
    "CredentialResolver",
    "CredentialSource",
    "Delegated",
    "DelegatedTokenService",
    "SystemDefault",
    "DutyScheduler",
    "EntitlementDecision",
    "EntitlementGate",
    "EntitlementReason",
    "LedgerEntry",
    "LedgerOutcome",
    "LedgerService",
    "LedgerStatus",
    "MembershipRenewalService",
    "MembershipStatus",
    "add_months",
    "NotificationFanout",
    "PaymentEvent",
    "PaymentOutcome",
    "PaymentPipeline",
    "PipelineStage",
]
