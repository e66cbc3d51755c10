"""
Composition root for request-scoped services.

Long-lived clients (Google Workspace, FCM, service-account token
provider) are built once in the application lifespan and stored on
app.state. Each request wires them together with its own DB session.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from feelin_pay.config.settings import Settings
from feelin_pay.database.session import get_db_session
from feelin_pay.repositories.owner_repository import OwnerRepository
from feelin_pay.services.credential_resolver import CredentialResolver, DelegatedTokenService
from feelin_pay.services.duty_scheduler import DutyScheduler
from feelin_pay.services.entitlement_gate import EntitlementGate
from feelin_pay.services.ledger_service import LedgerService
from feelin_pay.services.membership_renewal import MembershipRenewalService
from feelin_pay.services.notification_fanout import NotificationFanout
from feelin_pay.services.payment_pipeline import PaymentPipeline


def get_payment_pipeline(
    request: Request,
    db_session: Session = Depends(get_db_session),
) -> PaymentPipeline:
    """Build the payment pipeline for one request."""
    state = request.app.state
    settings: Settings = state.settings

    credentials = CredentialResolver(
        DelegatedTokenService(db_session, settings),
        state.google_service_account,
    )
    return PaymentPipeline(
        gate=EntitlementGate(db_session),
        scheduler=DutyScheduler(db_session),
        credentials=credentials,
        ledger=LedgerService(state.google_client, credentials, OwnerRepository(db_session), settings),
        fanout=NotificationFanout(state.fcm_client),
    )


def get_membership_service(db_session: Session = Depends(get_db_session)) -> MembershipRenewalService:
    return MembershipRenewalService(db_session)


def get_duty_scheduler(db_session: Session = Depends(get_db_session)) -> DutyScheduler:
    return DutyScheduler(db_session)


def get_entitlement_gate(db_session: Session = Depends(get_db_session)) -> EntitlementGate:
    return EntitlementGate(db_session)
