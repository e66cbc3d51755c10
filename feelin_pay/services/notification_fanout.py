"""
Notification fanout: one push message per payment to the owner's topic.

Fire-and-forget. Failures are logged and reported as notified=false;
they never fail the payment.
"""

import logging
from decimal import Decimal
from typing import Optional

from feelin_pay.constants.business import push_topic_for_owner
from feelin_pay.integrations.fcm.client import FCMClient, PushMessage
from feelin_pay.integrations.fcm.exceptions import FCMError
from feelin_pay.integrations.result import CallResult
from feelin_pay.services.errors import ExternalServiceError

logger = logging.getLogger(__name__)


def build_payment_message(
    owner_id: str,
    payer_name: str,
    amount: Decimal,
    method: str,
    security_code: Optional[str] = None,
) -> PushMessage:
    """Build the push payload announcing a received payment."""
    label = "Plin" if method == "plin" else "Yape"
    data = {
        "type": "payment_received",
        "payerName": payer_name,
        "amount": str(amount),
        "method": method,
    }
    if security_code:
        data["securityCode"] = security_code

    return PushMessage(
        topic=push_topic_for_owner(owner_id),
        title=f"Nuevo pago por {label}",
        body=f"{payer_name} te envió S/ {amount}",
        data=data,
    )


class NotificationFanout:
    """Publishes payment notifications through FCM."""

    def __init__(self, fcm: FCMClient):
        self.fcm = fcm

    async def notify_payment(self, owner_id: str, message: PushMessage) -> CallResult:
        """Send the message. Returns the FCM message name on success."""
        try:
            name = await self.fcm.send(message)
        except FCMError as e:
            logger.warning(
                "Payment notification failed",
                extra=ExternalServiceError("push_notification", e, owner_id=owner_id).log_extra(),
            )
            return CallResult.failed(e)
        return CallResult.succeeded(name)
