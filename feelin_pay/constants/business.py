"""
Business-wide constants.

All wall-clock reasoning (on-duty windows, daily ledger sheet names,
ledger timestamps) happens in the fixed business timezone below,
independently of the host's local timezone.
"""

from datetime import timedelta, timezone

# Peru (UTC-5, no DST). Not configurable in this version.
BUSINESS_UTC_OFFSET_HOURS = -5
BUSINESS_TZ = timezone(timedelta(hours=BUSINESS_UTC_OFFSET_HOURS), name="UTC-05:00")

# Roles
ROLE_SUPER_ADMIN = "super_admin"
ROLE_OWNER = "owner"

# Daily ledger sheet naming and formatting
LEDGER_SHEET_NAME_FORMAT = "%d-%m-%Y"
LEDGER_TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"
LEDGER_HEADER_ROW = [
    "Nombre del yapeador",
    "Monto",
    "Fecha y hora exacta",
    "Código de seguridad",
    "Medio de Pago",
]

# Push topics are derived from the owner id
PUSH_TOPIC_PREFIX = "business_"


def push_topic_for_owner(owner_id: str) -> str:
    """Return the push notification topic for an owner."""
    return f"{PUSH_TOPIC_PREFIX}{owner_id}"
