"""
Clock helpers.

Services take an explicit ``now`` wherever a decision depends on time so
tests can pin the instant; these helpers supply the default.
"""

from datetime import datetime, timezone
from typing import Optional

from feelin_pay.constants.business import BUSINESS_TZ


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are assumed UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_business_local(value: Optional[datetime] = None) -> datetime:
    """Convert an instant (default: now) to the fixed business timezone."""
    return as_utc(value or utc_now()).astimezone(BUSINESS_TZ)
