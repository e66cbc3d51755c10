"""
Database models for owners, memberships and workers.

Owner-owned rows inherit from OwnerScopedMixin.
"""

from feelin_pay.models.base import TimestampMixin, OwnerScopedMixin, UTCDateTime
from feelin_pay.models.owner import Owner
from feelin_pay.models.membership import Membership, MembershipGrant
from feelin_pay.models.worker import Worker, WorkerShift, WorkerBreak, Weekday

__all__ = [
    "TimestampMixin",
    "OwnerScopedMixin",
    "UTCDateTime",
    "Owner",
    "Membership",
    "MembershipGrant",
    "Worker",
    "WorkerShift",
    "WorkerBreak",
    "Weekday",
]
