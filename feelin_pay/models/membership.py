"""
Membership catalog and per-owner membership grants.

CRITICAL INVARIANT: at most one grant per owner is active and unexpired.
Renewal deactivates previous grants (never deletes them) so the grant
history is preserved.
"""

from sqlalchemy import (
    Column, String, Integer, Boolean, Numeric, ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import relationship

from feelin_pay.db_base import Base
from feelin_pay.models.base import (
    TimestampMixin, OwnerScopedMixin, UTCDateTime, generate_uuid
)

MIN_DURATION_MONTHS = 1
MAX_DURATION_MONTHS = 12


class Membership(Base, TimestampMixin):
    """
    Catalog entry for a purchasable membership.

    Immutable once referenced by a grant, except for soft deactivation
    through is_active.
    """

    __tablename__ = "memberships"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    duration_months = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    grants = relationship("MembershipGrant", back_populates="membership", lazy="dynamic")

    __table_args__ = (
        CheckConstraint(
            f"duration_months >= {MIN_DURATION_MONTHS} AND duration_months <= {MAX_DURATION_MONTHS}",
            name="ck_memberships_duration_months",
        ),
    )

    def __repr__(self) -> str:
        return f"<Membership(id={self.id}, name={self.name}, months={self.duration_months})>"


class MembershipGrant(Base, TimestampMixin, OwnerScopedMixin):
    """A time-bounded membership period assigned to an owner."""

    __tablename__ = "membership_grants"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    membership_id = Column(
        String(36),
        ForeignKey("memberships.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    starts_at = Column(UTCDateTime, nullable=False)
    expires_at = Column(UTCDateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    owner = relationship("Owner", back_populates="grants")
    membership = relationship("Membership", back_populates="grants")

    __table_args__ = (
        Index("ix_membership_grants_owner_active", "owner_id", "is_active"),
        Index("ix_membership_grants_expires_at", "expires_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<MembershipGrant(id={self.id}, owner_id={self.owner_id}, "
            f"expires_at={self.expires_at}, is_active={self.is_active})>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "membership_id": self.membership_id,
            "starts_at": self.starts_at.isoformat() if self.starts_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "is_active": bool(self.is_active),
        }
