"""
Owner model: the business account that receives payments.

Entitlement is never stored as a state field. It is derived on every
check from the trial window and the owner's membership grants.
"""

from datetime import datetime

from sqlalchemy import Column, String, Boolean, Text, Index
from sqlalchemy.orm import relationship

from feelin_pay.db_base import Base
from feelin_pay.constants.business import ROLE_OWNER, ROLE_SUPER_ADMIN
from feelin_pay.models.base import TimestampMixin, UTCDateTime, generate_uuid


class Owner(Base, TimestampMixin):
    """
    Business owner account.

    drive_folder_id is populated lazily on the first successful ledger
    write and is only overwritten by the ledger auto-heal procedure.
    Google tokens are Fernet-encrypted via feelin_pay.platform.secrets.
    """

    __tablename__ = "owners"

    id = Column(String(36), primary_key=True, default=generate_uuid)

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(32), nullable=True)
    role = Column(
        String(32),
        nullable=False,
        default=ROLE_OWNER,
        comment="super_admin bypasses entitlement checks"
    )
    is_active = Column(Boolean, nullable=False, default=True)

    # Trial window, fixed at signup
    trial_starts_at = Column(UTCDateTime, nullable=True)
    trial_ends_at = Column(UTCDateTime, nullable=True)

    # External ledger reference
    drive_folder_id = Column(
        String(255),
        nullable=True,
        comment="Google Drive folder holding the daily payment sheets"
    )

    # Delegated Google credential material (encrypted at rest)
    google_access_token_encrypted = Column(Text, nullable=True)
    google_refresh_token_encrypted = Column(Text, nullable=True)
    google_token_expires_at = Column(UTCDateTime, nullable=True)

    grants = relationship(
        "MembershipGrant",
        back_populates="owner",
        lazy="dynamic",
    )
    workers = relationship(
        "Worker",
        back_populates="owner",
        lazy="dynamic",
    )

    __table_args__ = (
        Index("ix_owners_role", "role"),
    )

    def __repr__(self) -> str:
        return f"<Owner(id={self.id}, role={self.role})>"

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    def is_in_trial(self, now: datetime) -> bool:
        """True while ``now`` is strictly before the trial end."""
        if not self.trial_ends_at:
            return False
        return now < self.trial_ends_at

    @property
    def has_delegated_credentials(self) -> bool:
        return bool(self.google_access_token_encrypted or self.google_refresh_token_encrypted)
