"""
Base mixins for database models.

Provides common functionality:
- TimestampMixin: created_at, updated_at timestamps
- OwnerScopedMixin: owner_id foreign key for owner-owned rows
- generate_uuid: UUID generation for primary keys
- UTCDateTime: Cross-database timezone-aware datetime type
"""

import uuid
from datetime import timezone

from sqlalchemy import Column, String, DateTime, ForeignKey, TypeDecorator, func
from sqlalchemy.orm import declared_attr


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime column normalized to UTC.

    PostgreSQL stores timestamptz natively. SQLite has no timezone support,
    so values are stored as naive UTC and re-tagged with UTC on load.
    Python code always sees aware UTC datetimes.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def generate_uuid() -> str:
    """Generate a UUID4 string for use as a primary key default."""
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        comment="Timestamp when record was created"
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
        comment="Timestamp when record was last updated"
    )


class OwnerScopedMixin:
    """
    Mixin that adds owner_id column for rows belonging to a business owner.

    Every query over an owner-scoped table MUST filter by owner_id.
    """

    @declared_attr
    def owner_id(cls):
        return Column(
            String(36),
            ForeignKey("owners.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
            comment="Owning business account"
        )
