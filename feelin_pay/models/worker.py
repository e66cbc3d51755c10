"""
Worker directory: an owner's employees and their weekly schedules.

Schedules are edited freely by the owner and take effect immediately;
nothing derived from them is cached.

Weekdays use ISO numbering (1=Monday .. 7=Sunday).
"""

import enum

from sqlalchemy import (
    Column, String, Integer, Boolean, ForeignKey, Index, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship

from feelin_pay.db_base import Base
from feelin_pay.models.base import TimestampMixin, OwnerScopedMixin, generate_uuid


class Weekday(enum.IntEnum):
    """Closed set of ISO weekdays."""
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7


class Worker(Base, TimestampMixin, OwnerScopedMixin):
    """An owner's employee who may receive on-duty payment alerts."""

    __tablename__ = "workers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    notifications_enabled = Column(
        Boolean,
        nullable=False,
        default=True,
        comment="Consulted only when the worker has no schedule configured"
    )

    owner = relationship("Owner", back_populates="workers")
    shifts = relationship(
        "WorkerShift",
        back_populates="worker",
        cascade="all, delete-orphan",
        order_by=lambda: [WorkerShift.weekday, WorkerShift.position],
    )
    breaks = relationship(
        "WorkerBreak",
        back_populates="worker",
        cascade="all, delete-orphan",
        order_by=lambda: WorkerBreak.weekday,
    )

    __table_args__ = (
        Index("ix_workers_owner_active", "owner_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Worker(id={self.id}, owner_id={self.owner_id}, active={self.is_active})>"


class WorkerShift(Base, TimestampMixin):
    """One shift interval on one weekday. A day may hold several split shifts."""

    __tablename__ = "worker_shifts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    worker_id = Column(
        String(36),
        ForeignKey("workers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    weekday = Column(Integer, nullable=False, comment="ISO weekday 1=Mon..7=Sun")
    position = Column(Integer, nullable=False, default=0, comment="Order within the day")
    start_time = Column(String(5), nullable=False, comment='"HH:MM" 24h')
    end_time = Column(String(5), nullable=False, comment='"HH:MM" 24h')
    is_active = Column(Boolean, nullable=False, default=True)

    worker = relationship("Worker", back_populates="shifts")

    __table_args__ = (
        CheckConstraint("weekday >= 1 AND weekday <= 7", name="ck_worker_shifts_weekday"),
        Index("ix_worker_shifts_worker_day", "worker_id", "weekday"),
    )


class WorkerBreak(Base, TimestampMixin):
    """At most one break interval per worker and weekday."""

    __tablename__ = "worker_breaks"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    worker_id = Column(
        String(36),
        ForeignKey("workers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    weekday = Column(Integer, nullable=False, comment="ISO weekday 1=Mon..7=Sun")
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    worker = relationship("Worker", back_populates="breaks")

    __table_args__ = (
        CheckConstraint("weekday >= 1 AND weekday <= 7", name="ck_worker_breaks_weekday"),
        UniqueConstraint("worker_id", "weekday", name="uq_worker_breaks_worker_day"),
    )
