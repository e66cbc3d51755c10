"""
Root test configuration and fixtures.

Each test gets a fresh SQLite in-memory database so services that commit
(renewal, ledger folder persistence, token refresh) stay isolated.
"""

import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from feelin_pay.config.settings import Settings

# Set test environment
os.environ.setdefault("ENV", "test")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key")

# 2025-03-10 is a Monday; 15:00 UTC is 10:00 business time (UTC-5)
MONDAY_10AM_LOCAL = datetime(2025, 3, 10, 15, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="function")
def db_engine():
    """SQLite in-memory engine with all tables created."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    from feelin_pay.db_base import Base
    from feelin_pay import models  # noqa: F401 - registers all tables

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Database session bound to the per-test engine."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()

    yield session

    session.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        external_timeout_seconds=10.0,
        token_refresh_margin_minutes=5,
        google_service_account_file=None,
        google_scopes=["https://www.googleapis.com/auth/drive"],
        google_client_id="client-id",
        google_client_secret="client-secret",
        fcm_scopes=["https://www.googleapis.com/auth/firebase.messaging"],
        firebase_project_id="feelin-pay-test",
    )


@pytest.fixture
def now() -> datetime:
    return MONDAY_10AM_LOCAL


# =============================================================================
# Factories
# =============================================================================


@pytest.fixture
def make_owner(db_session):
    """
    Factory fixture that persists an owner.

    Usage:
        owner = make_owner(trial_ends_at=now - timedelta(days=1))
    """
    from feelin_pay.models.owner import Owner
    from feelin_pay.models.base import generate_uuid

    counter = {"n": 0}

    def _make(**overrides) -> Owner:
        counter["n"] += 1
        defaults = {
            "id": generate_uuid(),
            "name": f"Bodega {counter['n']}",
            "email": f"owner{counter['n']}@example.com",
            "role": "owner",
            "is_active": True,
            "trial_starts_at": MONDAY_10AM_LOCAL - timedelta(days=30),
            "trial_ends_at": MONDAY_10AM_LOCAL - timedelta(days=27),
        }
        defaults.update(overrides)
        owner = Owner(**defaults)
        db_session.add(owner)
        db_session.commit()
        return owner

    return _make


@pytest.fixture
def make_membership(db_session):
    """Factory fixture that persists a catalog membership."""
    from feelin_pay.models.membership import Membership
    from feelin_pay.models.base import generate_uuid

    def _make(duration_months: int = 1, **overrides) -> Membership:
        defaults = {
            "id": generate_uuid(),
            "name": f"Plan {duration_months} mes(es)",
            "duration_months": duration_months,
            "price": Decimal("29.90"),
            "is_active": True,
        }
        defaults.update(overrides)
        membership = Membership(**defaults)
        db_session.add(membership)
        db_session.commit()
        return membership

    return _make


@pytest.fixture
def make_grant(db_session):
    """Factory fixture that persists a membership grant."""
    from feelin_pay.models.membership import MembershipGrant
    from feelin_pay.models.base import generate_uuid

    def _make(owner, membership, expires_at: datetime, **overrides) -> MembershipGrant:
        defaults = {
            "id": generate_uuid(),
            "owner_id": owner.id,
            "membership_id": membership.id,
            "starts_at": expires_at - timedelta(days=30),
            "expires_at": expires_at,
            "is_active": True,
        }
        defaults.update(overrides)
        grant = MembershipGrant(**defaults)
        db_session.add(grant)
        db_session.commit()
        return grant

    return _make


@pytest.fixture
def make_worker(db_session):
    """
    Factory fixture that persists a worker with optional shifts and breaks.

    Usage:
        make_worker(owner, phone="999111222",
                    shifts=[(1, "09:00", "18:00")], breaks=[(1, "13:00", "14:00")])
    """
    from feelin_pay.models.worker import Worker, WorkerShift, WorkerBreak
    from feelin_pay.models.base import generate_uuid

    def _make(owner, phone="999000111", shifts=(), breaks=(), **overrides) -> Worker:
        defaults = {
            "id": generate_uuid(),
            "owner_id": owner.id,
            "name": "Trabajador",
            "phone": phone,
            "is_active": True,
            "notifications_enabled": True,
        }
        defaults.update(overrides)
        worker = Worker(**defaults)
        for position, (weekday, start, end) in enumerate(shifts):
            worker.shifts.append(
                WorkerShift(weekday=weekday, start_time=start, end_time=end, position=position, is_active=True)
            )
        for weekday, start, end in breaks:
            worker.breaks.append(WorkerBreak(weekday=weekday, start_time=start, end_time=end, is_active=True))
        db_session.add(worker)
        db_session.commit()
        return worker

    return _make


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: mark test as slow-running")
