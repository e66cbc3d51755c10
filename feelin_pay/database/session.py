"""
Database session management with connection pooling.

Provides a shared FastAPI dependency for database sessions across all routes.

Usage:
    from feelin_pay.database.session import get_db_session

    @router.get("/owners/{owner_id}")
    async def get_owner(owner_id: str, db: Session = Depends(get_db_session)):
        ...
"""

import os
import logging
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from fastapi import HTTPException, status

logger = logging.getLogger(__name__)

# Module-level engine singleton
_engine = None
_SessionLocal = None


def _get_database_url() -> str:
    """
    Get and normalize the database URL from environment.

    Handles postgres:// URLs by converting to postgresql://.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is not set")

    # SQLAlchemy requires postgresql://
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)

    return database_url


def get_engine():
    """
    Get or create the database engine singleton.

    PostgreSQL/MySQL get a connection pool (5 + 10 overflow, pre-ping,
    30 minute recycle). SQLite is used as-is.
    """
    global _engine
    if _engine is None:
        try:
            database_url = _get_database_url()
            if database_url.startswith("sqlite"):
                _engine = create_engine(
                    database_url,
                    connect_args={"check_same_thread": False},
                )
            else:
                _engine = create_engine(
                    database_url,
                    pool_size=5,
                    max_overflow=10,
                    pool_pre_ping=True,
                    pool_recycle=1800,
                )
            logger.info("Database engine created")
        except ValueError as e:
            logger.error("Failed to create database engine", extra={"error": str(e)})
            raise
    return _engine


def get_session_factory() -> sessionmaker:
    """Get or create the session factory singleton."""
    global _SessionLocal
    if _SessionLocal is None:
        engine = get_engine()
        _SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=engine
        )
    return _SessionLocal


def get_db_session() -> Generator[Session, None, None]:
    """
    FastAPI dependency for database sessions.

    Creates a new session for each request and ensures proper cleanup.
    Raises HTTP 503 if database is not configured.
    """
    try:
        SessionLocal = get_session_factory()
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not configured"
        )

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()

