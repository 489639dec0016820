"""
Database session configuration.

Async SQLAlchemy engine, the per-request session dependency and the
unit-of-work helper used by every multi-record write.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from fleetflow.app.core.config import settings

logger = logging.getLogger("fleetflow.db")

engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    future=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.

    One session per request, released when the request finishes whether it
    succeeded or not. Uncommitted work is discarded on close.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


@asynccontextmanager
async def unit_of_work(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Commit everything done inside the block at once, or nothing.

    Usage:
        async with unit_of_work(db):
            trip.status = TripStatus.DISPATCHED
            vehicle.status = VehicleStatus.ON_TRIP

    Any exception raised inside the block (including a failing commit)
    rolls the session back and is re-raised to the caller.
    """
    try:
        yield db
    except Exception:
        await db.rollback()
        raise

    try:
        await db.commit()
    except Exception:
        logger.exception("Commit failed, rolling back unit of work")
        await db.rollback()
        raise
