"""
Global database session and engine management.

This module manages the global AsyncEngine and async_sessionmaker instances
that are used throughout the application for database access.
"""

from __future__ import annotations

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.server.core.config import settings

from .utils import create_all, create_engine, create_sessionmaker

logger = logging.getLogger(__name__)

# Create global engine and session factory
engine = create_engine(settings.database_url)
async_session_maker = create_sessionmaker(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session_maker() as session:
        yield session


async def init_db() -> None:
    """
    Initialize the database.

    Creates missing tables when ``DATABASE_AUTO_CREATE`` is on. Deployments that
    run ``alembic upgrade head`` before starting the server should turn it off.
    """
    if not settings.database_auto_create:
        logger.info("DATABASE_AUTO_CREATE is off, expecting Alembic to manage the schema")
        return
    await create_all(engine)
    logger.info("Database tables ensured")
