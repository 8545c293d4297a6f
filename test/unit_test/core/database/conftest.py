"""Test configuration for database unit tests.

This module provides common fixtures for testing the centralized database
layer against an in-memory SQLite database.
"""

from __future__ import annotations

from datetime import date
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.pool import StaticPool

from schooladmin.core.database import create_all
from schooladmin.core.models.domain.enums import Gender


@pytest_asyncio.fixture(scope="function")
async def in_memory_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create in-memory SQLite engine with every table."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def in_memory_session(in_memory_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Create in-memory SQLite session for testing."""
    async_session = sessionmaker(
        bind=in_memory_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture(scope="function")
def sample_student_data() -> dict:
    """Sample student row for testing."""
    return {
        "id_number": "000000026",
        "first_name": "Noa",
        "last_name": "Levi",
        "gender": Gender.FEMALE,
        "grade": "י'",
        "parallel": "2",
        "study_start_date": date(2025, 9, 1),
    }


@pytest.fixture(scope="function")
def sample_soldier_data() -> dict:
    """Sample staff account for testing."""
    return {
        "email": "dana@school.test",
        "personal_number": "1234567",
        "name": "Dana",
        "password": "hashed",
    }
