import os
from typing import AsyncGenerator, Dict
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.pool import StaticPool

# Use in-memory SQLite for testing
# Note: We use check_same_thread=False for SQLite with async
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Set test database URL before importing app
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

ADMIN_EMAIL = "admin@school.test"
ADMIN_PASSWORD = "Admin123!"
USER_PASSWORD = "User1234!"


@pytest_asyncio.fixture
async def test_engine():
    """Create a fresh in-memory database for each test."""
    from sqlmodel import SQLModel

    # Import entities to register them with SQLModel
    import schooladmin.core.database.entities  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a new session for each test."""
    async_session_maker = sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session_maker() as session:  # type: ignore[attr-defined]
        yield session


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from schooladmin.server.core.database import get_session
    from schooladmin.server.main import app

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("schooladmin.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()


def auth_headers(user_id: int) -> Dict[str, str]:
    """Bearer header for ``user_id`` signed with the configured secret."""
    from schooladmin.server.services.deps import get_token_signer

    return {"Authorization": f"Bearer {get_token_signer().issue(user_id)}"}


@pytest_asyncio.fixture
async def admin(session: AsyncSession):
    """The bootstrap administrator (first account in the database)."""
    from schooladmin.server.services.auth import AuthService

    return await AuthService(session).create_user(ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest_asyncio.fixture
async def admin_headers(admin) -> Dict[str, str]:
    return auth_headers(admin.id)


@pytest_asyncio.fixture
async def approved_user(session: AsyncSession, admin):
    """An approved, non-admin account without any permission."""
    from schooladmin.core.models.domain.enums import SoldierType
    from schooladmin.core.models.io.auth import SoldierCreate
    from schooladmin.server.services.auth import AuthService

    return await AuthService(session).create_soldier(
        SoldierCreate(
            email="user@school.test",
            password=USER_PASSWORD,
            personal_number="1000001",
            name="Regular User",
            type=SoldierType.PERMANENT,
        )
    )


@pytest_asyncio.fixture
async def user_headers(approved_user) -> Dict[str, str]:
    return auth_headers(approved_user.id)


@pytest_asyncio.fixture
async def grant_page(session: AsyncSession, admin, approved_user):
    """Grant ``approved_user`` a page permission: ``await grant_page("students", "edit")``."""
    from schooladmin.server.services.permissions import PermissionService

    async def _grant(page: str, action: str = "view") -> None:
        await PermissionService(session).grant_page_permission(approved_user.id, page, action, admin.id)

    return _grant


@pytest.fixture
def student_payload():
    """Request body for a ninth grader starting this academic year: ``student_payload("000000034", parallel="2")``."""
    from datetime import date

    from schooladmin.core.cohort_calendar import academic_start_year, academic_year_start

    def _payload(id_number: str = "000000026", **fields) -> Dict:
        payload = {
            "id_number": id_number,
            "first_name": "Noa",
            "last_name": "Levi",
            "gender": "FEMALE",
            "grade": "ט'",
            "study_start_date": academic_year_start(academic_start_year(date.today())).isoformat(),
        }
        payload.update(fields)
        return payload

    return _payload
