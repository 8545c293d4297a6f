import pytest
from httpx import AsyncClient

from schooladmin import __version__

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio


async def test_health_check(client: AsyncClient):
    response = await client.get("http://localhost/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_version(client: AsyncClient):
    response = await client.get("http://localhost/version")
    assert response.status_code == 200
    assert response.json() == {"version": __version__, "schema_version": "v1"}


async def test_health_needs_no_token(client: AsyncClient):
    response = await client.get("/health", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 200
