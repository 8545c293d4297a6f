import pytest
from httpx import AsyncClient

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio

BASE = "/api/v1/soldiers"

NEW_SOLDIER = {
    "email": "soldier@school.test",
    "password": "Soldier1!",
    "personal_number": "3000001",
    "name": "New Soldier",
    "type": "CONSCRIPT",
}


class TestSoldierReads:
    async def test_list_needs_resources_page(self, client: AsyncClient, user_headers, grant_page):
        denied = await client.get(BASE, headers=user_headers)
        assert denied.status_code == 403
        assert denied.json()["detail"] == "You do not have permission to access GET /soldiers"

        await grant_page("resources")
        response = await client.get(BASE, headers=user_headers)
        assert response.status_code == 200
        assert {s["email"] for s in response.json()} == {"admin@school.test", "user@school.test"}

    async def test_get_one(self, client: AsyncClient, approved_user, admin_headers):
        response = await client.get(f"{BASE}/{approved_user.id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["personal_number"] == "1000001"

    async def test_unknown(self, client: AsyncClient, admin_headers):
        response = await client.get(f"{BASE}/999", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "User not found"


class TestSoldierWrites:
    async def test_create_is_admin_only(self, client: AsyncClient, user_headers, grant_page):
        await grant_page("resources", "edit")
        response = await client.post(BASE, json=NEW_SOLDIER, headers=user_headers)
        assert response.status_code == 403

    async def test_create(self, client: AsyncClient, admin_headers):
        response = await client.post(BASE, json=NEW_SOLDIER, headers=admin_headers)
        assert response.status_code == 201
        data = response.json()
        assert data["approval_status"] == "APPROVED"
        assert data["needs_profile_completion"] is False

    async def test_duplicate_personal_number(self, client: AsyncClient, approved_user, admin_headers):
        response = await client.post(
            BASE, json={**NEW_SOLDIER, "personal_number": approved_user.personal_number}, headers=admin_headers
        )
        assert response.status_code == 409

    async def test_update_and_delete(self, client: AsyncClient, approved_user, admin_headers):
        response = await client.put(f"{BASE}/{approved_user.id}", json={"type": "CONSCRIPT"}, headers=admin_headers)
        assert response.json()["type"] == "CONSCRIPT"

        response = await client.delete(f"{BASE}/{approved_user.id}", headers=admin_headers)
        assert response.json() == {"message": "Soldier deleted successfully"}
