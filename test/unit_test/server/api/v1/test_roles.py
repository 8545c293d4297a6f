import pytest
from httpx import AsyncClient

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio

BASE = "/api/v1/roles"


async def _create(client: AsyncClient, headers, name: str = "Teacher") -> dict:
    response = await client.post(BASE, json={"name": name}, headers=headers)
    assert response.status_code == 201
    return response.json()


class TestRoles:
    async def test_list(self, client: AsyncClient, admin_headers, user_headers):
        await _create(client, admin_headers, "Teacher")
        await _create(client, admin_headers, "Coordinator")

        response = await client.get(BASE, headers=user_headers)

        assert [r["name"] for r in response.json()] == ["Coordinator", "Teacher"]

    async def test_detail_needs_settings_page(self, client: AsyncClient, admin_headers, user_headers, grant_page):
        role = await _create(client, admin_headers)
        assert (await client.get(f"{BASE}/{role['id']}", headers=user_headers)).status_code == 403
        await grant_page("settings")
        assert (await client.get(f"{BASE}/{role['id']}", headers=user_headers)).status_code == 200

    async def test_duplicate(self, client: AsyncClient, admin_headers):
        await _create(client, admin_headers)
        response = await client.post(BASE, json={"name": "Teacher"}, headers=admin_headers)
        assert response.status_code == 409

    async def test_rename(self, client: AsyncClient, admin_headers):
        role = await _create(client, admin_headers)
        response = await client.put(f"{BASE}/{role['id']}", json={"name": "Senior Teacher"}, headers=admin_headers)
        assert response.json()["name"] == "Senior Teacher"

    async def test_direct_permission_grants(self, client: AsyncClient, admin_headers):
        role = await _create(client, admin_headers)
        permission = await client.post(
            "/api/v1/permissions", json={"resource": "rooms", "action": "read"}, headers=admin_headers
        )
        body = {"permission_id": permission.json()["id"]}

        response = await client.post(f"{BASE}/{role['id']}/permissions/grant", json=body, headers=admin_headers)
        assert response.json() == {"message": "Permission granted successfully"}
        again = await client.post(f"{BASE}/{role['id']}/permissions/grant", json=body, headers=admin_headers)
        assert again.status_code == 409

        listed = await client.get(f"{BASE}/{role['id']}/permissions", headers=admin_headers)
        assert [p["name"] for p in listed.json()] == ["rooms:read"]

        response = await client.post(f"{BASE}/{role['id']}/permissions/revoke", json=body, headers=admin_headers)
        assert response.json() == {"message": "Permission revoked successfully"}
        listed = await client.get(f"{BASE}/{role['id']}/permissions", headers=admin_headers)
        assert listed.json() == []

    async def test_delete_detaches_holders(self, client: AsyncClient, approved_user, admin_headers):
        role = await _create(client, admin_headers)
        await client.put(f"/api/v1/soldiers/{approved_user.id}", json={"role_id": role["id"]}, headers=admin_headers)

        response = await client.delete(f"{BASE}/{role['id']}", headers=admin_headers)
        assert response.json() == {"message": "Role deleted successfully"}

        soldier = await client.get(f"/api/v1/soldiers/{approved_user.id}", headers=admin_headers)
        assert soldier.json()["role_id"] is None

    async def test_unknown_role(self, client: AsyncClient, admin_headers):
        response = await client.delete(f"{BASE}/999", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Role not found"
