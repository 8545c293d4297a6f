import pytest
from httpx import AsyncClient

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio

BASE = "/api/v1/tracks"


class TestTracks:
    async def test_create_and_list(self, client: AsyncClient, admin_headers):
        created = await client.post(BASE, json={"name": "  מדעים ", "description": "Sciences"}, headers=admin_headers)

        assert created.status_code == 201
        body = created.json()
        assert body["name"] == "מדעים"
        assert (body["is_active"], body["student_count"]) == (False, 0)
        assert [t["name"] for t in (await client.get(BASE, headers=admin_headers)).json()] == ["מדעים"]

    async def test_blank_name(self, client: AsyncClient, admin_headers):
        assert (await client.post(BASE, json={"name": "  "}, headers=admin_headers)).status_code == 422

    async def test_duplicate_name(self, client: AsyncClient, admin_headers):
        await client.post(BASE, json={"name": "Cyber"}, headers=admin_headers)
        response = await client.post(BASE, json={"name": "Cyber"}, headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "מגמה עם שם זה כבר קיימת"

    async def test_track_with_students_is_active(self, client: AsyncClient, admin_headers, student_payload):
        track = (await client.post(BASE, json={"name": "Cyber"}, headers=admin_headers)).json()
        await client.post("/api/v1/students", json=student_payload(track="Cyber"), headers=admin_headers)

        fetched = (await client.get(f"{BASE}/{track['id']}", headers=admin_headers)).json()
        assert (fetched["is_active"], fetched["student_count"]) == (True, 1)
        assert [t["name"] for t in (await client.get(BASE, params={"is_active": False}, headers=admin_headers)).json()] == []

        refused = await client.delete(f"{BASE}/{track['id']}", headers=admin_headers)
        assert refused.status_code == 400
        assert refused.json()["detail"] == "לא ניתן למחוק מגמה פעילה (יש 1 תלמידים במגמה זו)"

    async def test_update_and_delete(self, client: AsyncClient, admin_headers):
        track = (await client.post(BASE, json={"name": "Cyber"}, headers=admin_headers)).json()

        updated = await client.put(f"{BASE}/{track['id']}", json={"name": "Cyber Security"}, headers=admin_headers)
        assert updated.json()["name"] == "Cyber Security"

        deleted = await client.delete(f"{BASE}/{track['id']}", headers=admin_headers)
        assert deleted.json() == {"message": "Track deleted successfully"}
        missing = await client.get(f"{BASE}/{track['id']}", headers=admin_headers)
        assert missing.status_code == 404
        assert missing.json()["detail"] == "Track not found"

    async def test_view_grant(self, client: AsyncClient, user_headers, grant_page):
        await grant_page("tracks")

        assert (await client.get(BASE, headers=user_headers)).status_code == 200
        assert (await client.post(BASE, json={"name": "Cyber"}, headers=user_headers)).status_code == 403
