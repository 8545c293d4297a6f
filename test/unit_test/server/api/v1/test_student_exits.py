import pytest
from httpx import AsyncClient

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio

BASE = "/api/v1/student-exits"


async def _student_id(client: AsyncClient, headers, payload) -> int:
    response = await client.post("/api/v1/students", json=payload, headers=headers)
    return response.json()["id"]


class TestStudentExits:
    async def test_record_exit(self, client: AsyncClient, admin_headers, student_payload):
        student_id = await _student_id(client, admin_headers, student_payload())

        created = await client.post(
            BASE,
            json={"student_id": student_id, "exit_category": "relocation", "exit_date": "2025-12-01"},
            headers=admin_headers,
        )

        assert created.status_code == 201
        assert created.json()["has_left"] is True
        student = (await client.get(f"/api/v1/students/{student_id}", headers=admin_headers)).json()
        assert student["status"] == "LEFT"
        assert student["exit_record"]["exit_category"] == "relocation"

    async def test_one_record_per_student(self, client: AsyncClient, admin_headers, student_payload):
        student_id = await _student_id(client, admin_headers, student_payload())
        await client.post(BASE, json={"student_id": student_id}, headers=admin_headers)

        response = await client.post(BASE, json={"student_id": student_id}, headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["detail"] == "Exit record already exists for this student"

    async def test_unknown_student(self, client: AsyncClient, admin_headers):
        response = await client.post(BASE, json={"student_id": 404}, headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Student not found"

    async def test_list_and_filter(self, client: AsyncClient, admin_headers, student_payload):
        first = await _student_id(client, admin_headers, student_payload("000000026"))
        second = await _student_id(client, admin_headers, student_payload("000000034", first_name="Dan"))
        await client.post(
            BASE, json={"student_id": first, "exit_date": "2025-10-01", "was_desired_exit": True}, headers=admin_headers
        )
        await client.post(
            BASE, json={"student_id": second, "exit_date": "2025-11-01", "expelled_from_school": True}, headers=admin_headers
        )

        listed = (await client.get(BASE, headers=admin_headers)).json()
        assert [e["student"]["first_name"] for e in listed] == ["Dan", "Noa"]

        desired = (await client.get(BASE, params={"was_desired_exit": True}, headers=admin_headers)).json()
        assert [e["student_id"] for e in desired] == [first]

    async def test_get_and_update(self, client: AsyncClient, admin_headers, student_payload):
        student_id = await _student_id(client, admin_headers, student_payload())
        await client.post(BASE, json={"student_id": student_id}, headers=admin_headers)

        updated = await client.put(
            f"{BASE}/{student_id}", json={"clearance_completed": True, "receiving_institution": "Ort"}, headers=admin_headers
        )
        assert updated.json()["clearance_completed"] is True

        fetched = (await client.get(f"{BASE}/student/{student_id}", headers=admin_headers)).json()
        assert fetched["receiving_institution"] == "Ort"

    async def test_missing_record(self, client: AsyncClient, admin_headers):
        response = await client.get(f"{BASE}/student/9", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Exit record not found"

    async def test_view_grant_reads_only(self, client: AsyncClient, user_headers, grant_page):
        await grant_page("student-exits")

        assert (await client.get(BASE, headers=user_headers)).status_code == 200
        assert (await client.put(f"{BASE}/1", json={"has_left": False}, headers=user_headers)).status_code == 403
