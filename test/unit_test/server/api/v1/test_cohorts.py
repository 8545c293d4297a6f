from datetime import date

import pytest
from httpx import AsyncClient

from schooladmin.core.cohort_calendar import FIRST_COHORT_YEAR, calculate_cohort_from_grade, max_cohort_year

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio

BASE = "/api/v1/cohorts"


class TestCohortCrud:
    async def test_create_graduated_cohort(self, client: AsyncClient, admin_headers):
        response = await client.post(BASE, json={"start_year": 1990}, headers=admin_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == 'מחזור י"ח'
        assert body["current_grade"] == 'י"ב'
        assert body["is_active"] is False

    async def test_explicit_null_grade(self, client: AsyncClient, admin_headers):
        response = await client.post(BASE, json={"start_year": 1990, "current_grade": None}, headers=admin_headers)
        assert response.json()["current_grade"] is None

    async def test_duplicate_and_out_of_range(self, client: AsyncClient, admin_headers):
        await client.post(BASE, json={"start_year": 1990}, headers=admin_headers)

        duplicate = await client.post(BASE, json={"start_year": 1990}, headers=admin_headers)
        assert duplicate.status_code == 400
        assert duplicate.json()["detail"] == 'מחזור עם שנת התחלה 1990 כבר קיים (מחזור י"ח)'

        too_old = await client.post(BASE, json={"start_year": FIRST_COHORT_YEAR - 1}, headers=admin_headers)
        assert too_old.status_code == 400

    async def test_invalid_grade(self, client: AsyncClient, admin_headers):
        response = await client.post(BASE, json={"start_year": 1990, "current_grade": "x"}, headers=admin_headers)
        assert response.status_code == 422

    async def test_list_get_update_delete(self, client: AsyncClient, admin_headers):
        first = (await client.post(BASE, json={"start_year": 1990}, headers=admin_headers)).json()
        await client.post(BASE, json={"start_year": 1991}, headers=admin_headers)

        listed = (await client.get(BASE, headers=admin_headers)).json()
        assert [c["start_year"] for c in listed] == [1991, 1990]
        assert all(c["student_count"] == 0 for c in listed)

        updated = await client.put(f"{BASE}/{first['id']}", json={"name": "renamed"}, headers=admin_headers)
        assert updated.json()["name"] == 'מחזור י"ח'

        deleted = await client.delete(f"{BASE}/{first['id']}", headers=admin_headers)
        assert deleted.json() == {"message": "Cohort deactivated successfully"}
        assert (await client.get(f"{BASE}/{first['id']}", headers=admin_headers)).json()["is_active"] is False

    async def test_unknown_cohort(self, client: AsyncClient, admin_headers):
        response = await client.get(f"{BASE}/42", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "Cohort not found"


class TestCalculations:
    async def test_calculate_grade_on_date(self, client: AsyncClient, admin_headers):
        response = await client.post(
            f"{BASE}/calculate-grade", json={"start_year": 2024, "date": "2025-10-01"}, headers=admin_headers
        )
        assert response.json() == {"grade": "י'", "is_active": True}

    async def test_calculate_grade_before_start(self, client: AsyncClient, admin_headers):
        response = await client.post(
            f"{BASE}/calculate-grade", json={"start_year": 2024, "date": "2024-08-31"}, headers=admin_headers
        )
        assert response.json() == {"grade": None, "is_active": False}

    async def test_calculate_cohort(self, client: AsyncClient, admin_headers):
        response = await client.post(f"{BASE}/calculate-cohort", json={"grade": "ט'"}, headers=admin_headers)
        assert response.json()["start_year"] == calculate_cohort_from_grade("ט'")

    async def test_validate_match(self, client: AsyncClient, admin_headers):
        ok = await client.post(
            f"{BASE}/validate-match",
            json={"cohort": 'מחזור נ"ב', "grade": "י'", "date": "2025-10-01"},
            headers=admin_headers,
        )
        assert ok.json()["valid"] is True

        wrong = await client.post(
            f"{BASE}/validate-match", json={"cohort": 2024, "grade": "ט'", "date": "2025-10-01"}, headers=admin_headers
        )
        assert wrong.json()["valid"] is False
        assert wrong.json()["expected_grade"] == "י'"

    async def test_view_grant_covers_calculations_only(self, client: AsyncClient, user_headers, grant_page):
        await grant_page("cohorts")

        response = await client.post(f"{BASE}/calculate-cohort", json={"grade": "י'"}, headers=user_headers)
        assert response.status_code == 200
        assert (await client.post(BASE, json={"start_year": 1990}, headers=user_headers)).status_code == 403


class TestSynchronization:
    async def test_refresh_creates_every_cohort(self, client: AsyncClient, admin_headers):
        response = await client.post(f"{BASE}/refresh", headers=admin_headers)

        body = response.json()
        assert body["total"] == max_cohort_year(date.today()) - FIRST_COHORT_YEAR + 1
        assert body["active"] + body["inactive"] == body["total"]
        assert body["message"] == "כל המחזורים עודכנו בהצלחה"

    async def test_update_names(self, client: AsyncClient, admin_headers):
        created = (await client.post(BASE, json={"start_year": 1990}, headers=admin_headers)).json()

        body = (await client.post(f"{BASE}/update-names", headers=admin_headers)).json()

        assert body["updated"] == 0
        assert body["total"] == max_cohort_year(date.today()) - FIRST_COHORT_YEAR + 1
        assert (await client.get(f"{BASE}/{created['id']}", headers=admin_headers)).json()["name"] == 'מחזור י"ח'
