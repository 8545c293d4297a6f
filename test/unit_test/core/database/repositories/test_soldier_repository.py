"""Unit tests for the staff account repository."""

from __future__ import annotations

import pytest

from schooladmin.core.database.entities.organization import Department, Role
from schooladmin.core.database.entities.soldiers import Soldier
from schooladmin.core.database.repositories import DepartmentRepository, RoleRepository, SoldierRepository
from schooladmin.core.models.domain.enums import ApprovalStatus

pytestmark = pytest.mark.asyncio


@pytest.fixture
def repository(in_memory_session) -> SoldierRepository:
    return SoldierRepository(in_memory_session)


class TestLookups:
    async def test_get_by_email_and_personal_number(self, repository, sample_soldier_data):
        created = await repository.create(Soldier(**sample_soldier_data))

        assert (await repository.get_by_email("dana@school.test")).id == created.id
        assert (await repository.get_by_personal_number("1234567")).id == created.id
        assert await repository.get_by_email("nobody@school.test") is None

    async def test_list_is_ordered_by_name(self, repository):
        await repository.create(Soldier(email="b@school.test", name="Yael", password="x"))
        await repository.create(Soldier(email="a@school.test", name="Avi", password="x"))

        assert [s.name for s in await repository.list()] == ["Avi", "Yael"]


class TestCounts:
    async def test_count_and_count_admins(self, repository):
        await repository.create(Soldier(email="a@school.test", password="x", is_admin=True))
        await repository.create(Soldier(email="b@school.test", password="x"))

        assert await repository.count() == 2
        assert await repository.count_admins() == 1

    async def test_list_by_status(self, repository):
        await repository.create(Soldier(email="a@school.test", password="x", approval_status=ApprovalStatus.APPROVED))
        await repository.create(Soldier(email="b@school.test", password="x"))

        pending = await repository.list_by_status(ApprovalStatus.PENDING)

        assert [s.email for s in pending] == ["b@school.test"]


class TestDepartmentsAndRoles:
    async def test_list_by_department(self, in_memory_session, repository):
        department = await DepartmentRepository(in_memory_session).create(Department(name="Education"))
        await repository.create(
            Soldier(email="a@school.test", name="Avi", password="x", department_id=department.id, is_commander=True)
        )
        await repository.create(Soldier(email="b@school.test", name="Bat", password="x", department_id=department.id))
        await repository.create(Soldier(email="c@school.test", name="Chen", password="x"))

        members = await repository.list_by_department(department.id)
        commanders = await repository.list_by_department(department.id, commanders_only=True)

        assert [s.name for s in members] == ["Avi", "Bat"]
        assert [s.name for s in commanders] == ["Avi"]
        assert await repository.count_by_department(department.id) == 2

    async def test_clear_role(self, in_memory_session, repository):
        role = await RoleRepository(in_memory_session).create(Role(name="Teacher"))
        first = await repository.create(Soldier(email="a@school.test", password="x", role_id=role.id))
        await repository.create(Soldier(email="b@school.test", password="x", role_id=role.id))

        assert await repository.clear_role(role.id) == 2
        await in_memory_session.commit()
        await in_memory_session.refresh(first)

        assert first.role_id is None
