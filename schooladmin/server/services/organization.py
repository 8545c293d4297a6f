"""
Organization services: departments, roles and rooms.
"""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database.entities.organization import Department, Role, Room
from schooladmin.core.database.entities.soldiers import Soldier
from schooladmin.core.database.repositories.organization import DepartmentRepository, RoleRepository, RoomRepository
from schooladmin.core.database.repositories.permissions import RolePermissionRepository
from schooladmin.core.database.repositories.soldiers import SoldierRepository
from schooladmin.core.errors import ConflictError, NotFoundError
from schooladmin.core.models.io.organization import (
    DepartmentCreate,
    DepartmentRead,
    DepartmentUpdate,
    DepartmentWithCount,
    RoleCreate,
    RoleUpdate,
    RoomCreate,
    RoomUpdate,
)

logger = logging.getLogger(__name__)


class DepartmentService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = DepartmentRepository(session)
        self.soldiers = SoldierRepository(session)

    async def get_all(self) -> List[DepartmentWithCount]:
        return [
            DepartmentWithCount(
                **DepartmentRead.model_validate(department).model_dump(),
                member_count=await self.soldiers.count_by_department(department.id),
            )
            for department in await self.repo.list()
        ]

    async def get_by_id(self, department_id: int) -> Department:
        department = await self.repo.get_by_id(department_id)
        if department is None:
            raise NotFoundError("Department")
        return department

    async def create(self, data: DepartmentCreate) -> Department:
        if await self.repo.get_by_name(data.name):
            raise ConflictError("Department with this name already exists")
        department = await self.repo.create(Department(name=data.name))
        logger.info(f"Created department {department.name}")
        return department

    async def update(self, department_id: int, data: DepartmentUpdate) -> Department:
        department = await self.get_by_id(department_id)
        if data.name is not None and data.name != department.name:
            if await self.repo.get_by_name(data.name):
                raise ConflictError("Department with this name already exists")
            department.name = data.name
        return await self.repo.update(department)

    async def delete(self, department_id: int) -> None:
        department = await self.get_by_id(department_id)
        members = await self.soldiers.count_by_department(department.id)
        if members:
            raise ConflictError(f"Cannot delete department with {members} assigned soldiers")
        await self.repo.delete(department.id)
        logger.info(f"Deleted department {department.name}")

    async def get_commanders(self, department_id: int) -> List[Soldier]:
        await self.get_by_id(department_id)
        return await self.soldiers.list_by_department(department_id, commanders_only=True)


class RoleService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = RoleRepository(session)

    async def get_all(self) -> List[Role]:
        return await self.repo.list()

    async def get_by_id(self, role_id: int) -> Role:
        role = await self.repo.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role")
        return role

    async def create(self, data: RoleCreate) -> Role:
        if await self.repo.get_by_name(data.name):
            raise ConflictError("Role with this name already exists")
        role = await self.repo.create(Role(name=data.name))
        logger.info(f"Created role {role.name}")
        return role

    async def update(self, role_id: int, data: RoleUpdate) -> Role:
        role = await self.get_by_id(role_id)
        if data.name is not None and data.name != role.name:
            if await self.repo.get_by_name(data.name):
                raise ConflictError("Role with this name already exists")
            role.name = data.name
        return await self.repo.update(role)

    async def delete(self, role_id: int) -> None:
        """Delete a role; its holders keep their accounts without a role."""
        role = await self.get_by_id(role_id)
        detached = await SoldierRepository(self.session).clear_role(role.id)
        await RolePermissionRepository(self.session).delete_for_role(role.id)
        await self.repo.delete(role.id)
        logger.info(f"Deleted role {role.name} ({detached} soldiers detached)")


class RoomService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = RoomRepository(session)

    async def get_all(self) -> List[Room]:
        return await self.repo.list()

    async def get_by_id(self, room_id: int) -> Room:
        room = await self.repo.get_by_id(room_id)
        if room is None:
            raise NotFoundError("Room")
        return room

    async def create(self, data: RoomCreate) -> Room:
        room = await self.repo.create(Room(name=data.name, capacity=data.capacity))
        logger.info(f"Created room {room.name}")
        return room

    async def update(self, room_id: int, data: RoomUpdate) -> Room:
        room = await self.get_by_id(room_id)
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(room, field, value)
        return await self.repo.update(room)

    async def delete(self, room_id: int) -> None:
        room = await self.get_by_id(room_id)
        await self.repo.delete(room.id)
