"""Repositories for departments, roles and rooms."""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..entities.organization import Department, Role, Room
from .base import SQLRepository


class DepartmentRepository(SQLRepository[Department]):
    default_order = (Department.name,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Department)

    async def get_by_name(self, name: str) -> Optional[Department]:
        return await self.find_one(name=name)


class RoleRepository(SQLRepository[Role]):
    default_order = (Role.name,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Role)

    async def get_by_name(self, name: str) -> Optional[Role]:
        return await self.find_one(name=name)


class RoomRepository(SQLRepository[Room]):
    default_order = (Room.name, Room.id)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Room)
