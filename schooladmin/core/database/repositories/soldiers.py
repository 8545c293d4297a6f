"""Soldier repository: account lookups used by authentication and administration."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from schooladmin.core.models.domain.enums import ApprovalStatus

from ..entities.soldiers import Soldier
from .base import SQLRepository


class SoldierRepository(SQLRepository[Soldier]):
    """Repository for staff accounts."""

    default_order = (Soldier.name, Soldier.id)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Soldier)

    async def get_by_email(self, email: str) -> Optional[Soldier]:
        return await self.find_one(email=email)

    async def get_by_personal_number(self, personal_number: str) -> Optional[Soldier]:
        return await self.find_one(personal_number=personal_number)

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(Soldier))
        return result.scalar_one()

    async def count_admins(self) -> int:
        stmt = select(func.count()).select_from(Soldier).where(Soldier.is_admin == True)  # noqa: E712
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def list_by_status(self, status: ApprovalStatus) -> List[Soldier]:
        """Accounts in ``status``, oldest first."""
        stmt = select(Soldier).where(Soldier.approval_status == status).order_by(Soldier.created_at, Soldier.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_department(self, department_id: int, commanders_only: bool = False) -> List[Soldier]:
        stmt = select(Soldier).where(Soldier.department_id == department_id)
        if commanders_only:
            stmt = stmt.where(Soldier.is_commander == True)  # noqa: E712
        result = await self.session.execute(stmt.order_by(Soldier.name, Soldier.id))
        return list(result.scalars().all())

    async def count_by_department(self, department_id: int) -> int:
        stmt = select(func.count()).select_from(Soldier).where(Soldier.department_id == department_id)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def clear_role(self, role_id: int) -> int:
        """Detach every account from ``role_id``; the caller commits."""
        result = await self.session.execute(update(Soldier).where(Soldier.role_id == role_id).values(role_id=None))
        return result.rowcount
