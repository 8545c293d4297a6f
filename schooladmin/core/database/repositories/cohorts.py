"""Cohort repository."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.cohorts import Cohort
from .base import SQLRepository


class CohortRepository(SQLRepository[Cohort]):
    default_order = (Cohort.start_year.desc(),)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Cohort)

    async def get_by_start_year(self, start_year: int) -> Optional[Cohort]:
        return await self.find_one(start_year=start_year)

    async def get_by_name(self, name: str) -> Optional[Cohort]:
        return await self.find_one(name=name)

    async def list_active(self) -> List[Cohort]:
        stmt = select(Cohort).where(Cohort.is_active == True).order_by(Cohort.start_year.desc())  # noqa: E712
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
