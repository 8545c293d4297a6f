"""Track repository."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.tracks import Track
from .base import SQLRepository


class TrackRepository(SQLRepository[Track]):
    default_order = (Track.name,)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Track)

    async def get_by_name(self, name: str) -> Optional[Track]:
        return await self.find_one(name=name)

    async def get_by_name_insensitive(self, name: str) -> Optional[Track]:
        stmt = select(Track).where(func.lower(Track.name) == name.strip().lower())
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_active(self) -> List[Track]:
        stmt = select(Track).where(Track.is_active == True).order_by(Track.name)  # noqa: E712
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
