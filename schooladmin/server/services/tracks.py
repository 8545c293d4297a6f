"""
Track service.

A track counts as active while at least one student studies in it, either
through the student's own ``track`` field or through an enrollment in a class
of that track. The stored ``is_active`` flag is not consulted.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database.entities.tracks import Track
from schooladmin.core.database.repositories.students import StudentRepository
from schooladmin.core.database.repositories.tracks import TrackRepository
from schooladmin.core.errors import NotFoundError, ValidationError
from schooladmin.core.models.io.tracks import TrackCreate, TrackRead, TrackUpdate

logger = logging.getLogger(__name__)

DUPLICATE_TRACK_MESSAGE = "מגמה עם שם זה כבר קיימת"


class TrackService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = TrackRepository(session)
        self.students = StudentRepository(session)

    async def _to_read(self, track: Track) -> TrackRead:
        count = len(await self.students.list_ids_in_track(track.name))
        data = TrackRead.model_validate(track).model_dump()
        data.update(is_active=count > 0, student_count=count)
        return TrackRead(**data)

    async def create(self, data: TrackCreate) -> TrackRead:
        if await self.repo.get_by_name(data.name):
            raise ValidationError(DUPLICATE_TRACK_MESSAGE)
        description = data.description.strip() if data.description else None
        track = await self.repo.create(Track(name=data.name, description=description or None, is_active=True))
        logger.info(f"Created track {track.name}")
        return await self._to_read(track)

    async def get_all(self, is_active: Optional[bool] = None) -> List[TrackRead]:
        tracks = [await self._to_read(track) for track in await self.repo.list()]
        if is_active is None:
            return tracks
        return [track for track in tracks if track.is_active == is_active]

    async def get_by_id(self, track_id: int) -> Track:
        track = await self.repo.get_by_id(track_id)
        if track is None:
            raise NotFoundError("Track")
        return track

    async def get_read(self, track_id: int) -> TrackRead:
        return await self._to_read(await self.get_by_id(track_id))

    async def update(self, track_id: int, data: TrackUpdate) -> TrackRead:
        track = await self.get_by_id(track_id)
        if data.name is not None and data.name != track.name:
            if await self.repo.get_by_name(data.name):
                raise ValidationError(DUPLICATE_TRACK_MESSAGE)
            track.name = data.name
        if data.description is not None and data.description.strip():
            track.description = data.description.strip()
        if data.is_active is not None:
            track.is_active = data.is_active
        track = await self.repo.update(track)
        return await self._to_read(track)

    async def delete(self, track_id: int) -> None:
        """Remove a track nobody studies in."""
        track = await self.get_by_id(track_id)
        count = len(await self.students.list_ids_in_track(track.name))
        if count:
            raise ValidationError(f"לא ניתן למחוק מגמה פעילה (יש {count} תלמידים במגמה זו)")
        await self.repo.delete(track.id)
        logger.info(f"Deleted track {track.name}")
