"""
Track endpoints.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import get_session
from schooladmin.core.models.io.common import MessageResponse
from schooladmin.core.models.io.tracks import TrackCreate, TrackRead, TrackUpdate
from schooladmin.server.services.deps import PermittedUser
from schooladmin.server.services.tracks import TrackService

router = APIRouter(tags=["tracks"])


@router.post(
    "",
    response_model=TrackRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Track",
    responses={400: {"description": "A track with this name already exists"}},
)
async def create_track(data: TrackCreate, user: PermittedUser, session: AsyncSession = Depends(get_session)) -> TrackRead:
    return await TrackService(session).create(data)


@router.get(
    "",
    response_model=List[TrackRead],
    summary="List Tracks",
    description="Tracks ordered by name. A track is active while at least one student studies in it.",
)
async def list_tracks(
    user: PermittedUser,
    is_active: Optional[bool] = Query(default=None, description="Filter by computed active status"),
    session: AsyncSession = Depends(get_session),
) -> List[TrackRead]:
    return await TrackService(session).get_all(is_active=is_active)


@router.get("/{track_id}", response_model=TrackRead, summary="Get Track", responses={404: {"description": "Track not found"}})
async def get_track(track_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)) -> TrackRead:
    return await TrackService(session).get_read(track_id)


@router.put(
    "/{track_id}",
    response_model=TrackRead,
    summary="Update Track",
    responses={400: {"description": "Name already taken"}, 404: {"description": "Track not found"}},
)
async def update_track(
    track_id: int, data: TrackUpdate, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> TrackRead:
    return await TrackService(session).update(track_id, data)


@router.delete(
    "/{track_id}",
    response_model=MessageResponse,
    summary="Delete Track",
    description="Delete a track nobody studies in.",
    responses={400: {"description": "The track still has students"}, 404: {"description": "Track not found"}},
)
async def delete_track(track_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)) -> MessageResponse:
    await TrackService(session).delete(track_id)
    return MessageResponse(message="Track deleted successfully")
