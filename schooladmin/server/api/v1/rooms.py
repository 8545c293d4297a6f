"""
Room endpoints.

Reads need the resources page; creating, editing and deleting rooms need its
edit grant.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import get_session
from schooladmin.core.models.io.common import MessageResponse
from schooladmin.core.models.io.organization import RoomCreate, RoomRead, RoomUpdate
from schooladmin.server.services.deps import PermittedUser
from schooladmin.server.services.organization import RoomService

router = APIRouter(tags=["rooms"])


@router.get("", response_model=List[RoomRead], summary="List Rooms")
async def list_rooms(user: PermittedUser, session: AsyncSession = Depends(get_session)) -> List[RoomRead]:
    return [RoomRead.model_validate(r) for r in await RoomService(session).get_all()]


@router.get("/{room_id}", response_model=RoomRead, summary="Get Room", responses={404: {"description": "Room not found"}})
async def get_room(room_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)) -> RoomRead:
    return RoomRead.model_validate(await RoomService(session).get_by_id(room_id))


@router.post(
    "",
    response_model=RoomRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Room",
    description="Create a room with its seat capacity.",
)
async def create_room(data: RoomCreate, user: PermittedUser, session: AsyncSession = Depends(get_session)) -> RoomRead:
    return RoomRead.model_validate(await RoomService(session).create(data))


@router.put(
    "/{room_id}", response_model=RoomRead, summary="Update Room", responses={404: {"description": "Room not found"}}
)
async def update_room(
    room_id: int, data: RoomUpdate, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> RoomRead:
    return RoomRead.model_validate(await RoomService(session).update(room_id, data))


@router.delete(
    "/{room_id}",
    response_model=MessageResponse,
    summary="Delete Room",
    responses={404: {"description": "Room not found"}},
)
async def delete_room(room_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)) -> MessageResponse:
    await RoomService(session).delete(room_id)
    return MessageResponse(message="Room deleted successfully")
