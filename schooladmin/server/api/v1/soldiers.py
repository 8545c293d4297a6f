"""
Soldier (staff account) endpoints.

Reading staff lists needs the resources page; creating, editing and deleting
records is reserved to administrators.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import get_session
from schooladmin.core.logging_config import get_logger
from schooladmin.core.models.io.auth import SoldierCreate, SoldierDetail, UpdateUserRequest
from schooladmin.core.models.io.common import MessageResponse
from schooladmin.server.services.auth import AuthService
from schooladmin.server.services.deps import AdminUser, PermittedUser

logger = get_logger(__name__)

router = APIRouter(tags=["soldiers"])


@router.get(
    "",
    response_model=List[SoldierDetail],
    summary="List Soldiers",
    description="All staff accounts with their department and role, ordered by name.",
)
async def list_soldiers(user: PermittedUser, session: AsyncSession = Depends(get_session)) -> List[SoldierDetail]:
    service = AuthService(session)
    return [await service.to_detail(soldier) for soldier in await service.get_all_users()]


@router.get(
    "/{soldier_id}",
    response_model=SoldierDetail,
    summary="Get Soldier",
    responses={404: {"description": "User not found"}},
)
async def get_soldier(
    soldier_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> SoldierDetail:
    service = AuthService(session)
    return await service.to_detail(await service.get_user(soldier_id))


@router.post(
    "",
    response_model=SoldierDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create Soldier",
    description="Create a complete, approved account in one step.",
    responses={
        201: {"description": "Soldier created"},
        404: {"description": "Department or role not found"},
        409: {"description": "Email or personal number already in use"},
    },
)
async def create_soldier(
    data: SoldierCreate, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> SoldierDetail:
    """
    Create a soldier directly, skipping profile completion and approval.

    - **email**: Unique login email.
    - **password**: Initial password.
    - **personal_number**: Unique personal number.
    - **name**: Full name.
    - **type**: CONSCRIPT or PERMANENT.
    - **department_id** / **role_id**: Optional references.
    - **is_commander** / **is_admin**: Flags.
    """
    service = AuthService(session)
    return await service.to_detail(await service.create_soldier(data))


@router.put(
    "/{soldier_id}",
    response_model=SoldierDetail,
    summary="Update Soldier",
    responses={
        404: {"description": "User, department or role not found"},
        409: {"description": "Email or personal number already in use"},
    },
)
async def update_soldier(
    soldier_id: int,
    data: UpdateUserRequest,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> SoldierDetail:
    service = AuthService(session)
    return await service.to_detail(await service.update_user(soldier_id, data))


@router.delete(
    "/{soldier_id}",
    response_model=MessageResponse,
    summary="Delete Soldier",
    responses={400: {"description": "Deleting yourself or the last administrator"}},
)
async def delete_soldier(
    soldier_id: int, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> MessageResponse:
    await AuthService(session).delete_user(soldier_id, admin)
    return MessageResponse(message="Soldier deleted successfully")
