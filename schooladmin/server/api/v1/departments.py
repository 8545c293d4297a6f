"""
Department endpoints.

Any logged-in user may list departments (the profile form needs them);
details need the settings page and changes are reserved to administrators.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import get_session
from schooladmin.core.models.io.auth import SoldierRead
from schooladmin.core.models.io.common import MessageResponse
from schooladmin.core.models.io.organization import (
    DepartmentCreate,
    DepartmentRead,
    DepartmentUpdate,
    DepartmentWithCount,
)
from schooladmin.server.services.deps import AdminUser, CurrentUser, PermittedUser
from schooladmin.server.services.organization import DepartmentService

router = APIRouter(tags=["departments"])


@router.get(
    "",
    response_model=List[DepartmentWithCount],
    summary="List Departments",
    description="All departments with the number of soldiers in each.",
)
async def list_departments(user: CurrentUser, session: AsyncSession = Depends(get_session)) -> List[DepartmentWithCount]:
    return await DepartmentService(session).get_all()


@router.get(
    "/{department_id}",
    response_model=DepartmentRead,
    summary="Get Department",
    responses={404: {"description": "Department not found"}},
)
async def get_department(
    department_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> DepartmentRead:
    return DepartmentRead.model_validate(await DepartmentService(session).get_by_id(department_id))


@router.get(
    "/{department_id}/commanders",
    response_model=List[SoldierRead],
    summary="List Department Commanders",
    responses={404: {"description": "Department not found"}},
)
async def get_commanders(
    department_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> List[SoldierRead]:
    return [SoldierRead.model_validate(s) for s in await DepartmentService(session).get_commanders(department_id)]


@router.post(
    "",
    response_model=DepartmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Department",
    responses={409: {"description": "Department with this name already exists"}},
)
async def create_department(
    data: DepartmentCreate, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> DepartmentRead:
    return DepartmentRead.model_validate(await DepartmentService(session).create(data))


@router.put(
    "/{department_id}",
    response_model=DepartmentRead,
    summary="Update Department",
    responses={404: {"description": "Department not found"}, 409: {"description": "Name already taken"}},
)
async def update_department(
    department_id: int,
    data: DepartmentUpdate,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> DepartmentRead:
    return DepartmentRead.model_validate(await DepartmentService(session).update(department_id, data))


@router.delete(
    "/{department_id}",
    response_model=MessageResponse,
    summary="Delete Department",
    description="Delete a department that has no soldiers.",
    responses={404: {"description": "Department not found"}, 409: {"description": "Department still has soldiers"}},
)
async def delete_department(
    department_id: int, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> MessageResponse:
    await DepartmentService(session).delete(department_id)
    return MessageResponse(message="Department deleted successfully")
