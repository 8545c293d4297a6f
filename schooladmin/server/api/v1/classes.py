"""
Class endpoints.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import get_session
from schooladmin.core.models.io.classes import ClassCreate, ClassDetail, ClassRead, ClassUpdate, ClassWithCount
from schooladmin.core.models.io.common import MessageResponse
from schooladmin.server.services.classes import ClassService
from schooladmin.server.services.deps import PermittedUser

router = APIRouter(tags=["classes"])


@router.get(
    "",
    response_model=List[ClassWithCount],
    summary="List Classes",
    description="Classes ordered by academic year (newest first), grade and parallel, with enrollment counts.",
)
async def list_classes(
    user: PermittedUser,
    academic_year: Optional[int] = Query(default=None, description="Only classes of this academic year"),
    session: AsyncSession = Depends(get_session),
) -> List[ClassWithCount]:
    return await ClassService(session).get_all(academic_year=academic_year)


@router.get(
    "/{class_id}",
    response_model=ClassDetail,
    summary="Get Class",
    description="A class with its enrolled students.",
    responses={404: {"description": "Class not found"}},
)
async def get_class(class_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)) -> ClassDetail:
    return await ClassService(session).get_detail(class_id)


@router.post(
    "",
    response_model=ClassRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Class",
    responses={409: {"description": "Class already exists"}},
)
async def create_class(data: ClassCreate, user: PermittedUser, session: AsyncSession = Depends(get_session)) -> ClassRead:
    """
    Create a class.

    - **grade**: Grade of the class.
    - **parallel**: Optional parallel, ``1`` to ``8``.
    - **track**: Optional track name.
    - **academic_year**: Calendar year the class belongs to.
    - **name**: Optional display name; defaults to ``grade - parallel - track``.
    """
    return ClassRead.model_validate(await ClassService(session).create(data))


@router.put(
    "/{class_id}",
    response_model=ClassRead,
    summary="Update Class",
    responses={404: {"description": "Class not found"}, 409: {"description": "Class already exists"}},
)
async def update_class(
    class_id: int, data: ClassUpdate, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> ClassRead:
    return ClassRead.model_validate(await ClassService(session).update(class_id, data))


@router.delete(
    "/{class_id}",
    response_model=MessageResponse,
    summary="Delete Class",
    responses={404: {"description": "Class not found"}, 409: {"description": "Class has enrollments"}},
)
async def delete_class(class_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)) -> MessageResponse:
    await ClassService(session).delete(class_id)
    return MessageResponse(message="Class deleted successfully")
