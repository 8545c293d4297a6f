"""
Student exit endpoints.

Exit records are addressed by student id: a student has at most one.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import get_session
from schooladmin.core.models.io.student_exits import (
    StudentExitCreate,
    StudentExitRead,
    StudentExitUpdate,
    StudentExitWithStudent,
)
from schooladmin.server.services.deps import PermittedUser
from schooladmin.server.services.student_exits import StudentExitService

router = APIRouter(tags=["student-exits"])


@router.post(
    "",
    response_model=StudentExitRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record Student Exit",
    description="Record that a student left; the student's status becomes LEFT.",
    responses={404: {"description": "Student not found"}, 409: {"description": "Exit record already exists"}},
)
async def create_student_exit(
    data: StudentExitCreate, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> StudentExitRead:
    return StudentExitRead.model_validate(await StudentExitService(session).create(data))


@router.get(
    "",
    response_model=List[StudentExitWithStudent],
    summary="List Student Exits",
    description="Exit records, latest exit first, each with its student.",
)
async def list_student_exits(
    user: PermittedUser,
    exit_category: Optional[str] = Query(default=None),
    was_desired_exit: Optional[bool] = Query(default=None),
    expelled_from_school: Optional[bool] = Query(default=None),
    session: AsyncSession = Depends(get_session),
) -> List[StudentExitWithStudent]:
    return await StudentExitService(session).get_all(
        exit_category=exit_category,
        was_desired_exit=was_desired_exit,
        expelled_from_school=expelled_from_school,
    )


@router.get(
    "/student/{student_id}",
    response_model=StudentExitRead,
    summary="Get Student Exit",
    responses={404: {"description": "Exit record not found"}},
)
async def get_student_exit(
    student_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> StudentExitRead:
    return StudentExitRead.model_validate(await StudentExitService(session).get_by_student_id(student_id))


@router.put(
    "/{student_id}",
    response_model=StudentExitRead,
    summary="Update Student Exit",
    responses={404: {"description": "Exit record not found"}},
)
async def update_student_exit(
    student_id: int, data: StudentExitUpdate, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> StudentExitRead:
    return StudentExitRead.model_validate(await StudentExitService(session).update(student_id, data))
