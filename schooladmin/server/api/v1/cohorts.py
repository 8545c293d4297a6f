"""
Cohort endpoints.

Besides CRUD, the calculation endpoints let the front-end check a cohort and
grade combination before submitting a form.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.cohort_calendar import (
    calculate_cohort_from_grade,
    calculate_cohort_grade_and_status,
    calculate_grade_at_date,
    generate_cohort_name,
)
from schooladmin.core.database import get_session
from schooladmin.core.logging_config import get_logger
from schooladmin.core.models.io.cohorts import (
    CalculateCohortRequest,
    CalculateCohortResponse,
    CalculateGradeRequest,
    CalculateGradeResponse,
    CohortCreate,
    CohortRead,
    CohortUpdate,
    CohortWithCount,
    RefreshCohortsResponse,
    UpdateCohortNamesResponse,
    ValidateMatchRequest,
    ValidateMatchResponse,
)
from schooladmin.core.models.io.common import MessageResponse
from schooladmin.server.services.cohorts import CohortService
from schooladmin.server.services.deps import PermittedUser

logger = get_logger(__name__)

router = APIRouter(tags=["cohorts"])


# =====================================================================
# Calculations
# =====================================================================


@router.post(
    "/calculate-grade",
    response_model=CalculateGradeResponse,
    summary="Calculate Grade",
    description="Grade of a cohort on a date (default today) and whether the cohort is studying.",
)
async def calculate_grade(data: CalculateGradeRequest, user: PermittedUser) -> CalculateGradeResponse:
    """
    Calculate the grade of a cohort.

    - **start_year**: Year the cohort started ninth grade.
    - **date**: Optional date; defaults to today.
    """
    on_date = data.on_date or date.today()
    _, is_active = calculate_cohort_grade_and_status(data.start_year, on_date)
    grade = calculate_grade_at_date(data.start_year, on_date)
    return CalculateGradeResponse(grade=grade, is_active=is_active)


@router.post(
    "/calculate-cohort",
    response_model=CalculateCohortResponse,
    summary="Calculate Cohort",
    description="Start year and name of the cohort currently in a grade.",
    responses={400: {"description": "Invalid grade or year out of range"}},
)
async def calculate_cohort(data: CalculateCohortRequest, user: PermittedUser) -> CalculateCohortResponse:
    start_year = calculate_cohort_from_grade(data.grade)
    return CalculateCohortResponse(start_year=start_year, name=generate_cohort_name(start_year))


@router.post(
    "/validate-match",
    response_model=ValidateMatchResponse,
    summary="Validate Cohort And Grade",
    description="Check that a cohort was in a grade on a date (default today).",
    responses={400: {"description": "Cohort could not be recognized"}},
)
async def validate_match(
    data: ValidateMatchRequest, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> ValidateMatchResponse:
    """
    Validate a cohort and grade combination.

    - **cohort**: Start year or gematria name (e.g. ``מחזור נ"ב``).
    - **grade**: Grade to check.
    - **date**: Optional date; defaults to today.
    """
    return CohortService(session).validate_match(data.cohort, data.grade, data.on_date)


@router.post(
    "/refresh",
    response_model=RefreshCohortsResponse,
    summary="Refresh Cohorts",
    description="Create missing cohorts and bring names, grades and status in line with today's date.",
)
async def refresh_cohorts(user: PermittedUser, session: AsyncSession = Depends(get_session)) -> RefreshCohortsResponse:
    return await CohortService(session).refresh()


@router.post(
    "/update-names",
    response_model=UpdateCohortNamesResponse,
    summary="Update Cohort Names",
    description="Rename every cohort whose stored name does not match its start year.",
)
async def update_cohort_names(
    user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> UpdateCohortNamesResponse:
    return await CohortService(session).update_all_cohort_names()


# =====================================================================
# CRUD
# =====================================================================


@router.post(
    "",
    response_model=CohortRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Cohort",
    responses={400: {"description": "Year out of range or cohort already exists"}},
)
async def create_cohort(
    data: CohortCreate, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> CohortRead:
    """
    Create a cohort.

    The name is always generated from the start year. Without ``current_grade``
    the grade and status are computed; an explicit null makes the cohort
    inactive.

    - **start_year**: Year the cohort started ninth grade.
    - **current_grade**: Optional grade override.
    """
    return CohortRead.model_validate(await CohortService(session).create(data))


@router.get(
    "",
    response_model=List[CohortWithCount],
    summary="List Cohorts",
    description="Cohorts, newest first, with the number of active students in each.",
)
async def list_cohorts(
    user: PermittedUser,
    is_active: Optional[bool] = Query(default=None, description="Filter by active status"),
    session: AsyncSession = Depends(get_session),
) -> List[CohortWithCount]:
    return await CohortService(session).get_all(is_active=is_active)


@router.get(
    "/{cohort_id}",
    response_model=CohortRead,
    summary="Get Cohort",
    responses={404: {"description": "Cohort not found"}},
)
async def get_cohort(cohort_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)) -> CohortRead:
    return CohortRead.model_validate(await CohortService(session).get_by_id(cohort_id))


@router.put(
    "/{cohort_id}",
    response_model=CohortRead,
    summary="Update Cohort",
    description="Update a cohort. A name that does not match the start year is replaced by the right one.",
    responses={404: {"description": "Cohort not found"}},
)
async def update_cohort(
    cohort_id: int, data: CohortUpdate, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> CohortRead:
    return CohortRead.model_validate(await CohortService(session).update(cohort_id, data))


@router.delete(
    "/{cohort_id}",
    response_model=MessageResponse,
    summary="Deactivate Cohort",
    description="Cohorts are never removed; deleting one marks it inactive.",
    responses={404: {"description": "Cohort not found"}},
)
async def delete_cohort(
    cohort_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> MessageResponse:
    cohort = await CohortService(session).delete(cohort_id)
    logger.info(f"Cohort {cohort.name} deactivated by {user.email}")
    return MessageResponse(message="Cohort deactivated successfully")
