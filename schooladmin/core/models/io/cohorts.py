"""
Cohort I/O models.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from schooladmin.core.cohort_calendar import FIRST_COHORT_YEAR

from .common import GradeStr, RegularGradeStr


class CohortRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_year: int
    current_grade: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CohortWithCount(CohortRead):
    student_count: int = Field(default=0, description="Active students in the cohort")


class CohortCreate(BaseModel):
    """New cohort.

    Leave ``current_grade`` out to derive it from today's date; send ``null``
    to create the cohort without a grade (inactive).
    """

    start_year: int = Field(description="Year the cohort started ninth grade")
    current_grade: Optional[GradeStr] = None


class CohortUpdate(BaseModel):
    name: Optional[str] = None
    current_grade: Optional[GradeStr] = None
    is_active: Optional[bool] = None


class CalculateGradeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    start_year: int = Field(ge=FIRST_COHORT_YEAR)
    on_date: Optional[date] = Field(default=None, alias="date", description="Defaults to today")


class CalculateGradeResponse(BaseModel):
    grade: Optional[str] = None
    is_active: bool


class CalculateCohortRequest(BaseModel):
    grade: RegularGradeStr


class CalculateCohortResponse(BaseModel):
    start_year: int
    name: str


class ValidateMatchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    cohort: Union[int, str] = Field(description="Start year or gematria name")
    grade: RegularGradeStr
    on_date: Optional[date] = Field(default=None, alias="date", description="Defaults to today")


class ValidateMatchResponse(BaseModel):
    valid: bool
    start_year: int
    cohort_name: str
    expected_grade: Optional[str] = None
    message: Optional[str] = None


class RefreshCohortsResponse(BaseModel):
    message: str
    total: int
    active: int
    inactive: int


class RenamedCohort(BaseModel):
    id: int
    old_name: str
    new_name: str
    start_year: int


class UpdateCohortNamesResponse(BaseModel):
    updated: int
    skipped: int
    total: int
    cohorts: List[RenamedCohort]
