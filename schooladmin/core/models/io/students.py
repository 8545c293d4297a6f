"""
Student I/O models.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schooladmin.core.models.domain.enums import Gender, StudentStatus
from schooladmin.core.validators import normalize_id_number, validate_israeli_id

from .classes import ClassRead
from .cohorts import CohortRead
from .common import GradeStr, ParallelStr, RegularGradeStr
from .student_exits import StudentExitRead


def _check_id_number(value: str) -> str:
    valid, error = validate_israeli_id(value)
    if not valid:
        raise ValueError(error)
    return normalize_id_number(value)


class StudentContactFields(BaseModel):
    """Optional personal, contact and parent fields."""

    date_of_birth: Optional[date] = None
    email: Optional[str] = Field(default=None, max_length=255)
    aliyah_date: Optional[date] = None
    locality: Optional[str] = Field(default=None, max_length=255)
    address: Optional[str] = Field(default=None, max_length=255)
    locality2: Optional[str] = Field(default=None, max_length=255)
    address2: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)
    mobile_phone: Optional[str] = Field(default=None, max_length=32)

    parent1_id_number: Optional[str] = Field(default=None, max_length=9)
    parent1_first_name: Optional[str] = Field(default=None, max_length=255)
    parent1_last_name: Optional[str] = Field(default=None, max_length=255)
    parent1_type: Optional[str] = Field(default=None, max_length=32)
    parent1_mobile: Optional[str] = Field(default=None, max_length=32)
    parent1_email: Optional[str] = Field(default=None, max_length=255)

    parent2_id_number: Optional[str] = Field(default=None, max_length=9)
    parent2_first_name: Optional[str] = Field(default=None, max_length=255)
    parent2_last_name: Optional[str] = Field(default=None, max_length=255)
    parent2_type: Optional[str] = Field(default=None, max_length=32)
    parent2_mobile: Optional[str] = Field(default=None, max_length=32)
    parent2_email: Optional[str] = Field(default=None, max_length=255)


class StudentCreate(StudentContactFields):
    """New student.

    The cohort is given as ``cohort`` (start year or gematria name, created
    when missing) or ``cohort_id``. Without either it is derived from
    ``grade``; without a grade it is derived from the cohort and
    ``study_start_date``.
    """

    id_number: str
    first_name: str = Field(min_length=1, max_length=255)
    last_name: str = Field(min_length=1, max_length=255)
    gender: Gender
    grade: Optional[RegularGradeStr] = None
    parallel: Optional[ParallelStr] = None
    track: Optional[str] = Field(default=None, max_length=255)
    cohort: Optional[Union[int, str]] = None
    cohort_id: Optional[int] = None
    study_start_date: date
    academic_year: Optional[int] = Field(default=None, gt=0, description="Defaults to the current calendar year")

    @field_validator("id_number")
    @classmethod
    def _valid_id_number(cls, value: str) -> str:
        return _check_id_number(value)


class StudentUpdate(StudentContactFields):
    """Partial update; only fields present in the request are changed."""

    first_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    gender: Optional[Gender] = None
    grade: Optional[GradeStr] = None
    parallel: Optional[ParallelStr] = None
    track: Optional[str] = Field(default=None, max_length=255)
    cohort_id: Optional[int] = None
    study_start_date: Optional[date] = None
    status: Optional[StudentStatus] = None
    academic_year: Optional[int] = Field(default=None, gt=0)


class StudentRead(StudentContactFields):
    model_config = ConfigDict(from_attributes=True)

    id: int
    id_number: str
    first_name: str
    last_name: str
    gender: Gender
    grade: Optional[str] = None
    parallel: Optional[str] = None
    track: Optional[str] = None
    cohort_id: Optional[int] = None
    study_start_date: date
    status: StudentStatus
    created_at: datetime
    updated_at: datetime


class EnrollmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    class_id: int
    enrollment_date: datetime
    school_class: Optional[ClassRead] = None


class StudentDetail(StudentRead):
    cohort: Optional[CohortRead] = None
    exit_record: Optional[StudentExitRead] = None
    enrollments: List[EnrollmentRead] = Field(default_factory=list)


class PromoteRequest(BaseModel):
    academic_year: Optional[int] = Field(default=None, gt=0, description="Year to promote into; defaults to now")


class PromoteCohortResponse(BaseModel):
    count: int
    promoted: int
    graduated: int


class PromotionError(BaseModel):
    student_id: int
    error: str


class PromoteAllResponse(BaseModel):
    promoted: int
    graduated: int
    skipped: int
    errors: List[PromotionError] = Field(default_factory=list)


class DeleteAllResponse(BaseModel):
    deleted: int
