"""Shared I/O helpers and response models."""

from __future__ import annotations

import re
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from schooladmin.core.models.domain.enums import PARALLELS, REGULAR_GRADES, Grade, StudentStatus

ALL_GRADES = [grade.value for grade in Grade]

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(value: str) -> str:
    """Trim and lowercase an email address, rejecting malformed ones."""
    email = value.strip().lower()
    if not _EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email address")
    return email


def _strip_required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name is required")
    return value


EmailStr = Annotated[str, Field(max_length=254), AfterValidator(normalize_email)]
NameStr = Annotated[str, Field(min_length=1, max_length=255), AfterValidator(_strip_required)]


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str = Field(description="Human readable result")


class StudentSummary(BaseModel):
    """Short student reference embedded in class and exit responses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    id_number: str
    first_name: str
    last_name: str
    status: StudentStatus
    grade: Optional[str] = None
    parallel: Optional[str] = None
    track: Optional[str] = None


def _check_grade(value: str) -> str:
    value = value.strip()
    if value not in ALL_GRADES:
        raise ValueError(f"Grade must be one of: {', '.join(ALL_GRADES)}")
    return value


def _check_regular_grade(value: str) -> str:
    value = value.strip()
    if value not in REGULAR_GRADES:
        raise ValueError(f"Grade must be one of: {', '.join(REGULAR_GRADES)}")
    return value


def _check_parallel(value: str) -> str:
    value = str(value).strip()
    if value not in PARALLELS:
        raise ValueError(f"Parallel must be one of: {', '.join(PARALLELS)}")
    return value


GradeStr = Annotated[str, AfterValidator(_check_grade)]
RegularGradeStr = Annotated[str, AfterValidator(_check_regular_grade)]
ParallelStr = Annotated[str, AfterValidator(_check_parallel)]
