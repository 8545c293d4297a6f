"""
Student exit I/O models.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .common import StudentSummary


class StudentExitRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    has_left: bool
    exit_reason: Optional[str] = None
    exit_category: Optional[str] = None
    receiving_institution: Optional[str] = None
    was_desired_exit: bool
    exit_date: Optional[date] = None
    clearance_completed: bool
    passed_supply: bool
    expelled_from_school: bool
    created_at: datetime
    updated_at: datetime


class StudentExitWithStudent(StudentExitRead):
    student: Optional[StudentSummary] = None


class StudentExitCreate(BaseModel):
    student_id: int
    has_left: bool = True
    exit_reason: Optional[str] = None
    exit_category: Optional[str] = None
    receiving_institution: Optional[str] = None
    was_desired_exit: bool = False
    exit_date: Optional[date] = None
    clearance_completed: bool = False
    passed_supply: bool = False
    expelled_from_school: bool = False


class StudentExitUpdate(BaseModel):
    has_left: Optional[bool] = None
    exit_reason: Optional[str] = None
    exit_category: Optional[str] = None
    receiving_institution: Optional[str] = None
    was_desired_exit: Optional[bool] = None
    exit_date: Optional[date] = None
    clearance_completed: Optional[bool] = None
    passed_supply: Optional[bool] = None
    expelled_from_school: Optional[bool] = None
