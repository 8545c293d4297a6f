"""
Class I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import GradeStr, ParallelStr, StudentSummary


class ClassRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    grade: str
    parallel: Optional[str] = None
    track: Optional[str] = None
    academic_year: int
    name: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ClassWithCount(ClassRead):
    student_count: int = 0


class ClassDetail(ClassRead):
    students: List[StudentSummary] = Field(default_factory=list)


class ClassCreate(BaseModel):
    grade: GradeStr
    parallel: Optional[ParallelStr] = None
    track: Optional[str] = Field(default=None, max_length=255)
    academic_year: int = Field(gt=0)
    name: Optional[str] = Field(default=None, max_length=255, description="Defaults to 'grade - parallel - track'")
    is_active: bool = True


class ClassUpdate(BaseModel):
    grade: Optional[GradeStr] = None
    parallel: Optional[ParallelStr] = None
    track: Optional[str] = Field(default=None, max_length=255)
    academic_year: Optional[int] = Field(default=None, gt=0)
    name: Optional[str] = Field(default=None, max_length=255)
    is_active: Optional[bool] = None
