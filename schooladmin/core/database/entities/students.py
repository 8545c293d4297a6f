"""
Student entity.

Holds the personal record of a student plus up to two parents. The current
class is tracked through enrollments; ``grade``, ``parallel`` and ``track``
here mirror the latest enrollment for quick filtering and display.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlmodel import Field

from schooladmin.core.models.domain.enums import Gender, StudentStatus

from ..base import Base, utc_now


class StudentBase(Base):
    """Student personal and contact fields."""

    id_number: str = Field(max_length=9, unique=True, index=True, description="Israeli ID number")
    first_name: str = Field(max_length=255)
    last_name: str = Field(max_length=255, index=True)
    gender: Gender
    grade: Optional[str] = Field(default=None, max_length=8)
    parallel: Optional[str] = Field(default=None, max_length=8)
    track: Optional[str] = Field(default=None, max_length=255)
    cohort_id: Optional[int] = Field(default=None, foreign_key="cohorts.id", index=True)
    study_start_date: date
    status: StudentStatus = Field(default=StudentStatus.ACTIVE, index=True)

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


class Student(StudentBase, table=True):
    """Persistent student record.

    Table: students
    """

    __tablename__ = "students"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Student(id={self.id}, id_number={self.id_number}, status={self.status})"
