"""
Class and enrollment entities.

A class is a (grade, parallel, track) group for one academic year. Students
get a new enrollment every year, which keeps the class history of each student.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base, utc_now


class SchoolClass(Base, table=True):
    """Class in a given academic year.

    Table: classes
    """

    __tablename__ = "classes"
    __table_args__ = (
        UniqueConstraint("grade", "parallel", "track", "academic_year", name="uq_classes_grade_parallel_track_year"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    grade: str = Field(max_length=8, index=True)
    parallel: Optional[str] = Field(default=None, max_length=8)
    track: Optional[str] = Field(default=None, max_length=255)
    academic_year: int = Field(index=True)
    name: str = Field(max_length=255)
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"SchoolClass(id={self.id}, name={self.name}, academic_year={self.academic_year})"


class Enrollment(Base, table=True):
    """Student membership in a class.

    Table: enrollments
    """

    __tablename__ = "enrollments"
    __table_args__ = (
        UniqueConstraint("student_id", "class_id", name="uq_enrollments_student_class"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key="students.id", index=True)
    class_id: int = Field(foreign_key="classes.id", index=True)
    enrollment_date: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"Enrollment(student_id={self.student_id}, class_id={self.class_id})"
