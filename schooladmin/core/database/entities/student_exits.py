"""Student exit entity: why and how a student left the school."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, utc_now


class StudentExit(Base, table=True):
    """Exit record, at most one per student.

    Table: student_exits
    """

    __tablename__ = "student_exits"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key="students.id", unique=True, index=True)
    has_left: bool = Field(default=True)
    exit_reason: Optional[str] = Field(default=None, max_length=1024)
    exit_category: Optional[str] = Field(default=None, max_length=255, index=True)
    receiving_institution: Optional[str] = Field(default=None, max_length=255)
    was_desired_exit: bool = Field(default=False)
    exit_date: Optional[date] = None
    clearance_completed: bool = Field(default=False)
    passed_supply: bool = Field(default=False)
    expelled_from_school: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"StudentExit(id={self.id}, student_id={self.student_id})"
