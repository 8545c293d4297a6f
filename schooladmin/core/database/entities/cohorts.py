"""
Cohort entity.

A cohort is the group of students that started ninth grade in the same
September. Its name is derived from the start year (``מחזור נ"ב`` for the
52nd cohort) and is never chosen freely.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, utc_now


class Cohort(Base, table=True):
    """Cohort of students sharing a start year.

    Table: cohorts
    """

    __tablename__ = "cohorts"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=64, unique=True, description="Gematria name, e.g. מחזור נ\"ב")
    start_year: int = Field(index=True, description="Calendar year of the September the cohort started ninth grade")
    current_grade: Optional[str] = Field(default=None, max_length=8)
    is_active: bool = Field(default=True, index=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Cohort(id={self.id}, name={self.name}, start_year={self.start_year})"
