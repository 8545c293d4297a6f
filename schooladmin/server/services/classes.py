"""
Class service.

A class is one (grade, parallel, track) group in one academic year. Students
join classes through enrollments, one per academic year.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database.entities.classes import SchoolClass
from schooladmin.core.database.repositories.classes import EnrollmentRepository, SchoolClassRepository
from schooladmin.core.errors import ConflictError, NotFoundError
from schooladmin.core.models.io.classes import ClassCreate, ClassDetail, ClassRead, ClassUpdate, ClassWithCount
from schooladmin.core.models.io.common import StudentSummary

logger = logging.getLogger(__name__)

DUPLICATE_CLASS_MESSAGE = "Class already exists for this grade, parallel, track, and academic year"


def build_class_name(grade: str, parallel: Optional[str] = None, track: Optional[str] = None) -> str:
    """``"י' - 2 - מדעים"``; empty parts are left out."""
    return " - ".join(part for part in (grade, parallel, track) if part) or grade


class ClassService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = SchoolClassRepository(session)
        self.enrollments = EnrollmentRepository(session)

    async def get_all(self, academic_year: Optional[int] = None) -> List[ClassWithCount]:
        filters = {"academic_year": academic_year} if academic_year is not None else None
        classes = await self.repo.list(filters=filters)
        counts = await self.enrollments.count_by_class([c.id for c in classes])
        return [
            ClassWithCount(**ClassRead.model_validate(c).model_dump(), student_count=counts.get(c.id, 0))
            for c in classes
        ]

    async def get_by_id(self, class_id: int) -> SchoolClass:
        school_class = await self.repo.get_by_id(class_id)
        if school_class is None:
            raise NotFoundError("Class")
        return school_class

    async def get_detail(self, class_id: int) -> ClassDetail:
        school_class = await self.get_by_id(class_id)
        students = await self.enrollments.list_students(school_class.id)
        return ClassDetail(
            **ClassRead.model_validate(school_class).model_dump(),
            students=[StudentSummary.model_validate(s) for s in students],
        )

    async def create(self, data: ClassCreate) -> SchoolClass:
        track = data.track or None
        if await self.repo.get_by_key(data.grade, data.parallel, track, data.academic_year):
            raise ConflictError(DUPLICATE_CLASS_MESSAGE)
        school_class = SchoolClass(
            grade=data.grade,
            parallel=data.parallel,
            track=track,
            academic_year=data.academic_year,
            name=data.name or build_class_name(data.grade, data.parallel, track),
            is_active=data.is_active,
        )
        school_class = await self.repo.create(school_class)
        logger.info(f"Created class {school_class.name} ({school_class.academic_year})")
        return school_class

    async def update(self, class_id: int, data: ClassUpdate) -> SchoolClass:
        school_class = await self.get_by_id(class_id)
        changes = data.model_dump(exclude_unset=True)

        key = {
            "grade": changes.get("grade") or school_class.grade,
            "parallel": changes["parallel"] if "parallel" in changes else school_class.parallel,
            "track": (changes["track"] or None) if "track" in changes else school_class.track,
            "academic_year": changes.get("academic_year") or school_class.academic_year,
        }
        existing = await self.repo.get_by_key(**key)
        if existing is not None and existing.id != school_class.id:
            raise ConflictError(DUPLICATE_CLASS_MESSAGE)

        for field, value in changes.items():
            if field in key:
                value = key[field]
            setattr(school_class, field, value)
        return await self.repo.update(school_class)

    async def delete(self, class_id: int) -> None:
        school_class = await self.get_by_id(class_id)
        counts = await self.enrollments.count_by_class([school_class.id])
        if counts.get(school_class.id):
            raise ConflictError("Cannot delete class with existing enrollments. Deactivate it instead.")
        await self.repo.delete(school_class.id)
        logger.info(f"Deleted class {school_class.name}")

    async def find_or_create_class(
        self, grade: str, parallel: Optional[str], track: Optional[str], academic_year: int
    ) -> SchoolClass:
        parallel = parallel or None
        track = track or None
        school_class = await self.repo.get_by_key(grade, parallel, track, academic_year)
        if school_class is not None:
            return school_class
        school_class = SchoolClass(
            grade=grade,
            parallel=parallel,
            track=track,
            academic_year=academic_year,
            name=build_class_name(grade, parallel, track),
            is_active=True,
        )
        return await self.repo.create(school_class)
