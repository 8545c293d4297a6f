"""Class and enrollment repositories."""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.classes import Enrollment, SchoolClass
from ..entities.students import Student
from .base import SQLRepository


class SchoolClassRepository(SQLRepository[SchoolClass]):
    default_order = (SchoolClass.academic_year.desc(), SchoolClass.grade, SchoolClass.parallel)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, SchoolClass)

    async def get_by_key(
        self, grade: str, parallel: Optional[str], track: Optional[str], academic_year: int
    ) -> Optional[SchoolClass]:
        """Find the class for the natural key; ``None`` parallel/track match NULL columns."""
        return await self.find_one(grade=grade, parallel=parallel, track=track, academic_year=academic_year)


class EnrollmentRepository(SQLRepository[Enrollment]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Enrollment)

    async def get(self, student_id: int, class_id: int) -> Optional[Enrollment]:
        return await self.find_one(student_id=student_id, class_id=class_id)

    async def list_with_classes(
        self, student_ids: List[int], academic_year: Optional[int] = None
    ) -> List[Tuple[Enrollment, SchoolClass]]:
        """Enrollments of the given students joined with their class, newest first."""
        if not student_ids:
            return []
        stmt = (
            select(Enrollment, SchoolClass)
            .join(SchoolClass, SchoolClass.id == Enrollment.class_id)
            .where(Enrollment.student_id.in_(student_ids))
        )
        if academic_year is not None:
            stmt = stmt.where(SchoolClass.academic_year == academic_year)
        stmt = stmt.order_by(Enrollment.enrollment_date.desc(), Enrollment.id.desc())
        result = await self.session.execute(stmt)
        return [(enrollment, school_class) for enrollment, school_class in result.all()]

    async def count_by_class(self, class_ids: List[int]) -> dict[int, int]:
        if not class_ids:
            return {}
        stmt = (
            select(Enrollment.class_id, func.count(Enrollment.id))
            .where(Enrollment.class_id.in_(class_ids))
            .group_by(Enrollment.class_id)
        )
        result = await self.session.execute(stmt)
        return {class_id: count for class_id, count in result.all()}

    async def list_students(self, class_id: int) -> List[Student]:
        stmt = (
            select(Student)
            .join(Enrollment, Enrollment.student_id == Student.id)
            .where(Enrollment.class_id == class_id)
            .order_by(Student.last_name, Student.first_name)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
