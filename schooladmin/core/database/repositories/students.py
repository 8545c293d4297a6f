"""Student repository."""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from schooladmin.core.models.domain.enums import StudentStatus

from ..entities.classes import Enrollment, SchoolClass
from ..entities.student_exits import StudentExit
from ..entities.students import Student
from .base import SQLRepository


class StudentRepository(SQLRepository[Student]):
    default_order = (Student.last_name, Student.first_name)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Student)

    async def get_by_id_number(self, id_number: str) -> Optional[Student]:
        return await self.find_one(id_number=id_number)

    async def list_active(self, cohort_id: Optional[int] = None) -> List[Student]:
        stmt = select(Student).where(Student.status == StudentStatus.ACTIVE)
        if cohort_id is not None:
            stmt = stmt.where(Student.cohort_id == cohort_id)
        result = await self.session.execute(stmt.order_by(Student.id))
        return list(result.scalars().all())

    async def count_active_by_cohort(self) -> dict[int, int]:
        stmt = (
            select(Student.cohort_id, func.count(Student.id))
            .where(Student.status == StudentStatus.ACTIVE, Student.cohort_id.is_not(None))
            .group_by(Student.cohort_id)
        )
        result = await self.session.execute(stmt)
        return {cohort_id: count for cohort_id, count in result.all()}

    async def list_ids_in_track(self, track_name: str) -> set[int]:
        """Students whose own track is ``track_name`` or who were enrolled in a class of that track."""
        direct = select(Student.id).where(Student.track == track_name)
        enrolled = (
            select(Enrollment.student_id)
            .join(SchoolClass, SchoolClass.id == Enrollment.class_id)
            .where(SchoolClass.track == track_name)
        )
        ids = set((await self.session.execute(direct)).scalars().all())
        ids.update((await self.session.execute(enrolled)).scalars().all())
        return ids

    async def delete_all(self) -> int:
        """Hard-delete every student with their enrollments and exit records."""
        await self.session.execute(delete(Enrollment))
        await self.session.execute(delete(StudentExit))
        result = await self.session.execute(delete(Student))
        await self.session.commit()
        return result.rowcount
