"""
Student exit service.

Recording an exit marks the student as LEFT.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database.entities.student_exits import StudentExit
from schooladmin.core.database.repositories.student_exits import StudentExitRepository
from schooladmin.core.database.repositories.students import StudentRepository
from schooladmin.core.errors import ConflictError, NotFoundError
from schooladmin.core.models.domain.enums import StudentStatus
from schooladmin.core.models.io.common import StudentSummary
from schooladmin.core.models.io.student_exits import (
    StudentExitCreate,
    StudentExitRead,
    StudentExitUpdate,
    StudentExitWithStudent,
)

logger = logging.getLogger(__name__)


class StudentExitService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = StudentExitRepository(session)
        self.students = StudentRepository(session)

    async def create(self, data: StudentExitCreate) -> StudentExit:
        student = await self.students.get_by_id(data.student_id)
        if student is None:
            raise NotFoundError("Student")
        if await self.repo.get_by_student_id(student.id):
            raise ConflictError("Exit record already exists for this student")

        record = StudentExit(**data.model_dump())
        student.status = StudentStatus.LEFT
        self.session.add(student)
        record = await self.repo.create(record)
        logger.info(f"Recorded exit of student {student.id_number}")
        return record

    async def get_by_student_id(self, student_id: int) -> StudentExit:
        record = await self.repo.get_by_student_id(student_id)
        if record is None:
            raise NotFoundError("Exit record")
        return record

    async def get_all(
        self,
        exit_category: Optional[str] = None,
        was_desired_exit: Optional[bool] = None,
        expelled_from_school: Optional[bool] = None,
    ) -> List[StudentExitWithStudent]:
        filters = {
            "exit_category": exit_category,
            "was_desired_exit": was_desired_exit,
            "expelled_from_school": expelled_from_school,
        }
        return [
            StudentExitWithStudent(
                **StudentExitRead.model_validate(record).model_dump(),
                student=StudentSummary.model_validate(student),
            )
            for record, student in await self.repo.list_with_students(filters)
        ]

    async def update(self, student_id: int, data: StudentExitUpdate) -> StudentExit:
        record = await self.get_by_student_id(student_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(record, field, value)
        return await self.repo.update(record)
