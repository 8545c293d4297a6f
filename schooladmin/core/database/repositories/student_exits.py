"""Student exit repository."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.student_exits import StudentExit
from ..entities.students import Student
from .base import QueryBuilder, SQLRepository


class StudentExitRepository(SQLRepository[StudentExit]):
    default_order = (StudentExit.exit_date.desc(), StudentExit.id.desc())

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, StudentExit)

    async def get_by_student_id(self, student_id: int) -> Optional[StudentExit]:
        return await self.find_one(student_id=student_id)

    async def list_with_students(self, filters: Optional[Dict[str, Any]] = None) -> List[Tuple[StudentExit, Student]]:
        """Exit records joined with their student, latest exit first."""
        stmt = select(StudentExit, Student).join(Student, Student.id == StudentExit.student_id)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, StudentExit, filters)
        result = await self.session.execute(stmt.order_by(*self.default_order))
        return [(record, student) for record, student in result.all()]
