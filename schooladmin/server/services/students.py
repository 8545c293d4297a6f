"""
Student service.

Creating a student resolves its cohort and grade from whatever the caller
supplied (cohort, grade or both), checks that the study start date fits the
cohort calendar, and enrolls the student in the matching class of the
academic year. The academic year used for enrollments is the calendar year
unless the caller names one.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import date
from typing import Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.cohort_calendar import (
    calculate_cohort_from_grade,
    calculate_grade_at_date,
    cohort_study_window,
    format_date,
    generate_cohort_name,
    grade_year_window,
    next_grade,
)
from schooladmin.core.database.entities.classes import Enrollment, SchoolClass
from schooladmin.core.database.entities.cohorts import Cohort
from schooladmin.core.database.entities.students import Student
from schooladmin.core.database.repositories.classes import EnrollmentRepository
from schooladmin.core.database.repositories.cohorts import CohortRepository
from schooladmin.core.database.repositories.student_exits import StudentExitRepository
from schooladmin.core.database.repositories.students import StudentRepository
from schooladmin.core.errors import AppError, NotFoundError, ValidationError
from schooladmin.core.models.domain.enums import REGULAR_GRADES, StudentStatus
from schooladmin.core.models.io.classes import ClassRead
from schooladmin.core.models.io.cohorts import CohortRead
from schooladmin.core.models.io.student_exits import StudentExitRead
from schooladmin.core.models.io.students import (
    DeleteAllResponse,
    EnrollmentRead,
    PromoteAllResponse,
    PromoteCohortResponse,
    PromotionError,
    StudentCreate,
    StudentDetail,
    StudentRead,
    StudentUpdate,
)

from .classes import ClassService
from .cohorts import CohortService

logger = logging.getLogger(__name__)


def check_study_start_date(start_year: int, grade: str, study_start_date: date) -> None:
    """Raise unless ``study_start_date`` lies in the cohort's years and in the year it sat ``grade``."""
    name = generate_cohort_name(start_year)
    cohort_start, cohort_end = cohort_study_window(start_year)
    if study_start_date < cohort_start:
        raise ValidationError(
            f"תאריך התחלת הלימודים שנבחר קודם לתחילת המחזור. {name} יתחיל ב-{format_date(cohort_start)}"
        )
    if study_start_date >= cohort_end:
        raise ValidationError(
            f"תאריך התחלת הלימודים שנבחר לאחר סיום המחזור. {name} הסתיים ב-{format_date(cohort_end)}"
        )

    if grade not in REGULAR_GRADES:
        return
    grade_start, grade_end = grade_year_window(start_year, grade)
    if not grade_start <= study_start_date < grade_end:
        raise ValidationError(
            f"תאריך התחלת לימודים חייב להיות בין {format_date(grade_start)} ל-{format_date(grade_end)} "
            f"לפי {name} והכיתה {grade}"
        )


class StudentService:
    """Service for student records, enrollments and yearly promotion."""

    def __init__(self, session: AsyncSession, today: Optional[date] = None):
        self.session = session
        self.repo = StudentRepository(session)
        self.enrollments = EnrollmentRepository(session)
        self.cohorts = CohortRepository(session)
        self.exits = StudentExitRepository(session)
        self.cohort_service = CohortService(session, today=today)
        self.class_service = ClassService(session)
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def current_academic_year(self) -> int:
        return self.today.year

    # =====================================================================
    # Reads
    # =====================================================================

    def _to_detail(
        self,
        student: Student,
        enrollments: List[Tuple[Enrollment, SchoolClass]],
        cohort: Optional[Cohort] = None,
        exit_record=None,
    ) -> StudentDetail:
        return StudentDetail(
            **StudentRead.model_validate(student).model_dump(),
            cohort=CohortRead.model_validate(cohort) if cohort else None,
            exit_record=StudentExitRead.model_validate(exit_record) if exit_record else None,
            enrollments=[
                EnrollmentRead(
                    id=enrollment.id,
                    class_id=enrollment.class_id,
                    enrollment_date=enrollment.enrollment_date,
                    school_class=ClassRead.model_validate(school_class),
                )
                for enrollment, school_class in enrollments
            ],
        )

    async def _load_detail(self, student: Student, include_history: bool = True) -> StudentDetail:
        academic_year = None if include_history else self.current_academic_year()
        enrollments = await self.enrollments.list_with_classes([student.id], academic_year)
        if not include_history:
            enrollments = enrollments[:1]
        cohort = await self.cohorts.get_by_id(student.cohort_id) if student.cohort_id else None
        exit_record = await self.exits.get_by_student_id(student.id)
        return self._to_detail(student, enrollments, cohort, exit_record)

    async def get_by_id(self, student_id: int, include_history: bool = True) -> StudentDetail:
        student = await self.repo.get_by_id(student_id)
        if student is None:
            raise NotFoundError("Student")
        return await self._load_detail(student, include_history)

    async def get_by_id_number(self, id_number: str) -> StudentDetail:
        student = await self.repo.get_by_id_number(id_number)
        if student is None:
            raise NotFoundError("Student")
        return await self._load_detail(student)

    async def get_all(
        self,
        status: Optional[StudentStatus] = None,
        cohort_id: Optional[int] = None,
        gender: Optional[str] = None,
        grade: Optional[str] = None,
        academic_year: Optional[int] = None,
    ) -> List[StudentDetail]:
        """
        List students ordered by last and first name.

        Each student carries at most one enrollment: the latest one in
        ``academic_year`` (default: the current year). With ``grade``, only
        students enrolled in that grade that year are returned.
        """
        academic_year = academic_year or self.current_academic_year()
        students = await self.repo.list(filters={"status": status, "cohort_id": cohort_id, "gender": gender})

        current: Dict[int, Tuple[Enrollment, SchoolClass]] = {}
        for enrollment, school_class in await self.enrollments.list_with_classes(
            [s.id for s in students], academic_year
        ):
            if grade is not None and school_class.grade != grade:
                continue
            current.setdefault(enrollment.student_id, (enrollment, school_class))

        cohorts = {c.id: c for c in await self.cohorts.list()}
        exits = {record.student_id: record for record in await self.exits.list()}

        result = []
        for student in students:
            enrollment = current.get(student.id)
            if grade is not None and enrollment is None:
                continue
            result.append(
                self._to_detail(
                    student,
                    [enrollment] if enrollment else [],
                    cohorts.get(student.cohort_id),
                    exits.get(student.id),
                )
            )
        return result

    # =====================================================================
    # Writes
    # =====================================================================

    async def _enroll(self, student_id: int, school_class: SchoolClass) -> None:
        if await self.enrollments.get(student_id, school_class.id) is None:
            await self.enrollments.create(Enrollment(student_id=student_id, class_id=school_class.id))

    async def _resolve_cohort_and_grade(self, data: StudentCreate) -> Tuple[Cohort, str]:
        if data.cohort is not None or data.cohort_id is not None:
            if data.cohort is not None:
                cohort = await self.cohort_service.find_or_create_cohort_by_input(data.cohort)
            else:
                cohort = await self.cohorts.get_by_id(data.cohort_id)
                if cohort is None:
                    raise NotFoundError("Cohort")

            name = generate_cohort_name(cohort.start_year)
            on = format_date(data.study_start_date)
            expected = calculate_grade_at_date(cohort.start_year, data.study_start_date)
            if data.grade:
                if data.grade != expected:
                    raise ValidationError(
                        f"המחזור והכיתה לא תואמים. {name} בתאריך {on} אמור להיות בכיתה "
                        f"{expected or 'לא פעיל'}, אבל הוזן {data.grade}"
                    )
                return cohort, data.grade
            if expected is None:
                raise ValidationError(f"{name} לא היה פעיל בתאריך {on} (המחזור טרם התחיל או כבר הסתיים)")
            return cohort, expected

        if data.grade:
            start_year = calculate_cohort_from_grade(data.grade, self.today)
            return await self.cohort_service.ensure_cohort_exists(start_year), data.grade

        raise ValidationError("נדרש לספק מחזור או כיתה (או שניהם)")

    async def create(self, data: StudentCreate) -> StudentDetail:
        if await self.repo.get_by_id_number(data.id_number):
            raise ValidationError("Student with this ID number already exists")

        cohort, grade = await self._resolve_cohort_and_grade(data)
        check_study_start_date(cohort.start_year, grade, data.study_start_date)

        fields = data.model_dump(exclude={"cohort", "cohort_id", "grade", "academic_year"})
        student = Student(**fields, grade=grade, cohort_id=cohort.id, status=StudentStatus.ACTIVE)
        student = await self.repo.create(student)

        academic_year = data.academic_year or self.current_academic_year()
        school_class = await self.class_service.find_or_create_class(grade, data.parallel, data.track, academic_year)
        await self._enroll(student.id, school_class)

        logger.info(f"Created student {student.id_number} in cohort {cohort.name}, class {school_class.name}")
        return await self._load_detail(student)

    async def update(self, student_id: int, data: StudentUpdate) -> StudentDetail:
        student = await self.repo.get_by_id(student_id)
        if student is None:
            raise NotFoundError("Student")

        changes = data.model_dump(exclude_unset=True, exclude={"academic_year"})
        if changes.get("cohort_id") is not None and await self.cohorts.get_by_id(changes["cohort_id"]) is None:
            raise NotFoundError("Cohort")

        for field, value in changes.items():
            setattr(student, field, value)
        student = await self.repo.update(student)

        if {"grade", "parallel", "track"} & changes.keys() and student.grade:
            academic_year = data.academic_year or self.current_academic_year()
            school_class = await self.class_service.find_or_create_class(
                student.grade, student.parallel, student.track, academic_year
            )
            await self._enroll(student.id, school_class)

        return await self._load_detail(student)

    async def delete(self, student_id: int) -> Student:
        """Archive a student; records are never removed one by one."""
        student = await self.repo.get_by_id(student_id)
        if student is None:
            raise NotFoundError("Student")
        student.status = StudentStatus.ARCHIVED
        student = await self.repo.update(student)
        logger.info(f"Archived student {student.id_number}")
        return student

    async def delete_all(self) -> DeleteAllResponse:
        deleted = await self.repo.delete_all()
        logger.warning(f"Deleted all students ({deleted})")
        return DeleteAllResponse(deleted=deleted)

    # =====================================================================
    # Promotion
    # =====================================================================

    async def _previous_enrollments(
        self, students: List[Student], academic_year: int
    ) -> Dict[int, SchoolClass]:
        """Latest class of each student in the academic year before ``academic_year``."""
        previous: Dict[int, SchoolClass] = {}
        for enrollment, school_class in await self.enrollments.list_with_classes(
            [s.id for s in students], academic_year - 1
        ):
            previous.setdefault(enrollment.student_id, school_class)
        return previous

    async def _promote_student(self, student: Student, previous: SchoolClass, academic_year: int) -> str:
        """Move one student up from ``previous``; returns ``"promoted"`` or ``"graduated"``."""
        upcoming = next_grade(previous.grade)
        if upcoming is None:
            student.status = StudentStatus.GRADUATED
            await self.repo.update(student)
            return "graduated"

        school_class = await self.class_service.find_or_create_class(
            upcoming, previous.parallel, previous.track, academic_year
        )
        await self._enroll(student.id, school_class)
        student.grade = upcoming
        await self.repo.update(student)
        return "promoted"

    async def promote_cohort(self, cohort_id: int, academic_year: Optional[int] = None) -> PromoteCohortResponse:
        cohort = await self.cohorts.get_by_id(cohort_id)
        if cohort is None:
            raise NotFoundError("Cohort")

        upcoming = next_grade(cohort.current_grade) if cohort.current_grade else None
        if upcoming is None:
            raise ValidationError(f"Cannot promote from grade {cohort.current_grade}")

        academic_year = academic_year or self.current_academic_year()
        cohort.current_grade = upcoming
        await self.cohorts.update(cohort)

        students = await self.repo.list_active(cohort_id=cohort.id)
        previous = await self._previous_enrollments(students, academic_year)

        outcome: Counter = Counter()
        for student in students:
            current_class = previous.get(student.id)
            if current_class is None or current_class.grade not in REGULAR_GRADES:
                continue
            outcome[await self._promote_student(student, current_class, academic_year)] += 1

        logger.info(f"Promoted cohort {cohort.name} to {upcoming}: {dict(outcome)}")
        return PromoteCohortResponse(
            count=outcome["promoted"] + outcome["graduated"],
            promoted=outcome["promoted"],
            graduated=outcome["graduated"],
        )

    async def promote_all_cohorts(self, academic_year: Optional[int] = None) -> PromoteAllResponse:
        """
        Yearly promotion of every active student.

        Each student moves one grade up from the class they were in last
        academic year; twelfth graders graduate. Afterwards each active
        cohort's current grade becomes the most common grade among its
        students' enrollments this year.
        """
        academic_year = academic_year or self.current_academic_year()
        result = PromoteAllResponse(promoted=0, graduated=0, skipped=0)

        students = await self.repo.list_active()
        previous = await self._previous_enrollments(students, academic_year)
        for student in students:
            current_class = previous.get(student.id)
            if current_class is None or current_class.grade not in REGULAR_GRADES:
                result.skipped += 1
                continue
            try:
                if await self._promote_student(student, current_class, academic_year) == "graduated":
                    result.graduated += 1
                else:
                    result.promoted += 1
            except AppError as e:
                logger.error(f"Failed to promote student {student.id}: {e.message}")
                result.errors.append(PromotionError(student_id=student.id, error=e.message))

        for cohort in await self.cohorts.list_active():
            members = await self.repo.list_active(cohort_id=cohort.id)
            grades: Counter = Counter()
            seen = set()
            for enrollment, school_class in await self.enrollments.list_with_classes(
                [s.id for s in members], academic_year
            ):
                if enrollment.student_id in seen:
                    continue
                seen.add(enrollment.student_id)
                grades[school_class.grade] += 1
            if not grades:
                continue
            most_common = max(REGULAR_GRADES, key=lambda g: (grades[g], -REGULAR_GRADES.index(g)))
            if grades[most_common] and cohort.current_grade != most_common:
                cohort.current_grade = most_common
                await self.cohorts.update(cohort)

        logger.info(
            f"Promotion into {academic_year}: {result.promoted} promoted, {result.graduated} graduated, "
            f"{result.skipped} skipped, {len(result.errors)} errors"
        )
        return result
