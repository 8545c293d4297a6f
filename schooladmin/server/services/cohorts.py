"""
Cohort service.

Cohort names and grades are never chosen freely: both follow from the start
year and today's date (see ``schooladmin.core.cohort_calendar``). The service
keeps stored cohorts in line with that calendar and creates missing cohorts on
demand.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.cohort_calendar import (
    FIRST_COHORT_YEAR,
    calculate_cohort_grade_and_status,
    calculate_grade_at_date,
    format_date,
    generate_cohort_name,
    max_cohort_year,
    parse_cohort_input,
)
from schooladmin.core.database.entities.cohorts import Cohort
from schooladmin.core.database.repositories.cohorts import CohortRepository
from schooladmin.core.database.repositories.students import StudentRepository
from schooladmin.core.errors import NotFoundError, ValidationError
from schooladmin.core.models.io.cohorts import (
    CohortCreate,
    CohortRead,
    CohortUpdate,
    CohortWithCount,
    RefreshCohortsResponse,
    RenamedCohort,
    UpdateCohortNamesResponse,
    ValidateMatchResponse,
)

logger = logging.getLogger(__name__)


class CohortService:
    """Service for cohort bookkeeping.

    ``today`` pins the date used for grade and range calculations; it defaults
    to the real current date.
    """

    def __init__(self, session: AsyncSession, today: Optional[date] = None):
        self.session = session
        self.repo = CohortRepository(session)
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    def _check_year(self, start_year: int) -> None:
        upper = max_cohort_year(self.today)
        if start_year < FIRST_COHORT_YEAR or start_year > upper:
            raise ValidationError(
                f"שנת מחזור חייבת להיות בין {FIRST_COHORT_YEAR} ל-{upper}. התקבל: {start_year}"
            )

    # =====================================================================
    # CRUD
    # =====================================================================

    async def create(self, data: CohortCreate) -> Cohort:
        self._check_year(data.start_year)
        name = generate_cohort_name(data.start_year)

        existing = await self.repo.get_by_start_year(data.start_year)
        if existing:
            raise ValidationError(f"מחזור עם שנת התחלה {data.start_year} כבר קיים ({existing.name})")
        existing = await self.repo.get_by_name(name)
        if existing:
            raise ValidationError(f"מחזור עם השם {name} כבר קיים (שנת התחלה: {existing.start_year})")

        if "current_grade" not in data.model_fields_set:
            current_grade, is_active = calculate_cohort_grade_and_status(data.start_year, self.today)
        elif data.current_grade is None:
            current_grade, is_active = None, False
        else:
            current_grade, is_active = data.current_grade, True

        cohort = Cohort(name=name, start_year=data.start_year, current_grade=current_grade, is_active=is_active)
        cohort = await self.repo.create(cohort)
        logger.info(f"Created cohort {cohort.name} ({cohort.start_year})")
        return cohort

    async def get_all(self, is_active: Optional[bool] = None) -> List[CohortWithCount]:
        """Cohorts, newest first, each with its number of active students."""
        filters = {"is_active": is_active} if is_active is not None else None
        cohorts = await self.repo.list(filters=filters)
        counts = await StudentRepository(self.session).count_active_by_cohort()
        return [
            CohortWithCount(**CohortRead.model_validate(c).model_dump(), student_count=counts.get(c.id, 0))
            for c in cohorts
        ]

    async def get_by_id(self, cohort_id: int) -> Cohort:
        cohort = await self.repo.get_by_id(cohort_id)
        if cohort is None:
            raise NotFoundError("Cohort")
        return cohort

    async def update(self, cohort_id: int, data: CohortUpdate) -> Cohort:
        """Update a cohort. A name that does not match the start year is replaced by the right one."""
        cohort = await self.get_by_id(cohort_id)
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes:
            expected = generate_cohort_name(cohort.start_year)
            if changes["name"] != expected:
                logger.warning(
                    f"Cohort {cohort.id}: correcting name {changes['name']!r} to {expected!r} "
                    f"for start year {cohort.start_year}"
                )
                changes["name"] = expected
        for field, value in changes.items():
            setattr(cohort, field, value)
        return await self.repo.update(cohort)

    async def delete(self, cohort_id: int) -> Cohort:
        """Deactivate a cohort; cohorts are never removed."""
        cohort = await self.get_by_id(cohort_id)
        cohort.is_active = False
        return await self.repo.update(cohort)

    # =====================================================================
    # Calendar synchronization
    # =====================================================================

    def _sync(self, cohort: Cohort) -> bool:
        """Align name, grade and status with the calendar; True if anything changed."""
        name = generate_cohort_name(cohort.start_year)
        current_grade, is_active = calculate_cohort_grade_and_status(cohort.start_year, self.today)
        changed = (cohort.name, cohort.current_grade, cohort.is_active) != (name, current_grade, is_active)
        cohort.name = name
        cohort.current_grade = current_grade
        cohort.is_active = is_active
        return changed

    async def ensure_cohort_exists(self, start_year: int) -> Cohort:
        """Return the cohort for ``start_year``, creating or resynchronizing it."""
        self._check_year(start_year)
        cohort = await self.repo.get_by_start_year(start_year)
        if cohort is None:
            cohort = await self.repo.get_by_name(generate_cohort_name(start_year))

        if cohort is None:
            current_grade, is_active = calculate_cohort_grade_and_status(start_year, self.today)
            cohort = Cohort(
                name=generate_cohort_name(start_year),
                start_year=start_year,
                current_grade=current_grade,
                is_active=is_active,
            )
            cohort = await self.repo.create(cohort)
            logger.info(f"Created cohort {cohort.name} on demand")
            return cohort

        cohort.start_year = start_year
        if self._sync(cohort):
            cohort = await self.repo.update(cohort)
        return cohort

    async def ensure_all_cohorts_exist(self) -> None:
        """Create every cohort from the first one to next year's and resynchronize the rest."""
        existing = {cohort.start_year: cohort for cohort in await self.repo.list()}
        created = updated = 0
        for year in range(FIRST_COHORT_YEAR, max_cohort_year(self.today) + 1):
            cohort = existing.get(year)
            if cohort is None:
                current_grade, is_active = calculate_cohort_grade_and_status(year, self.today)
                self.session.add(
                    Cohort(
                        name=generate_cohort_name(year),
                        start_year=year,
                        current_grade=current_grade,
                        is_active=is_active,
                    )
                )
                created += 1
            elif self._sync(cohort):
                self.session.add(cohort)
                updated += 1
        await self.session.commit()
        logger.info(f"Cohort synchronization: {created} created, {updated} updated")

    async def find_or_create_cohort_by_input(self, value: Union[int, str]) -> Cohort:
        """Resolve a start year or gematria name to a stored cohort."""
        return await self.ensure_cohort_exists(parse_cohort_input(value))

    async def refresh(self) -> RefreshCohortsResponse:
        await self.ensure_all_cohorts_exist()
        cohorts = await self.repo.list()
        active = sum(1 for c in cohorts if c.is_active)
        return RefreshCohortsResponse(
            message="כל המחזורים עודכנו בהצלחה",
            total=len(cohorts),
            active=active,
            inactive=len(cohorts) - active,
        )

    async def update_all_cohort_names(self) -> UpdateCohortNamesResponse:
        """Make sure every cohort exists and carries the name its start year dictates.

        Only cohorts that existed before the call and changed name are listed.
        """
        previous_names = {cohort.id: cohort.name for cohort in await self.repo.list()}
        await self.ensure_all_cohorts_exist()
        cohorts = sorted(await self.repo.list(), key=lambda c: c.start_year)

        renamed = [
            RenamedCohort(
                id=cohort.id, old_name=previous_names[cohort.id], new_name=cohort.name, start_year=cohort.start_year
            )
            for cohort in cohorts
            if cohort.id in previous_names and previous_names[cohort.id] != cohort.name
        ]

        return UpdateCohortNamesResponse(
            updated=len(renamed),
            skipped=len(cohorts) - len(renamed),
            total=len(cohorts),
            cohorts=renamed,
        )

    # =====================================================================
    # Calculations
    # =====================================================================

    def validate_match(
        self, cohort: Union[int, str], grade: str, on_date: Optional[date] = None
    ) -> ValidateMatchResponse:
        """Check that a cohort was in ``grade`` on ``on_date`` (default today)."""
        on_date = on_date or self.today
        start_year = parse_cohort_input(cohort)
        name = generate_cohort_name(start_year)
        expected = calculate_grade_at_date(start_year, on_date)

        message = None
        if expected is None:
            message = f"{name} לא היה פעיל בתאריך {format_date(on_date)} (המחזור טרם התחיל)"
        elif expected != grade:
            message = (
                f"המחזור והכיתה לא תואמים. {name} בתאריך {format_date(on_date)} "
                f"אמור להיות בכיתה {expected}, אבל הוזן {grade}"
            )
        return ValidateMatchResponse(
            valid=expected == grade,
            start_year=start_year,
            cohort_name=name,
            expected_grade=expected,
            message=message,
        )
