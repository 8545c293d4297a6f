"""
Student Excel import.

Uploaded sheets go through two passes: ``validate_excel_data`` reports every
problem of every row without touching the database, and ``process_excel_data``
creates or updates one student per row, collecting failures per row instead of
aborting the batch.
"""

from __future__ import annotations

import logging
import random
from datetime import date
from typing import Any, Dict, List, Optional, Tuple, Union

import pydantic
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.cohort_calendar import (
    academic_year_start,
    calculate_cohort_from_grade,
    generate_cohort_name,
    grade_number,
    parse_cohort_input,
)
from schooladmin.core.database.repositories.students import StudentRepository
from schooladmin.core.database.repositories.tracks import TrackRepository
from schooladmin.core.errors import AppError, ValidationError
from schooladmin.core.excel import ID_NUMBER_ALIAS, STUDENT_COLUMNS, Row, build_workbook
from schooladmin.core.models.domain.enums import PARALLELS, REGULAR_GRADES
from schooladmin.core.models.io.students import StudentCreate, StudentUpdate
from schooladmin.core.models.io.uploads import (
    RowConflict,
    RowConflictDetail,
    UploadRowError,
    UploadValidationResponse,
)
from schooladmin.core.validators import (
    clean_text,
    find_similar_tracks,
    generate_valid_israeli_id,
    normalize_gender,
    normalize_id_number,
    parse_sheet_date,
    validate_date,
    validate_email,
    validate_israeli_id,
    validate_phone,
)

from .students import StudentService

logger = logging.getLogger(__name__)

TEMPLATE_SHEET_NAME = "תלמידים"
TEMPLATE_FILENAME = "students_template.xlsx"

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_CONTENT_TYPE = "application/vnd.ms-excel"
CSV_CONTENT_TYPE = "text/csv"
ALLOWED_CONTENT_TYPES = (XLSX_CONTENT_TYPE, XLS_CONTENT_TYPE, CSV_CONTENT_TYPE)

INVALID_FILE_TYPE_MESSAGE = "Invalid file type. File content does not match the declared file type."
EMPTY_FILE_MESSAGE = "Excel file is empty or invalid"

_OLE2_SIGNATURE = bytes([0xD0, 0xCF, 0x11, 0xE0, 0xA1, 0xB1, 0x1A, 0xE1])
_SIGNATURE_LENGTH = 8

# Sheet column -> student field, for the optional text columns.
_TEXT_COLUMNS: Dict[str, str] = {
    "דואר אלקטרוני": "email",
    "יישוב": "locality",
    "כתובת": "address",
    "יישוב 2": "locality2",
    "כתובת 2": "address2",
    "טלפון": "phone",
    "טלפון נייד": "mobile_phone",
    "ת.ז הורים 1": "parent1_id_number",
    "שם פרטי הורים 1": "parent1_first_name",
    "שם משפחה הורים 1": "parent1_last_name",
    "סוג הורים 1": "parent1_type",
    "טלפון נייד הורים 1": "parent1_mobile",
    "דואר אלקטרוני הורים 1": "parent1_email",
    "ת.ז הורים 2": "parent2_id_number",
    "שם פרטי הורים 2": "parent2_first_name",
    "שם משפחה הורים 2": "parent2_last_name",
    "סוג הורים 2": "parent2_type",
    "טלפון נייד הורים 2": "parent2_mobile",
    "דואר אלקטרוני הורים 2": "parent2_email",
}

_DATE_COLUMNS: Dict[str, str] = {
    "תאריך לידה": "date_of_birth",
    "תאריך עליה": "aliyah_date",
}


# =====================================================================
# Uploaded file checks
# =====================================================================


def _looks_like_text(content: bytes) -> bool:
    for byte in content[:512]:
        if byte < 9 or (13 < byte < 32):
            return False
        if byte > 244:
            return False
    return True


def check_file_signature(content: bytes, content_type: Optional[str]) -> bool:
    """True when the leading bytes match the declared spreadsheet type."""
    if len(content) < _SIGNATURE_LENGTH:
        return False
    if content_type == XLSX_CONTENT_TYPE:
        return content[:2] == b"PK" and content[2:4] in (b"\x03\x04", b"\x05\x06")
    if content_type == XLS_CONTENT_TYPE:
        return content[:_SIGNATURE_LENGTH] == _OLE2_SIGNATURE
    if content_type == CSV_CONTENT_TYPE:
        return _looks_like_text(content)
    return False


def max_upload_bytes(is_admin: bool, max_size_mb: int, admin_max_size_mb: int) -> int:
    return (admin_max_size_mb if is_admin else max_size_mb) * 1024 * 1024


# =====================================================================
# Row helpers
# =====================================================================


def _row_id_number(row: Row) -> Optional[str]:
    value = row.get(STUDENT_COLUMNS[0])
    if clean_text(value) is None:
        value = row.get(ID_NUMBER_ALIAS)
    if clean_text(value) is None:
        return None
    return normalize_id_number(value) or clean_text(value)


def _row_identity(row: Row) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    return _row_id_number(row), clean_text(row.get("שם פרטי")), clean_text(row.get("שם משפחה"))


def _cohort_cell(value: Any) -> Optional[Union[int, str]]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    return clean_text(value)


class StudentUploadService:
    """Service for importing student sheets.

    ``today`` pins the date used for cohort calculations and date checks; it
    defaults to the real current date.
    """

    def __init__(self, session: AsyncSession, today: Optional[date] = None):
        self.session = session
        self.students = StudentRepository(session)
        self.tracks = TrackRepository(session)
        self.student_service = StudentService(session, today=today)
        self._today = today
        self._track_names: Optional[Dict[str, str]] = None

    @property
    def today(self) -> date:
        return self._today or date.today()

    async def _existing_tracks(self) -> Dict[str, str]:
        """Active track names keyed by their lowercase form, loaded once per service."""
        if self._track_names is None:
            self._track_names = {track.name.lower(): track.name for track in await self.tracks.list_active()}
        return self._track_names

    # =====================================================================
    # Validation pass
    # =====================================================================

    async def validate_excel_row(self, row: Row, row_number: int) -> Optional[RowConflict]:
        """Every problem found in one row, or None for a clean row."""
        id_number, first_name, last_name = _row_identity(row)
        grade = clean_text(row.get("כיתה"))
        parallel = clean_text(row.get("מקבילה"))
        track = clean_text(row.get("מגמה"))
        conflicts: List[RowConflictDetail] = []

        if id_number:
            valid, error = validate_israeli_id(id_number)
            if not valid:
                conflicts.append(
                    RowConflictDetail(
                        type="INVALID_ID_NUMBER",
                        message=f"Invalid ID number: {error}",
                        message_hebrew=error or "ת.ז לא חוקית",
                    )
                )

        if grade and grade not in REGULAR_GRADES:
            valid_grades = ", ".join(REGULAR_GRADES)
            conflicts.append(
                RowConflictDetail(
                    type="INVALID_GRADE",
                    message=f"Invalid grade: {grade}. Valid grades are: {valid_grades}",
                    message_hebrew=f"כיתה לא חוקית: {grade}. כיתות חוקיות: {valid_grades}",
                    suggestions=list(REGULAR_GRADES),
                )
            )

        if parallel and parallel not in PARALLELS:
            valid_parallels = ", ".join(PARALLELS)
            conflicts.append(
                RowConflictDetail(
                    type="INVALID_PARALLEL",
                    message=f"Invalid parallel: {parallel}. Valid parallels are: {valid_parallels}",
                    message_hebrew=f"מקבילה לא חוקית: {parallel}. מקבילות חוקיות: {valid_parallels}",
                    suggestions=list(PARALLELS),
                )
            )

        if track:
            tracks = await self._existing_tracks()
            if track.lower() not in tracks:
                similar = find_similar_tracks(track, tracks.values())
                conflicts.append(
                    RowConflictDetail(
                        type="TRACK_NOT_FOUND",
                        message=f"Track not found: {track}",
                        message_hebrew=f"מגמה לא קיימת: {track}",
                        suggestions=similar or None,
                    )
                )

        for n in (1, 2):
            parent_id = clean_text(row.get(f"ת.ז הורים {n}"))
            if parent_id:
                valid, error = validate_israeli_id(row.get(f"ת.ז הורים {n}"))
                if not valid:
                    conflicts.append(
                        RowConflictDetail(
                            type="INVALID_PARENT_ID_NUMBER",
                            message=f"Invalid parent {n} ID number: {error}",
                            message_hebrew=f"ת.ז הורים {n} לא חוקית: {error or 'ת.ז לא חוקית'}",
                        )
                    )

        phone = clean_text(row.get("טלפון"))
        if phone:
            valid, error = validate_phone(phone)
            if not valid:
                conflicts.append(
                    RowConflictDetail(
                        type="INVALID_PHONE_NUMBER",
                        message=f"Invalid phone number: {phone}",
                        message_hebrew=f"מספר טלפון לא חוקי: {phone}. {error}",
                    )
                )

        mobile = clean_text(row.get("טלפון נייד"))
        if mobile:
            valid, error = validate_phone(mobile)
            if not valid:
                conflicts.append(
                    RowConflictDetail(
                        type="INVALID_PHONE_NUMBER",
                        message=f"Invalid mobile phone number: {mobile}",
                        message_hebrew=f"מספר טלפון נייד לא חוקי: {mobile}. {error}",
                    )
                )

        for n in (1, 2):
            parent_mobile = clean_text(row.get(f"טלפון נייד הורים {n}"))
            if parent_mobile:
                valid, error = validate_phone(parent_mobile)
                if not valid:
                    conflicts.append(
                        RowConflictDetail(
                            type="INVALID_PHONE_NUMBER",
                            message=f"Invalid parent {n} mobile phone: {parent_mobile}",
                            message_hebrew=f"טלפון נייד הורים {n} לא חוקי: {parent_mobile}. {error}",
                        )
                    )

        email = clean_text(row.get("דואר אלקטרוני"))
        if email:
            valid, error = validate_email(email)
            if not valid:
                conflicts.append(
                    RowConflictDetail(
                        type="INVALID_EMAIL",
                        message=f"Invalid email address: {email}",
                        message_hebrew=f"כתובת דואר אלקטרוני לא חוקית: {email}. {error}",
                    )
                )

        for n in (1, 2):
            parent_email = clean_text(row.get(f"דואר אלקטרוני הורים {n}"))
            if parent_email:
                valid, error = validate_email(parent_email)
                if not valid:
                    conflicts.append(
                        RowConflictDetail(
                            type="INVALID_EMAIL",
                            message=f"Invalid parent {n} email: {parent_email}",
                            message_hebrew=f"דואר אלקטרוני הורים {n} לא חוקי: {parent_email}. {error}",
                        )
                    )

        for column, label, label_hebrew in (
            ("תאריך לידה", "date of birth", "תאריך לידה"),
            ("תאריך עליה", "aliyah date", "תאריך עליה"),
        ):
            valid, error = validate_date(row.get(column), self.today)
            if not valid:
                conflicts.append(
                    RowConflictDetail(
                        type="INVALID_DATE",
                        message=f"Invalid {label}: {error}",
                        message_hebrew=f"{label_hebrew} לא חוקי: {error}",
                    )
                )

        if not conflicts:
            return None
        return RowConflict(
            row=row_number,
            id_number=id_number,
            first_name=first_name,
            last_name=last_name,
            conflicts=conflicts,
        )

    async def validate_excel_data(self, rows: List[Row]) -> UploadValidationResponse:
        """Validate every row; row numbers count the header as row 1."""
        logger.info(f"Validating {len(rows)} uploaded rows")
        conflicts: List[RowConflict] = []
        for index, row in enumerate(rows):
            conflict = await self.validate_excel_row(row, index + 2)
            if conflict is not None:
                conflicts.append(conflict)

        valid_rows = len(rows) - len(conflicts)
        logger.info(f"Validation finished: {valid_rows} valid rows, {len(conflicts)} rows with conflicts")
        return UploadValidationResponse(total_rows=len(rows), valid_rows=valid_rows, conflicts=conflicts)

    # =====================================================================
    # Import pass
    # =====================================================================

    def _row_fields(self, row: Row) -> Dict[str, Any]:
        fields: Dict[str, Any] = {}
        for column, field in _TEXT_COLUMNS.items():
            value = clean_text(row.get(column))
            if value is not None:
                fields[field] = value
        for column, field in _DATE_COLUMNS.items():
            value = parse_sheet_date(row.get(column))
            if value is not None:
                fields[field] = value
        return fields

    def _row_start_year(self, row: Row, grade: str) -> int:
        cohort = _cohort_cell(row.get("מחזור"))
        if cohort is not None:
            return parse_cohort_input(cohort)
        return calculate_cohort_from_grade(grade, self.today)

    async def _import_row(self, row: Row) -> bool:
        """Create or update the student of one row; True when a student was created.

        Raises:
            ValidationError: for rows missing required data or holding invalid values
        """
        id_number, first_name, last_name = _row_identity(row)
        gender = normalize_gender(row.get("מין"))
        grade = clean_text(row.get("כיתה"))
        parallel = clean_text(row.get("מקבילה"))
        track = clean_text(row.get("מגמה"))

        if not id_number:
            raise ValidationError("Missing ID number")
        if not first_name or not last_name:
            raise ValidationError("Missing first or last name")
        if gender is None:
            raise ValidationError("Invalid or missing gender")
        if not grade:
            raise ValidationError("Missing grade")

        valid, error = validate_israeli_id(id_number)
        if not valid:
            raise ValidationError(error or "Invalid ID number")
        if grade not in REGULAR_GRADES:
            raise ValidationError(f"Invalid grade: {grade}")
        if parallel and parallel not in PARALLELS:
            raise ValidationError(f"Invalid parallel: {parallel}")
        if track:
            tracks = await self._existing_tracks()
            if track.lower() not in tracks:
                raise ValidationError(
                    f"Track not found: {track}. Please add the track to the system first or use an existing track."
                )
            track = tracks[track.lower()]

        fields = self._row_fields(row)
        start_year = self._row_start_year(row, grade)
        cohort = await self.student_service.cohort_service.ensure_cohort_exists(start_year)
        study_start_date = academic_year_start(start_year + grade_number(grade) - 9)

        existing = await self.students.get_by_id_number(id_number)
        if existing is None:
            data = StudentCreate(
                id_number=id_number,
                first_name=first_name,
                last_name=last_name,
                gender=gender,
                grade=grade,
                parallel=parallel,
                track=track,
                cohort_id=cohort.id,
                study_start_date=study_start_date,
                **fields,
            )
            await self.student_service.create(data)
            return True

        data = StudentUpdate(
            first_name=first_name,
            last_name=last_name,
            gender=gender,
            grade=grade,
            parallel=parallel,
            track=track,
            cohort_id=cohort.id,
            study_start_date=study_start_date,
            **fields,
        )
        await self.student_service.update(existing.id, data)
        logger.debug(f"Updated student {id_number} from sheet ({generate_cohort_name(start_year)})")
        return False

    async def process_excel_data(self, rows: List[Row]) -> Tuple[int, int, List[UploadRowError]]:
        """Import every row and return ``(created, updated, errors)``."""
        created = updated = 0
        errors: List[UploadRowError] = []

        for index, row in enumerate(rows):
            row_number = index + 2
            try:
                if await self._import_row(row):
                    created += 1
                else:
                    updated += 1
            except AppError as e:
                errors.append(UploadRowError(row=row_number, error=e.message))
            except (pydantic.ValidationError, ValueError) as e:
                errors.append(UploadRowError(row=row_number, error=str(e)))

            if (index + 1) % 100 == 0:
                logger.info(f"Processed {index + 1}/{len(rows)} rows")

        logger.info(f"Import finished: {created} created, {updated} updated, {len(errors)} errors")
        return created, updated, errors

    # =====================================================================
    # Template
    # =====================================================================

    def generate_excel_template(self, rng: Optional[random.Random] = None) -> bytes:
        """Blank student sheet with three example rows."""
        year = self.today.year
        examples = [
            {
                "מספר ת.ז": generate_valid_israeli_id(rng),
                "שם פרטי": "יוסי",
                "שם משפחה": "כהן",
                "מין": "זכר",
                "כיתה": "ט'",
                "מקבילה": "1",
                "מחזור": generate_cohort_name(calculate_cohort_from_grade("ט'", self.today)),
                "תאריך לידה": f"15/03/{year - 15}",
                "דואר אלקטרוני": "yossi@example.com",
                "יישוב": "תל אביב",
                "כתובת": "רחוב הרצל 1",
                "טלפון נייד": "050-1234567",
                "שם פרטי הורים 1": "דוד",
                "שם משפחה הורים 1": "כהן",
                "סוג הורים 1": "אב",
                "טלפון נייד הורים 1": "052-1234567",
            },
            {
                "מספר ת.ז": generate_valid_israeli_id(rng),
                "שם פרטי": "מיכל",
                "שם משפחה": "לוי",
                "מין": "נקבה",
                "כיתה": "י'",
                "מקבילה": "2",
                "תאריך לידה": f"22/07/{year - 16}",
                "יישוב": "חיפה",
                "טלפון נייד": "054-7654321",
                "שם פרטי הורים 1": "רחל",
                "שם משפחה הורים 1": "לוי",
                "סוג הורים 1": "אם",
            },
            {
                "מספר ת.ז": generate_valid_israeli_id(rng),
                "שם פרטי": "נועה",
                "שם משפחה": "מזרחי",
                "מין": "נקבה",
                "כיתה": 'י"א',
                "מקבילה": "3",
                "תאריך לידה": f"02/11/{year - 17}",
                "יישוב": "ירושלים",
                "טלפון": "02-6543210",
            },
        ]
        rows = [[example.get(column, "") for column in STUDENT_COLUMNS] for example in examples]
        return build_workbook(TEMPLATE_SHEET_NAME, STUDENT_COLUMNS, rows)
