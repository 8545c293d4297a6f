"""
Student endpoints.

Covers student records, the yearly promotion and the Excel import. Fixed
paths (``/clear-all``, ``/upload``, ``/promote-all`` ...) are declared before
the ``/{student_id}`` routes so they are matched first.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile
from fastapi import status as http_status
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import get_session
from schooladmin.core.database.entities.soldiers import Soldier
from schooladmin.core.errors import ValidationError
from schooladmin.core.excel import Row, parse_spreadsheet
from schooladmin.core.logging_config import get_logger
from schooladmin.core.models.domain.enums import AuditStatus, Gender, StudentStatus
from schooladmin.core.models.io.common import MessageResponse
from schooladmin.core.models.io.students import (
    DeleteAllResponse,
    PromoteAllResponse,
    PromoteCohortResponse,
    PromoteRequest,
    StudentCreate,
    StudentDetail,
    StudentUpdate,
)
from schooladmin.core.models.io.uploads import UploadResponse, UploadSummary, UploadValidationResponse
from schooladmin.server.core.config import settings
from schooladmin.server.services.audit import AuditService
from schooladmin.server.services.deps import AdminUser, PermittedUser
from schooladmin.server.services.student_upload import (
    CSV_CONTENT_TYPE,
    EMPTY_FILE_MESSAGE,
    INVALID_FILE_TYPE_MESSAGE,
    TEMPLATE_FILENAME,
    XLSX_CONTENT_TYPE,
    StudentUploadService,
    check_file_signature,
    max_upload_bytes,
)
from schooladmin.server.services.students import StudentService

logger = get_logger(__name__)

router = APIRouter(tags=["students"])


async def _read_upload(
    file: Optional[UploadFile], user: Soldier, request: Request, session: AsyncSession
) -> Tuple[List[Row], str]:
    """Check an uploaded sheet and return its rows and file name.

    Raises:
        ValidationError: missing file, wrong signature, too large, unreadable or empty
    """
    if file is None:
        raise ValidationError("No file uploaded")

    audit = AuditService(session)
    filename = file.filename or ""
    content = await file.read()

    if not check_file_signature(content, file.content_type):
        await audit.write(
            "EXCEL_UPLOAD_FAILED",
            "students",
            user=user,
            details={"file_name": filename, "content_type": file.content_type},
            status=AuditStatus.FAILURE,
            error_message="File signature does not match the declared type",
            request=request,
        )
        raise ValidationError(INVALID_FILE_TYPE_MESSAGE)

    upload = settings.upload
    limit = max_upload_bytes(user.is_admin, upload.max_size_mb, upload.admin_max_size_mb)
    if len(content) > limit:
        message = f"File size exceeds limit. Maximum file size: {limit // (1024 * 1024)}MB"
        await audit.write(
            "EXCEL_UPLOAD_FAILED",
            "students",
            user=user,
            details={"file_name": filename, "file_size": len(content), "max_file_size": limit},
            status=AuditStatus.FAILURE,
            error_message=message,
            request=request,
        )
        raise ValidationError(message, details={"max_file_size": limit, "file_size": len(content)})

    if file.content_type == CSV_CONTENT_TYPE and not filename.lower().endswith(".csv"):
        filename = f"{filename or 'upload'}.csv"
    rows = parse_spreadsheet(content, filename)
    if not rows:
        await audit.write(
            "EXCEL_UPLOAD_FAILED",
            "students",
            user=user,
            details={"file_name": filename},
            status=AuditStatus.FAILURE,
            error_message=EMPTY_FILE_MESSAGE,
            request=request,
        )
        raise ValidationError(EMPTY_FILE_MESSAGE)
    return rows, filename


# =====================================================================
# Bulk operations
# =====================================================================


@router.delete(
    "/clear-all",
    response_model=DeleteAllResponse,
    summary="Delete All Students",
    description="Remove every student together with enrollments and exit records. Administrators only.",
)
async def clear_all_students(
    request: Request, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> DeleteAllResponse:
    result = await StudentService(session).delete_all()
    await AuditService(session).write(
        "STUDENTS_CLEARED", "students", user=admin, details={"deleted": result.deleted}, request=request
    )
    return result


@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Import Students From Excel",
    description="Create or update one student per sheet row. Failing rows are reported and skipped.",
    responses={400: {"description": "Missing, mistyped, oversized, unreadable or empty file"}},
)
async def upload_students(
    request: Request,
    user: PermittedUser,
    file: Optional[UploadFile] = File(default=None, description="Spreadsheet (.xlsx or .csv)"),
    session: AsyncSession = Depends(get_session),
) -> UploadResponse:
    """
    Import students from a spreadsheet.

    The first row holds the Hebrew column headers, as in the template from
    ``/students/upload/template``. Rows with the ID number of a stored student
    update that student with the non-empty cells of the row.
    """
    rows, filename = await _read_upload(file, user, request, session)
    audit = AuditService(session)
    await audit.write(
        "EXCEL_UPLOAD_STARTED",
        "students",
        user=user,
        details={"file_name": filename, "total_rows": len(rows)},
        request=request,
    )

    try:
        created, updated, errors = await StudentUploadService(session).process_excel_data(rows)
    except Exception as e:
        logger.error(f"Excel import of {filename} failed: {e}", exc_info=True)
        await session.rollback()
        await session.refresh(user)
        await audit.write(
            "EXCEL_UPLOAD_FAILED",
            "students",
            user=user,
            details={"file_name": filename},
            status=AuditStatus.ERROR,
            error_message=str(e),
            request=request,
        )
        raise

    await audit.write(
        "EXCEL_UPLOAD_COMPLETED",
        "students",
        user=user,
        details={
            "file_name": filename,
            "total_rows": len(rows),
            "created": created,
            "updated": updated,
            "errors": len(errors),
        },
        request=request,
    )
    return UploadResponse(
        message="File processed successfully",
        summary=UploadSummary(total_rows=len(rows), created=created, updated=updated, errors=len(errors)),
        errors=errors,
    )


@router.post(
    "/upload/validate",
    response_model=UploadValidationResponse,
    summary="Validate Excel Import",
    description="Report the problems of every row without storing anything.",
    responses={400: {"description": "Missing, mistyped, oversized, unreadable or empty file"}},
)
async def validate_upload(
    request: Request,
    user: PermittedUser,
    file: Optional[UploadFile] = File(default=None, description="Spreadsheet (.xlsx or .csv)"),
    session: AsyncSession = Depends(get_session),
) -> UploadValidationResponse:
    rows, _ = await _read_upload(file, user, request, session)
    return await StudentUploadService(session).validate_excel_data(rows)


@router.get(
    "/upload/template",
    summary="Download Import Template",
    description="Spreadsheet with the import columns and three example rows.",
    response_class=Response,
    responses={200: {"content": {XLSX_CONTENT_TYPE: {}}, "description": "The template workbook"}},
)
async def download_template(user: PermittedUser, session: AsyncSession = Depends(get_session)) -> Response:
    content = StudentUploadService(session).generate_excel_template()
    return Response(
        content=content,
        media_type=XLSX_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{TEMPLATE_FILENAME}"'},
    )


@router.post(
    "/promote-all",
    response_model=PromoteAllResponse,
    summary="Promote All Students",
    description="Move every active student one grade up; twelfth graders graduate.",
)
async def promote_all(
    user: PermittedUser,
    data: Optional[PromoteRequest] = None,
    session: AsyncSession = Depends(get_session),
) -> PromoteAllResponse:
    academic_year = data.academic_year if data else None
    result = await StudentService(session).promote_all_cohorts(academic_year)
    logger.info(f"Promotion run by {user.email}: {result.promoted} promoted, {result.graduated} graduated")
    return result


@router.post(
    "/cohorts/{cohort_id}/promote",
    response_model=PromoteCohortResponse,
    summary="Promote Cohort",
    responses={400: {"description": "The cohort cannot be promoted"}, 404: {"description": "Cohort not found"}},
)
async def promote_cohort(
    cohort_id: int,
    user: PermittedUser,
    data: Optional[PromoteRequest] = None,
    session: AsyncSession = Depends(get_session),
) -> PromoteCohortResponse:
    academic_year = data.academic_year if data else None
    return await StudentService(session).promote_cohort(cohort_id, academic_year)


# =====================================================================
# CRUD
# =====================================================================


@router.post(
    "",
    response_model=StudentDetail,
    status_code=http_status.HTTP_201_CREATED,
    summary="Create Student",
    responses={400: {"description": "Duplicate ID number, or cohort, grade and date do not agree"}},
)
async def create_student(
    data: StudentCreate, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> StudentDetail:
    """
    Create a student and enroll them in the matching class.

    - **id_number**: Nine-digit ID number with a valid check digit.
    - **first_name** / **last_name** / **gender**: Required.
    - **cohort** or **cohort_id**: Start year, gematria name, or stored cohort id.
    - **grade**: Grade at ``study_start_date``; derived from the cohort when omitted.
    - **parallel** / **track**: Optional class placement.
    - **study_start_date**: First day of studies; must fit the cohort and grade.
    """
    return await StudentService(session).create(data)


@router.get(
    "",
    response_model=List[StudentDetail],
    summary="List Students",
    description="Students ordered by last and first name, each with the enrollment of the academic year.",
)
async def list_students(
    user: PermittedUser,
    status: Optional[StudentStatus] = Query(default=None),
    cohort_id: Optional[int] = Query(default=None),
    gender: Optional[Gender] = Query(default=None),
    grade: Optional[str] = Query(default=None, description="Only students enrolled in this grade"),
    academic_year: Optional[int] = Query(default=None, description="Defaults to the current year"),
    session: AsyncSession = Depends(get_session),
) -> List[StudentDetail]:
    return await StudentService(session).get_all(
        status=status,
        cohort_id=cohort_id,
        gender=gender.value if gender else None,
        grade=grade,
        academic_year=academic_year,
    )


@router.get(
    "/id-number/{id_number}",
    response_model=StudentDetail,
    summary="Get Student By ID Number",
    responses={404: {"description": "Student not found"}},
)
async def get_student_by_id_number(
    id_number: str, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> StudentDetail:
    return await StudentService(session).get_by_id_number(id_number)


@router.get(
    "/{student_id}",
    response_model=StudentDetail,
    summary="Get Student",
    responses={404: {"description": "Student not found"}},
)
async def get_student(
    student_id: int,
    user: PermittedUser,
    include_history: bool = Query(default=True, description="Include every enrollment, not just the latest"),
    session: AsyncSession = Depends(get_session),
) -> StudentDetail:
    return await StudentService(session).get_by_id(student_id, include_history=include_history)


@router.put(
    "/{student_id}",
    response_model=StudentDetail,
    summary="Update Student",
    responses={404: {"description": "Student or cohort not found"}},
)
async def update_student(
    student_id: int, data: StudentUpdate, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> StudentDetail:
    return await StudentService(session).update(student_id, data)


@router.delete(
    "/{student_id}",
    response_model=MessageResponse,
    summary="Archive Student",
    description="Students are archived rather than removed.",
    responses={404: {"description": "Student not found"}},
)
async def delete_student(
    student_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)
) -> MessageResponse:
    await StudentService(session).delete(student_id)
    return MessageResponse(message="Student archived successfully")
