"""
I/O models for API requests and responses.

This package contains Pydantic-based I/O schemas that define the contract
between API endpoints and clients. These models are separate from database
entities to allow independent evolution of API contracts.

Modules:
- auth: Login, account and profile models
- organization: Department, role and room models
- permissions: Permission, grant and page registry models
- cohorts, tracks, classes, students, student_exits: Student records models
- uploads: Excel import results
"""

from .auth import (
    CompleteProfileRequest,
    CreateUserRequest,
    LoginRequest,
    LoginResponse,
    ResetPasswordRequest,
    SoldierCreate,
    SoldierDetail,
    SoldierRead,
    UpdateUserRequest,
)
from .classes import ClassCreate, ClassDetail, ClassRead, ClassUpdate, ClassWithCount
from .cohorts import (
    CalculateCohortRequest,
    CalculateCohortResponse,
    CalculateGradeRequest,
    CalculateGradeResponse,
    CohortCreate,
    CohortRead,
    CohortUpdate,
    CohortWithCount,
    RefreshCohortsResponse,
    RenamedCohort,
    UpdateCohortNamesResponse,
    ValidateMatchRequest,
    ValidateMatchResponse,
)
from .common import MessageResponse, StudentSummary
from .organization import (
    DepartmentCreate,
    DepartmentRead,
    DepartmentUpdate,
    DepartmentWithCount,
    RoleCreate,
    RoleRead,
    RoleUpdate,
    RoomCreate,
    RoomRead,
    RoomUpdate,
)
from .permissions import (
    BulkGrantResult,
    BulkPagePermissionRequest,
    GrantResult,
    PageAccess,
    PagePermissionRequest,
    PagesResponse,
    PermissionCreate,
    PermissionGrantRequest,
    PermissionRead,
    PermissionWithSource,
)
from .student_exits import StudentExitCreate, StudentExitRead, StudentExitUpdate, StudentExitWithStudent
from .students import (
    DeleteAllResponse,
    EnrollmentRead,
    PromoteAllResponse,
    PromoteCohortResponse,
    PromoteRequest,
    StudentCreate,
    StudentDetail,
    StudentRead,
    StudentUpdate,
)
from .tracks import TrackCreate, TrackRead, TrackUpdate
from .uploads import RowConflict, RowConflictDetail, UploadResponse, UploadRowError, UploadSummary, UploadValidationResponse

__all__ = [
    "BulkGrantResult",
    "BulkPagePermissionRequest",
    "CalculateCohortRequest",
    "CalculateCohortResponse",
    "CalculateGradeRequest",
    "CalculateGradeResponse",
    "ClassCreate",
    "ClassDetail",
    "ClassRead",
    "ClassUpdate",
    "ClassWithCount",
    "CohortCreate",
    "CohortRead",
    "CohortUpdate",
    "CohortWithCount",
    "CompleteProfileRequest",
    "CreateUserRequest",
    "DeleteAllResponse",
    "DepartmentCreate",
    "DepartmentRead",
    "DepartmentUpdate",
    "DepartmentWithCount",
    "EnrollmentRead",
    "GrantResult",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "PageAccess",
    "PagePermissionRequest",
    "PagesResponse",
    "PermissionCreate",
    "PermissionGrantRequest",
    "PermissionRead",
    "PermissionWithSource",
    "PromoteAllResponse",
    "PromoteCohortResponse",
    "PromoteRequest",
    "RefreshCohortsResponse",
    "RenamedCohort",
    "ResetPasswordRequest",
    "RoleCreate",
    "RoleRead",
    "RoleUpdate",
    "RoomCreate",
    "RoomRead",
    "RoomUpdate",
    "RowConflict",
    "RowConflictDetail",
    "SoldierCreate",
    "SoldierDetail",
    "SoldierRead",
    "StudentCreate",
    "StudentDetail",
    "StudentExitCreate",
    "StudentExitRead",
    "StudentExitUpdate",
    "StudentExitWithStudent",
    "StudentRead",
    "StudentSummary",
    "StudentUpdate",
    "TrackCreate",
    "TrackRead",
    "TrackUpdate",
    "UpdateCohortNamesResponse",
    "UpdateUserRequest",
    "UploadResponse",
    "UploadRowError",
    "UploadSummary",
    "UploadValidationResponse",
    "ValidateMatchRequest",
    "ValidateMatchResponse",
]
