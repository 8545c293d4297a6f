"""
Repositories for SchoolAdmin entities.

Each repository wraps an ``AsyncSession`` and exposes CRUD plus the finders
the services need.
"""

from .audit_logs import AuditLogRepository
from .base import BaseRepository, QueryBuilder, SQLRepository
from .classes import EnrollmentRepository, SchoolClassRepository
from .cohorts import CohortRepository
from .organization import DepartmentRepository, RoleRepository, RoomRepository
from .permissions import PermissionRepository, RolePermissionRepository, UserPermissionRepository
from .soldiers import SoldierRepository
from .student_exits import StudentExitRepository
from .students import StudentRepository
from .tracks import TrackRepository

__all__ = [
    "AuditLogRepository",
    "BaseRepository",
    "CohortRepository",
    "DepartmentRepository",
    "EnrollmentRepository",
    "PermissionRepository",
    "QueryBuilder",
    "RolePermissionRepository",
    "RoleRepository",
    "RoomRepository",
    "SQLRepository",
    "SchoolClassRepository",
    "SoldierRepository",
    "StudentExitRepository",
    "StudentRepository",
    "TrackRepository",
    "UserPermissionRepository",
]
