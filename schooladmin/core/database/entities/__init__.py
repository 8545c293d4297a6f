"""
Database entities for SchoolAdmin.

Importing this package registers every table on ``Base.metadata``.
"""

from .audit_logs import AuditLog
from .classes import Enrollment, SchoolClass
from .cohorts import Cohort
from .organization import Department, Role, Room
from .permissions import Permission, RolePermission, UserPermission
from .soldiers import Soldier
from .student_exits import StudentExit
from .students import Student
from .tracks import Track

__all__ = [
    "AuditLog",
    "Cohort",
    "Department",
    "Enrollment",
    "Permission",
    "Role",
    "RolePermission",
    "Room",
    "SchoolClass",
    "Soldier",
    "Student",
    "StudentExit",
    "Track",
    "UserPermission",
]
