"""Domain enums and constants."""

from .enums import (
    PARALLELS,
    REGULAR_GRADES,
    ApprovalStatus,
    AuditStatus,
    Gender,
    Grade,
    PageAction,
    PermissionSource,
    SoldierType,
    StudentStatus,
)

__all__ = [
    "PARALLELS",
    "REGULAR_GRADES",
    "ApprovalStatus",
    "AuditStatus",
    "Gender",
    "Grade",
    "PageAction",
    "PermissionSource",
    "SoldierType",
    "StudentStatus",
]
