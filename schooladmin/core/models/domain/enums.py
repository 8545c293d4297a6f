"""Domain enums shared by entities, services and API schemas."""

from __future__ import annotations

from enum import Enum


class ApprovalStatus(str, Enum):
    """
    Account lifecycle.

    CREATED accounts were opened by an administrator and still need a profile;
    completing it moves them to PENDING until an administrator decides.
    """

    CREATED = "CREATED"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class SoldierType(str, Enum):
    """Service type of a staff member."""

    CONSCRIPT = "CONSCRIPT"
    PERMANENT = "PERMANENT"


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"


class StudentStatus(str, Enum):
    """Lifecycle status of a student record."""

    ACTIVE = "ACTIVE"
    GRADUATED = "GRADUATED"
    LEFT = "LEFT"  # An exit record exists.
    ARCHIVED = "ARCHIVED"  # Soft-deleted.


class AuditStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    ERROR = "ERROR"


class PageAction(str, Enum):
    """Level of access to a page."""

    view = "view"
    edit = "edit"


class PermissionSource(str, Enum):
    """Where an effective permission comes from."""

    admin = "admin"
    user = "user"
    role = "role"


class Grade(str, Enum):
    """School grades, ninth to fourteenth."""

    NINTH = "ט'"
    TENTH = "י'"
    ELEVENTH = 'י"א'
    TWELFTH = 'י"ב'
    THIRTEENTH = 'י"ג'
    FOURTEENTH = 'י"ד'


# Grades a student moves through in regular studies, in order.
REGULAR_GRADES = [Grade.NINTH.value, Grade.TENTH.value, Grade.ELEVENTH.value, Grade.TWELFTH.value]

PARALLELS = [str(n) for n in range(1, 9)]
