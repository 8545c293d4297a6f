"""
Authentication and account I/O models.

Passwords chosen by people (temporary passwords, the password set when a
profile is completed, administrator resets) must pass the strong password
rule from ``schooladmin.core.security``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from schooladmin.core.models.domain.enums import ApprovalStatus, SoldierType
from schooladmin.core.security import check_password_strength

from .common import EmailStr, NameStr
from .organization import DepartmentRead, RoleRead


class SoldierRead(BaseModel):
    """Account as returned by the API; never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    personal_number: Optional[str] = None
    name: Optional[str] = None
    type: Optional[SoldierType] = None
    department_id: Optional[int] = None
    role_id: Optional[int] = None
    is_commander: bool
    is_admin: bool
    approval_status: ApprovalStatus
    needs_profile_completion: bool
    created_at: datetime
    updated_at: datetime


class SoldierDetail(SoldierRead):
    department: Optional[DepartmentRead] = None
    role: Optional[RoleRead] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class LoginResponse(BaseModel):
    token: str = Field(description="Session token to send as 'Authorization: Bearer <token>'")
    token_type: str = "bearer"
    user: SoldierDetail


class CreateUserRequest(BaseModel):
    email: EmailStr
    temporary_password: str = Field(description="Initial password the user replaces when completing the profile")

    @field_validator("temporary_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password_strength(value)


class CompleteProfileRequest(BaseModel):
    personal_number: str = Field(min_length=1, max_length=32)
    name: NameStr
    type: SoldierType
    department_id: int
    role_id: Optional[int] = None
    is_commander: bool = False
    new_password: str

    @field_validator("personal_number")
    @classmethod
    def _strip_personal_number(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Personal number is required")
        return value

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password_strength(value)


class ResetPasswordRequest(BaseModel):
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password_strength(value)


class UpdateUserRequest(BaseModel):
    """Administrator edit of an account. Only the fields sent are changed."""

    name: Optional[NameStr] = None
    personal_number: Optional[str] = Field(default=None, min_length=1, max_length=32)
    email: Optional[EmailStr] = None
    type: Optional[SoldierType] = None
    department_id: Optional[int] = None
    role_id: Optional[int] = None
    is_commander: Optional[bool] = None
    is_admin: Optional[bool] = None
    approval_status: Optional[ApprovalStatus] = None


class SoldierCreate(BaseModel):
    """Administrator shortcut that creates a complete, approved account."""

    email: EmailStr
    password: str
    personal_number: str = Field(min_length=1, max_length=32)
    name: NameStr
    type: SoldierType
    department_id: Optional[int] = None
    role_id: Optional[int] = None
    is_commander: bool = False
    is_admin: bool = False

    @field_validator("password")
    @classmethod
    def _strong_password(cls, value: str) -> str:
        return check_password_strength(value)
