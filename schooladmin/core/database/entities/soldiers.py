"""
Soldier (staff account) entity.

Every user of the system is a soldier record. The record is created with an
email and a temporary password; the owner fills in the rest of the profile on
first login and then waits for an administrator to approve the account.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from schooladmin.core.models.domain.enums import ApprovalStatus, SoldierType

from ..base import Base, utc_now


class SoldierBase(Base):
    """Profile fields of a staff member."""

    email: str = Field(max_length=255, unique=True, index=True, description="Login email")
    personal_number: Optional[str] = Field(
        default=None, max_length=32, unique=True, description="Personal (service) number"
    )
    name: Optional[str] = Field(default=None, max_length=255, description="Full name")
    type: Optional[SoldierType] = Field(default=None, description="Service type")
    department_id: Optional[int] = Field(default=None, foreign_key="departments.id", index=True)
    role_id: Optional[int] = Field(default=None, foreign_key="roles.id", index=True)
    is_commander: bool = Field(default=False, description="Commands the department")
    is_admin: bool = Field(default=False, description="System administrator")
    approval_status: ApprovalStatus = Field(default=ApprovalStatus.PENDING, index=True)
    needs_profile_completion: bool = Field(default=False)


class Soldier(SoldierBase, table=True):
    """Persistent staff account.

    Table: soldiers
    """

    __tablename__ = "soldiers"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    password: str = Field(max_length=255, description="Password hash")

    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Soldier(id={self.id}, email={self.email}, status={self.approval_status})"
