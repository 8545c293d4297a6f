"""
Permission entity models.

A permission is a ``resource:action`` pair. Page permissions use the resource
``page`` and an action of the form ``<page>:<view|edit>``. Grants link a
permission to a user or to a role; revoking a grant deactivates it so that the
history (who granted it, when) is kept.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field

from ..base import Base, utc_now


class Permission(Base, table=True):
    """Named permission.

    Table: permissions
    """

    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("resource", "action", name="uq_permissions_resource_action"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True, index=True, description="resource:action")
    resource: str = Field(max_length=128, index=True)
    action: str = Field(max_length=128)
    description: Optional[str] = Field(default=None, max_length=512)

    created_at: datetime = Field(default_factory=utc_now)

    def __repr__(self) -> str:
        return f"Permission(id={self.id}, name={self.name})"


class UserPermission(Base, table=True):
    """Permission granted directly to a user.

    Table: user_permissions
    """

    __tablename__ = "user_permissions"
    __table_args__ = (
        UniqueConstraint("user_id", "permission_id", name="uq_user_permissions_user_permission"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="soldiers.id", index=True)
    permission_id: int = Field(foreign_key="permissions.id", index=True)
    granted_by: Optional[int] = Field(default=None, description="Soldier id of the granting admin")
    granted_at: datetime = Field(default_factory=utc_now)
    is_active: bool = Field(default=True)

    def __repr__(self) -> str:
        return f"UserPermission(user_id={self.user_id}, permission_id={self.permission_id}, active={self.is_active})"


class RolePermission(Base, table=True):
    """Permission granted to every user holding a role.

    Table: role_permissions
    """

    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "permission_id", name="uq_role_permissions_role_permission"),
        {"extend_existing": True},
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    role_id: int = Field(foreign_key="roles.id", index=True)
    permission_id: int = Field(foreign_key="permissions.id", index=True)
    granted_by: Optional[int] = Field(default=None)
    granted_at: datetime = Field(default_factory=utc_now)
    is_active: bool = Field(default=True)

    def __repr__(self) -> str:
        return f"RolePermission(role_id={self.role_id}, permission_id={self.permission_id}, active={self.is_active})"
