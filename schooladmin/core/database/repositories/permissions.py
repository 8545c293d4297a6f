"""
Permission repositories.

Grant queries always filter on ``is_active``; inactive rows are kept only so a
later grant can reactivate them.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.organization import Role
from ..entities.permissions import Permission, RolePermission, UserPermission
from .base import SQLRepository


class PermissionRepository(SQLRepository[Permission]):
    default_order = (Permission.resource, Permission.action)

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Permission)

    async def get_by_name(self, name: str) -> Optional[Permission]:
        return await self.find_one(name=name)

    async def get_by_resource_action(self, resource: str, action: str) -> Optional[Permission]:
        return await self.find_one(resource=resource, action=action)


class UserPermissionRepository(SQLRepository[UserPermission]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, UserPermission)

    async def get_grant(self, user_id: int, permission_id: int) -> Optional[UserPermission]:
        """The grant row for the pair, active or not."""
        return await self.find_one(user_id=user_id, permission_id=permission_id)

    async def list_active_permissions(self, user_id: int) -> List[Permission]:
        stmt = (
            select(Permission)
            .join(UserPermission, UserPermission.permission_id == Permission.id)
            .where(UserPermission.user_id == user_id, UserPermission.is_active == True)  # noqa: E712
            .order_by(Permission.resource, Permission.action)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_active_user_ids(self, permission_id: int) -> List[int]:
        stmt = select(UserPermission.user_id).where(
            UserPermission.permission_id == permission_id,
            UserPermission.is_active == True,  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_for_user(self, user_id: int) -> int:
        """Remove every grant row of a user, active or not."""
        result = await self.session.execute(delete(UserPermission).where(UserPermission.user_id == user_id))
        return result.rowcount


class RolePermissionRepository(SQLRepository[RolePermission]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, RolePermission)

    async def get_grant(self, role_id: int, permission_id: int) -> Optional[RolePermission]:
        return await self.find_one(role_id=role_id, permission_id=permission_id)

    async def list_active_permissions(self, role_id: int) -> List[Permission]:
        stmt = (
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id, RolePermission.is_active == True)  # noqa: E712
            .order_by(Permission.resource, Permission.action)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_active_permissions_with_role(self, role_id: int) -> List[Tuple[Permission, Role]]:
        stmt = (
            select(Permission, Role)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .join(Role, Role.id == RolePermission.role_id)
            .where(RolePermission.role_id == role_id, RolePermission.is_active == True)  # noqa: E712
            .order_by(Permission.resource, Permission.action)
        )
        result = await self.session.execute(stmt)
        return [(permission, role) for permission, role in result.all()]

    async def delete_for_role(self, role_id: int) -> int:
        result = await self.session.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        return result.rowcount
