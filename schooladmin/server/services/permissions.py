"""
Permission service.

Manages API and page permissions for users and roles, and answers the
question every protected request asks: may this user call ``METHOD path``?

A page grant is stored as the page permission itself plus one grant per API
permission the page implies. Revoking a page grant removes the implied API
grants that no remaining page grant still needs.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database.entities.organization import Role
from schooladmin.core.database.entities.permissions import Permission, RolePermission, UserPermission
from schooladmin.core.database.entities.soldiers import Soldier
from schooladmin.core.database.repositories.organization import RoleRepository
from schooladmin.core.database.repositories.permissions import (
    PermissionRepository,
    RolePermissionRepository,
    UserPermissionRepository,
)
from schooladmin.core.database.repositories.soldiers import SoldierRepository
from schooladmin.core.errors import ConflictError, NotFoundError, ValidationError
from schooladmin.core.models.domain.enums import ApprovalStatus, PageAction, PermissionSource
from schooladmin.core.models.io.permissions import (
    BulkGrantResult,
    GrantResult,
    PageAccess,
    PagePermissionRequest,
    PermissionCreate,
    PermissionRead,
    PermissionWithSource,
)
from schooladmin.core.permissions import (
    PAGE_RESOURCE,
    find_page_permissions_for_request,
    get_all_pages,
    get_api_permissions_for_page,
    get_page,
    infer_resource_action,
    page_permission_action,
    page_permission_name,
    permission_name,
)

logger = logging.getLogger(__name__)


class PermissionService:
    """Service for granting, revoking and checking permissions."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.permissions = PermissionRepository(session)
        self.user_grants = UserPermissionRepository(session)
        self.role_grants = RolePermissionRepository(session)
        self.soldiers = SoldierRepository(session)
        self.roles = RoleRepository(session)

    # =====================================================================
    # Permission catalogue
    # =====================================================================

    async def get_all_permissions(self) -> List[Permission]:
        return await self.permissions.list()

    async def get_permission_by_id(self, permission_id: int) -> Permission:
        permission = await self.permissions.get_by_id(permission_id)
        if permission is None:
            raise NotFoundError("Permission")
        return permission

    async def create_permission(self, data: PermissionCreate) -> Permission:
        name = permission_name(data.resource, data.action)
        if await self.permissions.get_by_name(name):
            raise ConflictError("Permission with this name already exists")
        permission = Permission(name=name, resource=data.resource, action=data.action, description=data.description)
        permission = await self.permissions.create(permission)
        logger.info(f"Created permission {name}")
        return permission

    async def get_or_create_permission(
        self, resource: str, action: str, description: Optional[str] = None
    ) -> Permission:
        permission = await self.permissions.get_by_resource_action(resource, action)
        if permission:
            return permission
        permission = Permission(
            name=permission_name(resource, action),
            resource=resource,
            action=action,
            description=description or f"Permission to {action} {resource}",
        )
        return await self.permissions.create(permission)

    async def _get_page_permission(self, page: str, action: str, create: bool) -> Optional[Permission]:
        definition = get_page(page)
        if definition is None:
            raise NotFoundError("Page", f'Page "{page}" not found')
        if action == PageAction.edit.value and not definition.supports_edit_mode:
            raise ValidationError(f'Page "{page}" does not support edit mode')
        page_action = page_permission_action(page, action)
        if create:
            verb = "View" if action == PageAction.view.value else "Edit"
            return await self.get_or_create_permission(
                PAGE_RESOURCE, page_action, f"{verb} access to the {definition.display_name} page"
            )
        return await self.permissions.get_by_resource_action(PAGE_RESOURCE, page_action)

    async def _get_implied_api_permissions(self, page: str, action: str) -> List[Permission]:
        return [
            await self.get_or_create_permission(api.resource, api.action)
            for api in get_api_permissions_for_page(page, action)
        ]

    # =====================================================================
    # Subjects
    # =====================================================================

    async def _get_user(self, user_id: int) -> Soldier:
        user = await self.soldiers.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def _get_approved_user(self, user_id: int) -> Soldier:
        user = await self._get_user(user_id)
        if user.approval_status != ApprovalStatus.APPROVED:
            raise ValidationError(
                f'Cannot grant permissions to user with status "{user.approval_status.value}". '
                "Only APPROVED users can receive permissions."
            )
        return user

    async def _get_role(self, role_id: int) -> Role:
        role = await self.roles.get_by_id(role_id)
        if role is None:
            raise NotFoundError("Role")
        return role

    # =====================================================================
    # Effective permissions
    # =====================================================================

    async def get_user_permissions(self, user_id: int) -> List[Permission]:
        """Every permission the user holds, directly or through the role."""
        user = await self._get_user(user_id)
        if user.is_admin:
            return await self.permissions.list()

        collected: Dict[int, Permission] = {p.id: p for p in await self.user_grants.list_active_permissions(user.id)}
        if user.role_id is not None:
            for permission in await self.role_grants.list_active_permissions(user.role_id):
                collected.setdefault(permission.id, permission)
        return sorted(collected.values(), key=lambda p: (p.resource, p.action))

    async def get_user_permissions_with_details(self, user_id: int) -> List[PermissionWithSource]:
        """Effective permissions tagged with where they come from.

        A permission held both directly and through the role appears twice.
        """
        user = await self._get_user(user_id)
        if user.is_admin:
            return [
                PermissionWithSource(**PermissionRead.model_validate(p).model_dump(), source=PermissionSource.admin)
                for p in await self.permissions.list()
            ]

        entries = [
            PermissionWithSource(**PermissionRead.model_validate(p).model_dump(), source=PermissionSource.user)
            for p in await self.user_grants.list_active_permissions(user.id)
        ]
        if user.role_id is not None:
            for permission, role in await self.role_grants.list_active_permissions_with_role(user.role_id):
                entries.append(
                    PermissionWithSource(
                        **PermissionRead.model_validate(permission).model_dump(),
                        source=PermissionSource.role,
                        role_id=role.id,
                        role_name=role.name,
                    )
                )
        entries.sort(key=lambda e: (e.resource, e.action, e.source.value))
        return entries

    async def get_effective_permission_names(self, user: Soldier) -> Set[str]:
        names = {p.name for p in await self.user_grants.list_active_permissions(user.id)}
        if user.role_id is not None:
            names.update(p.name for p in await self.role_grants.list_active_permissions(user.role_id))
        return names

    async def has_permission(self, user_id: int, name: str) -> bool:
        user = await self._get_user(user_id)
        if user.is_admin:
            return True
        return name in await self.get_effective_permission_names(user)

    async def check_api_access(self, user: Soldier, method: str, path: str) -> bool:
        """Whether ``user`` may call ``method path`` (path relative to the API prefix).

        Allowed for administrators, for holders of a page permission whose page
        uses this API, and for holders of the ``resource:action`` permission
        inferred from the path and method.
        """
        if user.is_admin:
            return True

        names = await self.get_effective_permission_names(user)
        if any(name in names for name in find_page_permissions_for_request(method, path)):
            return True

        inferred = infer_resource_action(method, path)
        if inferred and permission_name(*inferred) in names:
            return True

        logger.debug(f"Denied {method} {path} for user {user.id}")
        return False

    async def get_users_with_permission(self, permission_id: int) -> List[Soldier]:
        await self.get_permission_by_id(permission_id)
        users = []
        for user_id in await self.user_grants.list_active_user_ids(permission_id):
            user = await self.soldiers.get_by_id(user_id)
            if user is not None:
                users.append(user)
        return users

    # =====================================================================
    # Direct grants
    # =====================================================================

    async def _activate_user_grant(
        self, user_id: int, permission: Permission, granted_by: Optional[int], strict: bool
    ) -> UserPermission:
        grant = await self.user_grants.get_grant(user_id, permission.id)
        if grant is None:
            grant = UserPermission(user_id=user_id, permission_id=permission.id, granted_by=granted_by)
            return await self.user_grants.create(grant)
        if grant.is_active:
            if strict:
                raise ConflictError("Permission already granted to this user")
            return grant
        grant.is_active = True
        grant.granted_by = granted_by
        return await self.user_grants.update(grant)

    async def _activate_role_grant(
        self, role_id: int, permission: Permission, granted_by: Optional[int], strict: bool
    ) -> RolePermission:
        grant = await self.role_grants.get_grant(role_id, permission.id)
        if grant is None:
            grant = RolePermission(role_id=role_id, permission_id=permission.id, granted_by=granted_by)
            return await self.role_grants.create(grant)
        if grant.is_active:
            if strict:
                raise ConflictError("Permission already granted to this role")
            return grant
        grant.is_active = True
        grant.granted_by = granted_by
        return await self.role_grants.update(grant)

    async def grant_permission(self, user_id: int, permission_id: int, granted_by: Optional[int]) -> UserPermission:
        await self._get_approved_user(user_id)
        permission = await self.get_permission_by_id(permission_id)
        grant = await self._activate_user_grant(user_id, permission, granted_by, strict=True)
        logger.info(f"Granted {permission.name} to user {user_id} (by {granted_by})")
        return grant

    async def revoke_permission(self, user_id: int, permission_id: int) -> None:
        grant = await self.user_grants.get_grant(user_id, permission_id)
        if grant is None or not grant.is_active:
            raise NotFoundError("User permission")
        grant.is_active = False
        await self.user_grants.update(grant)
        logger.info(f"Revoked permission {permission_id} from user {user_id}")

    async def get_role_permissions(self, role_id: int) -> List[Permission]:
        await self._get_role(role_id)
        return await self.role_grants.list_active_permissions(role_id)

    async def grant_role_permission(self, role_id: int, permission_id: int, granted_by: Optional[int]) -> RolePermission:
        await self._get_role(role_id)
        permission = await self.get_permission_by_id(permission_id)
        grant = await self._activate_role_grant(role_id, permission, granted_by, strict=True)
        logger.info(f"Granted {permission.name} to role {role_id} (by {granted_by})")
        return grant

    async def revoke_role_permission(self, role_id: int, permission_id: int) -> None:
        grant = await self.role_grants.get_grant(role_id, permission_id)
        if grant is None or not grant.is_active:
            raise NotFoundError("Role permission")
        grant.is_active = False
        await self.role_grants.update(grant)
        logger.info(f"Revoked permission {permission_id} from role {role_id}")

    # =====================================================================
    # Page grants
    # =====================================================================

    async def grant_page_permission(
        self, user_id: int, page: str, action: str, granted_by: Optional[int]
    ) -> GrantResult:
        """Grant a page permission and the API permissions it implies.

        Raises:
            ConflictError: if the page permission itself is already granted
        """
        await self._get_approved_user(user_id)
        page_permission = await self._get_page_permission(page, action, create=True)
        await self._activate_user_grant(user_id, page_permission, granted_by, strict=True)

        api_permissions = await self._get_implied_api_permissions(page, action)
        for permission in api_permissions:
            await self._activate_user_grant(user_id, permission, granted_by, strict=False)

        logger.info(f"Granted {page_permission.name} (+{len(api_permissions)} API permissions) to user {user_id}")
        return _grant_result(f"Page permission {page_permission.name} granted", page_permission, api_permissions)

    async def revoke_page_permission(self, user_id: int, page: str, action: str) -> GrantResult:
        await self._get_user(user_id)
        page_permission = await self._get_page_permission(page, action, create=False)
        if page_permission is None:
            raise NotFoundError("Page permission", f'Page permission "{page_permission_name(page, action)}" not found')
        await self.revoke_permission(user_id, page_permission.id)

        remaining_pages = [
            p.action for p in await self.user_grants.list_active_permissions(user_id) if p.resource == PAGE_RESOURCE
        ]
        revoked = []
        for permission in await self._release_api_permissions(page, action, remaining_pages):
            grant = await self.user_grants.get_grant(user_id, permission.id)
            if grant is not None and grant.is_active:
                grant.is_active = False
                await self.user_grants.update(grant)
                revoked.append(permission)

        logger.info(f"Revoked {page_permission.name} (-{len(revoked)} API permissions) from user {user_id}")
        return _grant_result(f"Page permission {page_permission.name} revoked", page_permission, revoked)

    async def get_user_page_permissions(self, user_id: int) -> Dict[str, PageAccess]:
        """Page access map for every registered page; an edit grant implies view."""
        user = await self._get_user(user_id)
        if user.is_admin:
            return {page.page: PageAccess(view=True, edit=page.supports_edit_mode) for page in get_all_pages()}
        names = await self.get_effective_permission_names(user)
        return _page_access_map(names)

    async def grant_page_permission_to_role(
        self, role_id: int, page: str, action: str, granted_by: Optional[int]
    ) -> GrantResult:
        await self._get_role(role_id)
        page_permission = await self._get_page_permission(page, action, create=True)
        await self._activate_role_grant(role_id, page_permission, granted_by, strict=True)

        api_permissions = await self._get_implied_api_permissions(page, action)
        for permission in api_permissions:
            await self._activate_role_grant(role_id, permission, granted_by, strict=False)

        logger.info(f"Granted {page_permission.name} (+{len(api_permissions)} API permissions) to role {role_id}")
        return _grant_result(f"Page permission {page_permission.name} granted", page_permission, api_permissions)

    async def revoke_page_permission_from_role(self, role_id: int, page: str, action: str) -> GrantResult:
        await self._get_role(role_id)
        page_permission = await self._get_page_permission(page, action, create=False)
        if page_permission is None:
            raise NotFoundError("Page permission", f'Page permission "{page_permission_name(page, action)}" not found')
        await self.revoke_role_permission(role_id, page_permission.id)

        remaining_pages = [
            p.action for p in await self.role_grants.list_active_permissions(role_id) if p.resource == PAGE_RESOURCE
        ]
        revoked = []
        for permission in await self._release_api_permissions(page, action, remaining_pages):
            grant = await self.role_grants.get_grant(role_id, permission.id)
            if grant is not None and grant.is_active:
                grant.is_active = False
                await self.role_grants.update(grant)
                revoked.append(permission)

        logger.info(f"Revoked {page_permission.name} (-{len(revoked)} API permissions) from role {role_id}")
        return _grant_result(f"Page permission {page_permission.name} revoked", page_permission, revoked)

    async def get_role_page_permissions(self, role_id: int) -> Dict[str, PageAccess]:
        await self._get_role(role_id)
        names = {p.name for p in await self.role_grants.list_active_permissions(role_id)}
        return _page_access_map(names)

    async def bulk_grant_page_permissions(
        self, user_id: int, items: Iterable[PagePermissionRequest], granted_by: Optional[int]
    ) -> BulkGrantResult:
        result = BulkGrantResult()
        for item in items:
            try:
                result.granted.append(await self.grant_page_permission(user_id, item.page, item.action.value, granted_by))
            except (ConflictError, NotFoundError, ValidationError) as e:
                result.errors.append({"page": item.page, "action": item.action.value, "error": e.message})
        return result

    async def bulk_grant_page_permissions_to_role(
        self, role_id: int, items: Iterable[PagePermissionRequest], granted_by: Optional[int]
    ) -> BulkGrantResult:
        result = BulkGrantResult()
        for item in items:
            try:
                result.granted.append(
                    await self.grant_page_permission_to_role(role_id, item.page, item.action.value, granted_by)
                )
            except (ConflictError, NotFoundError, ValidationError) as e:
                result.errors.append({"page": item.page, "action": item.action.value, "error": e.message})
        return result

    async def _release_api_permissions(self, page: str, action: str, remaining_page_actions: List[str]) -> List[Permission]:
        """API permissions implied by ``page:action`` that no remaining page grant implies."""
        still_needed: Set[str] = set()
        for page_action in remaining_page_actions:
            other_page, _, other_action = page_action.rpartition(":")
            still_needed.update(api.name for api in get_api_permissions_for_page(other_page, other_action))

        released = []
        for api in get_api_permissions_for_page(page, action):
            if api.name in still_needed:
                continue
            permission = await self.permissions.get_by_resource_action(api.resource, api.action)
            if permission is not None:
                released.append(permission)
        return released


def _page_access_map(permission_names: Set[str]) -> Dict[str, PageAccess]:
    access = {}
    for page in get_all_pages():
        edit = page.supports_edit_mode and page_permission_name(page.page, PageAction.edit.value) in permission_names
        view = edit or page_permission_name(page.page, PageAction.view.value) in permission_names
        access[page.page] = PageAccess(view=view, edit=edit)
    return access


def _grant_result(message: str, page_permission: Permission, api_permissions: List[Permission]) -> GrantResult:
    return GrantResult(
        message=message,
        page_permission=PermissionRead.model_validate(page_permission),
        api_permissions=[PermissionRead.model_validate(p) for p in api_permissions],
    )
