"""
Unit tests for PermissionService.

Page grants carry the API permissions the page uses; revoking a page only
releases the API permissions no other granted page still needs. Role grants
reach every holder of the role and are reported with their source.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.errors import ConflictError, NotFoundError, ValidationError
from schooladmin.core.models.domain.enums import PageAction, PermissionSource
from schooladmin.core.models.io.auth import UpdateUserRequest
from schooladmin.core.models.io.organization import RoleCreate
from schooladmin.core.models.io.permissions import PagePermissionRequest, PermissionCreate
from schooladmin.server.services.auth import AuthService
from schooladmin.server.services.organization import RoleService
from schooladmin.server.services.permissions import PermissionService

pytestmark = pytest.mark.asyncio


async def _role_holder(session: AsyncSession, user, name: str = "Teacher"):
    role = await RoleService(session).create(RoleCreate(name=name))
    user = await AuthService(session).update_user(user.id, UpdateUserRequest(role_id=role.id))
    return role, user


class TestPermissionCatalogue:
    async def test_create_permission(self, session: AsyncSession):
        service = PermissionService(session)
        permission = await service.create_permission(PermissionCreate(resource="reports", action="export"))
        assert permission.name == "reports:export"

        with pytest.raises(ConflictError) as exc_info:
            await service.create_permission(PermissionCreate(resource="reports", action="export"))
        assert exc_info.value.message == "Permission with this name already exists"

    async def test_get_or_create_is_idempotent(self, session: AsyncSession):
        service = PermissionService(session)
        first = await service.get_or_create_permission("rooms", "read")
        second = await service.get_or_create_permission("rooms", "read")
        assert first.id == second.id
        assert first.description == "Permission to read rooms"

    async def test_unknown_permission(self, session: AsyncSession):
        with pytest.raises(NotFoundError) as exc_info:
            await PermissionService(session).get_permission_by_id(404)
        assert exc_info.value.message == "Permission not found"


class TestDirectGrants:
    async def test_grant_and_revoke(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        permission = await service.get_or_create_permission("rooms", "read")

        await service.grant_permission(approved_user.id, permission.id, admin.id)
        assert await service.has_permission(approved_user.id, "rooms:read")
        assert [u.id for u in await service.get_users_with_permission(permission.id)] == [approved_user.id]

        await service.revoke_permission(approved_user.id, permission.id)
        assert not await service.has_permission(approved_user.id, "rooms:read")

    async def test_duplicate_grant(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        permission = await service.get_or_create_permission("rooms", "read")
        await service.grant_permission(approved_user.id, permission.id, admin.id)

        with pytest.raises(ConflictError) as exc_info:
            await service.grant_permission(approved_user.id, permission.id, admin.id)
        assert exc_info.value.message == "Permission already granted to this user"

    async def test_regrant_after_revoke(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        permission = await service.get_or_create_permission("rooms", "read")
        await service.grant_permission(approved_user.id, permission.id, admin.id)
        await service.revoke_permission(approved_user.id, permission.id)

        grant = await service.grant_permission(approved_user.id, permission.id, admin.id)
        assert grant.is_active

    async def test_revoke_missing_grant(self, session: AsyncSession, approved_user):
        service = PermissionService(session)
        permission = await service.get_or_create_permission("rooms", "read")
        with pytest.raises(NotFoundError) as exc_info:
            await service.revoke_permission(approved_user.id, permission.id)
        assert exc_info.value.message == "User permission not found"

    async def test_only_approved_users_receive_permissions(self, session: AsyncSession, admin):
        service = PermissionService(session)
        newcomer = await AuthService(session).create_user("new@school.test", "Temp1234!")
        permission = await service.get_or_create_permission("rooms", "read")

        with pytest.raises(ValidationError) as exc_info:
            await service.grant_permission(newcomer.id, permission.id, admin.id)
        assert exc_info.value.message == (
            'Cannot grant permissions to user with status "CREATED". Only APPROVED users can receive permissions.'
        )


class TestPageGrants:
    async def test_page_grant_includes_api_permissions(self, session: AsyncSession, admin, approved_user):
        result = await PermissionService(session).grant_page_permission(approved_user.id, "tracks", "view", admin.id)

        assert result.page_permission.name == "page:tracks:view"
        assert [p.name for p in result.api_permissions] == ["tracks:read"]
        assert result.message == "Page permission page:tracks:view granted"

    async def test_edit_grant_includes_view_apis(self, session: AsyncSession, admin, approved_user):
        result = await PermissionService(session).grant_page_permission(approved_user.id, "tracks", "edit", admin.id)
        assert [p.name for p in result.api_permissions] == ["tracks:read", "tracks:create", "tracks:update", "tracks:delete"]

    async def test_duplicate_page_grant(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        await service.grant_page_permission(approved_user.id, "tracks", "view", admin.id)
        with pytest.raises(ConflictError):
            await service.grant_page_permission(approved_user.id, "tracks", "view", admin.id)

    async def test_unknown_page(self, session: AsyncSession, admin, approved_user):
        with pytest.raises(NotFoundError) as exc_info:
            await PermissionService(session).grant_page_permission(approved_user.id, "reports", "view", admin.id)
        assert exc_info.value.message == 'Page "reports" not found'

    async def test_edit_on_view_only_page(self, session: AsyncSession, admin, approved_user):
        with pytest.raises(ValidationError) as exc_info:
            await PermissionService(session).grant_page_permission(approved_user.id, "dashboard", "edit", admin.id)
        assert exc_info.value.message == 'Page "dashboard" does not support edit mode'

    async def test_revoke_keeps_apis_other_pages_need(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        await service.grant_page_permission(approved_user.id, "tracks", "view", admin.id)
        await service.grant_page_permission(approved_user.id, "dashboard", "view", admin.id)

        result = await service.revoke_page_permission(approved_user.id, "tracks", "view")

        assert result.api_permissions == []
        assert await service.has_permission(approved_user.id, "tracks:read")
        assert not await service.has_permission(approved_user.id, "page:tracks:view")

    async def test_revoke_edit_keeps_view_apis_of_view_grant(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        await service.grant_page_permission(approved_user.id, "tracks", "view", admin.id)
        await service.grant_page_permission(approved_user.id, "tracks", "edit", admin.id)

        result = await service.revoke_page_permission(approved_user.id, "tracks", "edit")

        assert [p.name for p in result.api_permissions] == ["tracks:create", "tracks:update", "tracks:delete"]
        assert await service.has_permission(approved_user.id, "tracks:read")

    async def test_revoke_page_never_granted(self, session: AsyncSession, admin, approved_user):
        with pytest.raises(NotFoundError) as exc_info:
            await PermissionService(session).revoke_page_permission(approved_user.id, "tracks", "view")
        assert exc_info.value.message == 'Page permission "page:tracks:view" not found'

    async def test_page_access_map(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        await service.grant_page_permission(approved_user.id, "classes", "edit", admin.id)

        access = await service.get_user_page_permissions(approved_user.id)

        assert access["classes"].view and access["classes"].edit
        assert not access["students"].view
        assert set(access) == {
            "dashboard",
            "students",
            "resources",
            "settings",
            "tracks",
            "cohorts",
            "classes",
            "student-exits",
        }

    async def test_admin_sees_every_page(self, session: AsyncSession, admin):
        access = await PermissionService(session).get_user_page_permissions(admin.id)
        assert access["students"].edit
        assert access["dashboard"].view and not access["dashboard"].edit

    async def test_bulk_grant_collects_errors(self, session: AsyncSession, admin, approved_user):
        result = await PermissionService(session).bulk_grant_page_permissions(
            approved_user.id,
            [
                PagePermissionRequest(page="tracks", action=PageAction.view),
                PagePermissionRequest(page="settings", action=PageAction.edit),
            ],
            admin.id,
        )
        assert [g.page_permission.name for g in result.granted] == ["page:tracks:view"]
        assert result.errors == [
            {"page": "settings", "action": "edit", "error": 'Page "settings" does not support edit mode'}
        ]


class TestRoleGrants:
    async def test_role_page_grant_reaches_holders(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        role, holder = await _role_holder(session, approved_user)

        await service.grant_page_permission_to_role(role.id, "cohorts", "view", admin.id)

        assert await service.has_permission(holder.id, "cohorts:read")
        assert (await service.get_role_page_permissions(role.id))["cohorts"].view
        assert (await service.get_user_page_permissions(holder.id))["cohorts"].view

    async def test_role_revoke(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        role, holder = await _role_holder(session, approved_user)
        await service.grant_page_permission_to_role(role.id, "cohorts", "view", admin.id)

        result = await service.revoke_page_permission_from_role(role.id, "cohorts", "view")

        assert [p.name for p in result.api_permissions] == ["cohorts:read"]
        assert not await service.has_permission(holder.id, "cohorts:read")

    async def test_duplicate_role_grant(self, session: AsyncSession, admin):
        service = PermissionService(session)
        role = await RoleService(session).create(RoleCreate(name="Teacher"))
        permission = await service.get_or_create_permission("rooms", "read")
        await service.grant_role_permission(role.id, permission.id, admin.id)

        with pytest.raises(ConflictError) as exc_info:
            await service.grant_role_permission(role.id, permission.id, admin.id)
        assert exc_info.value.message == "Permission already granted to this role"

    async def test_unknown_role(self, session: AsyncSession, admin):
        with pytest.raises(NotFoundError) as exc_info:
            await PermissionService(session).grant_page_permission_to_role(77, "tracks", "view", admin.id)
        assert exc_info.value.message == "Role not found"

    async def test_details_list_both_sources(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        role, holder = await _role_holder(session, approved_user)
        permission = await service.get_or_create_permission("rooms", "read")
        await service.grant_permission(holder.id, permission.id, admin.id)
        await service.grant_role_permission(role.id, permission.id, admin.id)

        details = await service.get_user_permissions_with_details(holder.id)

        assert [(d.name, d.source) for d in details] == [
            ("rooms:read", PermissionSource.role),
            ("rooms:read", PermissionSource.user),
        ]
        assert details[0].role_name == "Teacher"
        assert [p.name for p in await service.get_user_permissions(holder.id)] == ["rooms:read"]


class TestApiAccess:
    async def test_admin_may_call_anything(self, session: AsyncSession, admin):
        assert await PermissionService(session).check_api_access(admin, "DELETE", "/rooms/1")

    async def test_page_grant_opens_its_apis(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        await service.grant_page_permission(approved_user.id, "tracks", "view", admin.id)

        assert await service.check_api_access(approved_user, "GET", "/tracks/5")
        assert not await service.check_api_access(approved_user, "POST", "/tracks")

    async def test_inferred_permission(self, session: AsyncSession, admin, approved_user):
        service = PermissionService(session)
        permission = await service.get_or_create_permission("rooms", "create")
        await service.grant_permission(approved_user.id, permission.id, admin.id)

        assert await service.check_api_access(approved_user, "POST", "/rooms")
        assert not await service.check_api_access(approved_user, "DELETE", "/rooms/3")

    async def test_no_grants(self, session: AsyncSession, approved_user):
        assert not await PermissionService(session).check_api_access(approved_user, "GET", "/students")
