"""
Permission endpoints.

Every user may read their own effective permissions and the page catalogue;
granting and revoking is reserved to administrators. Page grants carry the
API permissions the page needs and are written to the audit trail.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import get_session
from schooladmin.core.database.entities.soldiers import Soldier
from schooladmin.core.logging_config import get_logger
from schooladmin.core.models.io.auth import SoldierRead
from schooladmin.core.models.io.common import MessageResponse
from schooladmin.core.models.io.permissions import (
    ApiPermissionRead,
    BulkGrantResult,
    BulkPagePermissionRequest,
    CategoryRead,
    GrantResult,
    PageAccess,
    PagePermissionRequest,
    PageRead,
    PagesResponse,
    PermissionCreate,
    PermissionGrantRequest,
    PermissionRead,
    PermissionWithSource,
)
from schooladmin.core.permissions import CATEGORIES, PageDefinition, get_all_pages, get_pages_by_category
from schooladmin.server.services.audit import AuditService
from schooladmin.server.services.deps import AdminUser, CurrentUser
from schooladmin.server.services.permissions import PermissionService

logger = get_logger(__name__)

router = APIRouter(tags=["permissions"])


def _page_read(definition: PageDefinition) -> PageRead:
    def apis(items) -> List[ApiPermissionRead]:
        return [ApiPermissionRead(resource=a.resource, action=a.action, method=a.method, path=a.path) for a in items]

    return PageRead(
        page=definition.page,
        display_name=definition.display_name,
        display_name_hebrew=definition.display_name_hebrew,
        description=definition.description,
        description_hebrew=definition.description_hebrew,
        category=definition.category,
        category_hebrew=CATEGORIES.get(definition.category, definition.category),
        supports_edit_mode=definition.supports_edit_mode,
        view_apis=apis(definition.view_apis),
        edit_apis=apis(definition.edit_apis),
    )


async def _audit_page_change(
    session: AsyncSession,
    action: str,
    admin: Soldier,
    request: Request,
    details: Dict[str, Any],
    resource_id: int,
) -> None:
    await AuditService(session).write(
        action, "permissions", user=admin, resource_id=resource_id, details=details, request=request
    )


# =====================================================================
# Own permissions and catalogue
# =====================================================================


@router.get(
    "/my-permissions",
    response_model=List[PermissionWithSource],
    summary="My Permissions",
    description="Effective permissions of the current user, each marked with where it comes from (admin, user or role).",
)
async def my_permissions(user: CurrentUser, session: AsyncSession = Depends(get_session)) -> List[PermissionWithSource]:
    return await PermissionService(session).get_user_permissions_with_details(user.id)


@router.get(
    "/my-page-permissions",
    response_model=Dict[str, PageAccess],
    summary="My Page Permissions",
    description="View and edit access of the current user for every page.",
)
async def my_page_permissions(user: CurrentUser, session: AsyncSession = Depends(get_session)) -> Dict[str, PageAccess]:
    return await PermissionService(session).get_user_page_permissions(user.id)


@router.get(
    "/pages",
    response_model=PagesResponse,
    summary="List Pages",
    description="The page catalogue with the API calls each page needs, also grouped by category.",
)
async def list_pages(user: CurrentUser) -> PagesResponse:
    grouped = get_pages_by_category()
    categories = [
        CategoryRead(category=key, category_hebrew=label, pages=[_page_read(p) for p in grouped.get(key, [])])
        for key, label in CATEGORIES.items()
    ]
    return PagesResponse(pages=[_page_read(p) for p in get_all_pages()], categories=categories)


@router.get(
    "",
    response_model=List[PermissionRead],
    summary="List Permissions",
    description="All known permissions ordered by resource and action.",
)
async def list_permissions(user: CurrentUser, session: AsyncSession = Depends(get_session)) -> List[PermissionRead]:
    return [PermissionRead.model_validate(p) for p in await PermissionService(session).get_all_permissions()]


@router.post(
    "",
    response_model=PermissionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Permission",
    responses={409: {"description": "Permission with this name already exists"}},
)
async def create_permission(
    data: PermissionCreate, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> PermissionRead:
    """
    Create an API permission.

    - **resource**: Resource part of the name, e.g. ``students``.
    - **action**: Action part of the name, e.g. ``read``.
    - **description**: Optional free text.
    """
    return PermissionRead.model_validate(await PermissionService(session).create_permission(data))


# =====================================================================
# User grants
# =====================================================================


@router.get(
    "/users/{user_id}",
    response_model=List[PermissionWithSource],
    summary="User Permissions",
    responses={404: {"description": "User not found"}},
)
async def get_user_permissions(
    user_id: int, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> List[PermissionWithSource]:
    return await PermissionService(session).get_user_permissions_with_details(user_id)


@router.get(
    "/users/{user_id}/page-permissions",
    response_model=Dict[str, PageAccess],
    summary="User Page Permissions",
    responses={404: {"description": "User not found"}},
)
async def get_user_page_permissions(
    user_id: int, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> Dict[str, PageAccess]:
    return await PermissionService(session).get_user_page_permissions(user_id)


@router.post(
    "/users/{user_id}/grant",
    response_model=MessageResponse,
    summary="Grant Permission",
    responses={
        400: {"description": "User is not approved"},
        404: {"description": "User or permission not found"},
        409: {"description": "Permission already granted to this user"},
    },
)
async def grant_permission(
    user_id: int,
    data: PermissionGrantRequest,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await PermissionService(session).grant_permission(user_id, data.permission_id, granted_by=admin.id)
    return MessageResponse(message="Permission granted successfully")


@router.post(
    "/users/{user_id}/revoke",
    response_model=MessageResponse,
    summary="Revoke Permission",
    responses={404: {"description": "User permission not found"}},
)
async def revoke_permission(
    user_id: int,
    data: PermissionGrantRequest,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await PermissionService(session).revoke_permission(user_id, data.permission_id)
    return MessageResponse(message="Permission revoked successfully")


@router.post(
    "/users/{user_id}/grant-page",
    response_model=GrantResult,
    summary="Grant Page Permission",
    description="Grant view or edit access to a page together with the API permissions the page needs.",
    responses={
        400: {"description": "User is not approved, or the page has no edit mode"},
        404: {"description": "User or page not found"},
        409: {"description": "Page permission already granted"},
    },
)
async def grant_page_permission(
    user_id: int,
    data: PagePermissionRequest,
    request: Request,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> GrantResult:
    """
    Grant a page permission to a user.

    - **page**: Page key from ``/permissions/pages``.
    - **action**: ``view`` or ``edit``; edit includes view.
    """
    result = await PermissionService(session).grant_page_permission(user_id, data.page, data.action.value, admin.id)
    await _audit_page_change(
        session, "PAGE_PERMISSION_GRANTED", admin, request, {"page": data.page, "action": data.action.value}, user_id
    )
    return result


@router.post(
    "/users/{user_id}/revoke-page",
    response_model=GrantResult,
    summary="Revoke Page Permission",
    description="Revoke page access and the API permissions no other granted page still needs.",
    responses={404: {"description": "User or page permission not found"}},
)
async def revoke_page_permission(
    user_id: int,
    data: PagePermissionRequest,
    request: Request,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> GrantResult:
    result = await PermissionService(session).revoke_page_permission(user_id, data.page, data.action.value)
    await _audit_page_change(
        session, "PAGE_PERMISSION_REVOKED", admin, request, {"page": data.page, "action": data.action.value}, user_id
    )
    return result


@router.post(
    "/users/{user_id}/bulk-grant-page",
    response_model=BulkGrantResult,
    summary="Bulk Grant Page Permissions",
    description="Grant several page permissions; failures are reported per item.",
)
async def bulk_grant_page_permissions(
    user_id: int,
    data: BulkPagePermissionRequest,
    request: Request,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> BulkGrantResult:
    result = await PermissionService(session).bulk_grant_page_permissions(user_id, data.permissions, admin.id)
    await _audit_page_change(
        session,
        "PAGE_PERMISSIONS_BULK_GRANTED",
        admin,
        request,
        {"granted": len(result.granted), "errors": len(result.errors)},
        user_id,
    )
    return result


# =====================================================================
# Role grants
# =====================================================================


@router.post(
    "/roles/{role_id}/grant-page",
    response_model=GrantResult,
    summary="Grant Page Permission To Role",
    responses={
        400: {"description": "The page has no edit mode"},
        404: {"description": "Role or page not found"},
        409: {"description": "Page permission already granted"},
    },
)
async def grant_page_permission_to_role(
    role_id: int,
    data: PagePermissionRequest,
    request: Request,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> GrantResult:
    result = await PermissionService(session).grant_page_permission_to_role(
        role_id, data.page, data.action.value, admin.id
    )
    await _audit_page_change(
        session,
        "ROLE_PAGE_PERMISSION_GRANTED",
        admin,
        request,
        {"page": data.page, "action": data.action.value},
        role_id,
    )
    return result


@router.post(
    "/roles/{role_id}/revoke-page",
    response_model=GrantResult,
    summary="Revoke Page Permission From Role",
    responses={404: {"description": "Role or page permission not found"}},
)
async def revoke_page_permission_from_role(
    role_id: int,
    data: PagePermissionRequest,
    request: Request,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> GrantResult:
    result = await PermissionService(session).revoke_page_permission_from_role(role_id, data.page, data.action.value)
    await _audit_page_change(
        session,
        "ROLE_PAGE_PERMISSION_REVOKED",
        admin,
        request,
        {"page": data.page, "action": data.action.value},
        role_id,
    )
    return result


@router.post(
    "/roles/{role_id}/bulk-grant-page",
    response_model=BulkGrantResult,
    summary="Bulk Grant Page Permissions To Role",
)
async def bulk_grant_page_permissions_to_role(
    role_id: int,
    data: BulkPagePermissionRequest,
    request: Request,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> BulkGrantResult:
    result = await PermissionService(session).bulk_grant_page_permissions_to_role(role_id, data.permissions, admin.id)
    await _audit_page_change(
        session,
        "ROLE_PAGE_PERMISSIONS_BULK_GRANTED",
        admin,
        request,
        {"granted": len(result.granted), "errors": len(result.errors)},
        role_id,
    )
    return result


@router.get(
    "/roles/{role_id}/page-permissions",
    response_model=Dict[str, PageAccess],
    summary="Role Page Permissions",
    responses={404: {"description": "Role not found"}},
)
async def get_role_page_permissions(
    role_id: int, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> Dict[str, PageAccess]:
    return await PermissionService(session).get_role_page_permissions(role_id)


# =====================================================================
# Single permission
# =====================================================================


@router.get(
    "/{permission_id}/users",
    response_model=List[SoldierRead],
    summary="Users With Permission",
    description="Users holding an active direct grant of the permission.",
    responses={404: {"description": "Permission not found"}},
)
async def get_users_with_permission(
    permission_id: int, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> List[SoldierRead]:
    users = await PermissionService(session).get_users_with_permission(permission_id)
    return [SoldierRead.model_validate(u) for u in users]


@router.get(
    "/{permission_id}",
    response_model=PermissionRead,
    summary="Get Permission",
    responses={404: {"description": "Permission not found"}},
)
async def get_permission(
    permission_id: int, user: CurrentUser, session: AsyncSession = Depends(get_session)
) -> PermissionRead:
    return PermissionRead.model_validate(await PermissionService(session).get_permission_by_id(permission_id))
