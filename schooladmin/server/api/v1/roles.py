"""
Role endpoints.

Roles group users for permission purposes: a grant made to a role applies to
every user holding it.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import get_session
from schooladmin.core.logging_config import get_logger
from schooladmin.core.models.io.common import MessageResponse
from schooladmin.core.models.io.organization import RoleCreate, RoleRead, RoleUpdate
from schooladmin.core.models.io.permissions import PermissionGrantRequest, PermissionRead
from schooladmin.server.services.deps import AdminUser, CurrentUser, PermittedUser
from schooladmin.server.services.organization import RoleService
from schooladmin.server.services.permissions import PermissionService

logger = get_logger(__name__)

router = APIRouter(tags=["roles"])


@router.get(
    "",
    response_model=List[RoleRead],
    summary="List Roles",
    description="All roles, ordered by name.",
)
async def list_roles(user: CurrentUser, session: AsyncSession = Depends(get_session)) -> List[RoleRead]:
    return [RoleRead.model_validate(r) for r in await RoleService(session).get_all()]


@router.get(
    "/{role_id}",
    response_model=RoleRead,
    summary="Get Role",
    responses={404: {"description": "Role not found"}},
)
async def get_role(role_id: int, user: PermittedUser, session: AsyncSession = Depends(get_session)) -> RoleRead:
    return RoleRead.model_validate(await RoleService(session).get_by_id(role_id))


@router.post(
    "",
    response_model=RoleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Role",
    responses={409: {"description": "Role with this name already exists"}},
)
async def create_role(data: RoleCreate, admin: AdminUser, session: AsyncSession = Depends(get_session)) -> RoleRead:
    return RoleRead.model_validate(await RoleService(session).create(data))


@router.put(
    "/{role_id}",
    response_model=RoleRead,
    summary="Update Role",
    responses={404: {"description": "Role not found"}, 409: {"description": "Name already taken"}},
)
async def update_role(
    role_id: int, data: RoleUpdate, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> RoleRead:
    return RoleRead.model_validate(await RoleService(session).update(role_id, data))


@router.delete(
    "/{role_id}",
    response_model=MessageResponse,
    summary="Delete Role",
    description="Delete a role. Its holders keep their accounts without a role and its grants are removed.",
    responses={404: {"description": "Role not found"}},
)
async def delete_role(role_id: int, admin: AdminUser, session: AsyncSession = Depends(get_session)) -> MessageResponse:
    await RoleService(session).delete(role_id)
    return MessageResponse(message="Role deleted successfully")


@router.get(
    "/{role_id}/permissions",
    response_model=List[PermissionRead],
    summary="List Role Permissions",
    description="Permissions actively granted to the role.",
    responses={404: {"description": "Role not found"}},
)
async def get_role_permissions(
    role_id: int, admin: AdminUser, session: AsyncSession = Depends(get_session)
) -> List[PermissionRead]:
    return [PermissionRead.model_validate(p) for p in await PermissionService(session).get_role_permissions(role_id)]


@router.post(
    "/{role_id}/permissions/grant",
    response_model=MessageResponse,
    summary="Grant Permission To Role",
    responses={
        404: {"description": "Role or permission not found"},
        409: {"description": "Permission already granted to this role"},
    },
)
async def grant_role_permission(
    role_id: int,
    data: PermissionGrantRequest,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await PermissionService(session).grant_role_permission(role_id, data.permission_id, granted_by=admin.id)
    return MessageResponse(message="Permission granted successfully")


@router.post(
    "/{role_id}/permissions/revoke",
    response_model=MessageResponse,
    summary="Revoke Permission From Role",
    responses={404: {"description": "Role permission not found"}},
)
async def revoke_role_permission(
    role_id: int,
    data: PermissionGrantRequest,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    await PermissionService(session).revoke_role_permission(role_id, data.permission_id)
    logger.info(f"Administrator {admin.email} revoked permission {data.permission_id} from role {role_id}")
    return MessageResponse(message="Permission revoked successfully")
