"""
Request Dependencies.

Authentication and authorization dependencies shared by the routers:
the bearer-token user lookup, the administrator gate and the per-request
API permission check.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import get_session
from schooladmin.core.database.entities.soldiers import Soldier
from schooladmin.core.database.repositories.soldiers import SoldierRepository
from schooladmin.core.errors import ForbiddenError, UnauthorizedError
from schooladmin.core.models.domain.enums import AuditStatus
from schooladmin.core.security import TokenSigner
from schooladmin.server.core import constant
from schooladmin.server.core.config import settings
from schooladmin.server.services.audit import AuditService
from schooladmin.server.services.permissions import PermissionService

bearer_scheme = HTTPBearer(auto_error=False)


def get_token_signer() -> TokenSigner:
    auth = settings.auth
    return TokenSigner(auth.session_secret, auth.session_max_age)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    signer: TokenSigner = Depends(get_token_signer),
    session: AsyncSession = Depends(get_session),
) -> Soldier:
    """Resolve the bearer token to a stored user."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authentication required")
    payload = signer.verify(credentials.credentials)
    user = await SoldierRepository(session).get_by_id(payload["user_id"])
    if user is None:
        raise UnauthorizedError("Invalid or expired token")
    return user


CurrentUser = Annotated[Soldier, Depends(get_current_user)]


async def require_admin(user: CurrentUser) -> Soldier:
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user


AdminUser = Annotated[Soldier, Depends(require_admin)]


def _api_path(request: Request) -> str:
    path = request.url.path
    if path.startswith(constant.API_V1_STR):
        path = path[len(constant.API_V1_STR) :]
    return path or "/"


async def require_api_permission(
    request: Request,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> Soldier:
    """Allow the request when the user's grants cover its method and path."""
    method = request.method
    path = _api_path(request)
    if await PermissionService(session).check_api_access(user, method, path):
        return user

    await AuditService(session).write(
        "PERMISSION_DENIED",
        path,
        user=user,
        details={"method": method, "path": path},
        status=AuditStatus.FAILURE,
        error_message="Insufficient permissions",
        request=request,
    )
    raise ForbiddenError(f"You do not have permission to access {method} {path}")


PermittedUser = Annotated[Soldier, Depends(require_api_permission)]


async def require_admin_or_first_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    signer: TokenSigner = Depends(get_token_signer),
    session: AsyncSession = Depends(get_session),
) -> Optional[Soldier]:
    """Admin gate that stays open while no account exists, so the first one can be created."""
    if await SoldierRepository(session).count() == 0:
        return None
    user = await get_current_user(credentials, signer, session)
    return await require_admin(user)


AdminOrFirstAccount = Annotated[Optional[Soldier], Depends(require_admin_or_first_account)]
