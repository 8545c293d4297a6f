"""
Authentication and account administration endpoints.

Login issues a bearer token. Administrators create accounts with a temporary
password; the owner completes the profile and the account waits for an
administrator's approval.
"""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import get_session
from schooladmin.core.logging_config import get_logger
from schooladmin.core.models.io.auth import (
    CompleteProfileRequest,
    CreateUserRequest,
    LoginRequest,
    LoginResponse,
    ResetPasswordRequest,
    SoldierDetail,
    SoldierRead,
    UpdateUserRequest,
)
from schooladmin.core.models.io.common import MessageResponse
from schooladmin.core.security import TokenSigner
from schooladmin.server.services.auth import AuthService
from schooladmin.server.services.deps import AdminOrFirstAccount, AdminUser, CurrentUser, get_token_signer

logger = get_logger(__name__)

router = APIRouter(tags=["auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log In",
    description="Exchange email and password for a session token.",
    response_description="The session token and the logged-in user.",
    responses={
        200: {"description": "Login succeeded"},
        401: {"description": "Wrong credentials, or the account is pending or rejected"},
    },
)
async def login(
    credentials: LoginRequest,
    request: Request,
    signer: TokenSigner = Depends(get_token_signer),
    session: AsyncSession = Depends(get_session),
) -> LoginResponse:
    """
    Log in.

    Accounts waiting for approval cannot log in. Rejected accounts may log in
    only to fix their profile.

    - **email**: Account email.
    - **password**: Account password.
    """
    service = AuthService(session)
    token, user = await service.login(credentials.email, credentials.password, signer, request=request)
    return LoginResponse(token=token, user=await service.to_detail(user))


@router.get(
    "/me",
    response_model=SoldierDetail,
    summary="Current User",
    description="Return the logged-in user with department and role.",
    response_description="The current user.",
)
async def me(user: CurrentUser, session: AsyncSession = Depends(get_session)) -> SoldierDetail:
    return await AuthService(session).to_detail(user)


@router.post(
    "/complete-profile",
    response_model=SoldierDetail,
    summary="Complete Profile",
    description="Fill in personal details and a new password; the account then waits for approval.",
    response_description="The updated user.",
    responses={
        200: {"description": "Profile completed"},
        400: {"description": "Profile already completed or weak password"},
        404: {"description": "Department or role not found"},
        409: {"description": "Personal number already in use"},
    },
)
async def complete_profile(
    data: CompleteProfileRequest,
    user: CurrentUser,
    session: AsyncSession = Depends(get_session),
) -> SoldierDetail:
    """
    Complete the profile of the current account.

    - **personal_number**: Unique personal number.
    - **name**: Full name.
    - **type**: CONSCRIPT or PERMANENT.
    - **department_id**: Department the user belongs to.
    - **role_id**: Optional role.
    - **is_commander**: Whether the user commands the department.
    - **new_password**: Replaces the temporary password.
    """
    service = AuthService(session)
    user = await service.complete_profile(user, data)
    return await service.to_detail(user)


@router.post(
    "/create-user",
    response_model=SoldierRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create User",
    description=(
        "Create an account with a temporary password. The first account ever becomes the administrator "
        "and can be created without a token while the database has no accounts."
    ),
    response_description="The created account.",
    responses={
        201: {"description": "Account created"},
        409: {"description": "Email already registered"},
    },
)
async def create_user(
    data: CreateUserRequest,
    admin: AdminOrFirstAccount,
    session: AsyncSession = Depends(get_session),
) -> SoldierRead:
    user = await AuthService(session).create_user(data.email, data.temporary_password)
    if admin is not None:
        logger.info(f"Administrator {admin.email} created account {user.email}")
    return SoldierRead.model_validate(user)


@router.get(
    "/created",
    response_model=List[SoldierRead],
    summary="List Created Users",
    description="Accounts that still have to complete their profile, oldest first.",
)
async def get_created_users(admin: AdminUser, session: AsyncSession = Depends(get_session)) -> List[SoldierRead]:
    return [SoldierRead.model_validate(u) for u in await AuthService(session).get_created_users()]


@router.get(
    "/pending",
    response_model=List[SoldierRead],
    summary="List Pending Users",
    description="Accounts waiting for approval, oldest first.",
)
async def get_pending_users(admin: AdminUser, session: AsyncSession = Depends(get_session)) -> List[SoldierRead]:
    return [SoldierRead.model_validate(u) for u in await AuthService(session).get_pending_users()]


@router.post(
    "/{user_id}/approve",
    response_model=SoldierRead,
    summary="Approve User",
    responses={400: {"description": "User is not pending approval"}, 404: {"description": "User not found"}},
)
async def approve_user(user_id: int, admin: AdminUser, session: AsyncSession = Depends(get_session)) -> SoldierRead:
    return SoldierRead.model_validate(await AuthService(session).approve_user(user_id))


@router.post(
    "/{user_id}/reject",
    response_model=SoldierRead,
    summary="Reject User",
    description="Reject a pending account; the owner may fix the profile and ask again.",
    responses={400: {"description": "User is not pending approval"}, 404: {"description": "User not found"}},
)
async def reject_user(user_id: int, admin: AdminUser, session: AsyncSession = Depends(get_session)) -> SoldierRead:
    return SoldierRead.model_validate(await AuthService(session).reject_user(user_id))


@router.post(
    "/{user_id}/reset-password",
    response_model=SoldierRead,
    summary="Reset Password",
    description="Set a new temporary password; the user must complete the profile again.",
    responses={400: {"description": "Weak password"}, 404: {"description": "User not found"}},
)
async def reset_password(
    user_id: int,
    data: ResetPasswordRequest,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> SoldierRead:
    return SoldierRead.model_validate(await AuthService(session).reset_password(user_id, data.new_password))


@router.put(
    "/{user_id}",
    response_model=SoldierDetail,
    summary="Update User",
    responses={
        404: {"description": "User, department or role not found"},
        409: {"description": "Email or personal number already in use"},
    },
)
async def update_user(
    user_id: int,
    data: UpdateUserRequest,
    admin: AdminUser,
    session: AsyncSession = Depends(get_session),
) -> SoldierDetail:
    service = AuthService(session)
    return await service.to_detail(await service.update_user(user_id, data))


@router.delete(
    "/{user_id}",
    response_model=MessageResponse,
    summary="Delete User",
    responses={
        400: {"description": "Deleting yourself or the last administrator"},
        404: {"description": "User not found"},
    },
)
async def delete_user(user_id: int, admin: AdminUser, session: AsyncSession = Depends(get_session)) -> MessageResponse:
    await AuthService(session).delete_user(user_id, admin)
    return MessageResponse(message="User deleted successfully")
