"""
Account service.

Covers the life of a staff account: an administrator creates it with an email
and a temporary password, the owner logs in and completes the profile, and an
administrator approves or rejects it. The very first account is the bootstrap
administrator and skips the approval flow.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database import async_session_maker
from schooladmin.core.database.entities.soldiers import Soldier
from schooladmin.core.database.repositories.organization import DepartmentRepository, RoleRepository
from schooladmin.core.database.repositories.permissions import UserPermissionRepository
from schooladmin.core.database.repositories.soldiers import SoldierRepository
from schooladmin.core.errors import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from schooladmin.core.models.domain.enums import ApprovalStatus, AuditStatus
from schooladmin.core.models.io.auth import (
    CompleteProfileRequest,
    SoldierCreate,
    SoldierDetail,
    SoldierRead,
    UpdateUserRequest,
)
from schooladmin.core.models.io.organization import DepartmentRead, RoleRead
from schooladmin.core.security import TokenSigner, hash_password, verify_password

from .audit import AuditService

logger = logging.getLogger(__name__)


class AuthService:
    """Service for account creation, login and approval."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.soldiers = SoldierRepository(session)
        self.departments = DepartmentRepository(session)
        self.roles = RoleRepository(session)
        self.audit = AuditService(session)

    async def get_user(self, user_id: int) -> Soldier:
        user = await self.soldiers.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    async def to_detail(self, user: Soldier) -> SoldierDetail:
        """Account with its department and role attached."""
        department = await self.departments.get_by_id(user.department_id) if user.department_id else None
        role = await self.roles.get_by_id(user.role_id) if user.role_id else None
        return SoldierDetail(
            **SoldierRead.model_validate(user).model_dump(),
            department=DepartmentRead.model_validate(department) if department else None,
            role=RoleRead.model_validate(role) if role else None,
        )

    async def _check_references(self, department_id: Optional[int], role_id: Optional[int]) -> None:
        if department_id is not None and await self.departments.get_by_id(department_id) is None:
            raise NotFoundError("Department")
        if role_id is not None and await self.roles.get_by_id(role_id) is None:
            raise NotFoundError("Role")

    async def _check_unique(
        self, email: Optional[str], personal_number: Optional[str], exclude_id: Optional[int] = None
    ) -> None:
        if email is not None:
            existing = await self.soldiers.get_by_email(email)
            if existing is not None and existing.id != exclude_id:
                raise ConflictError("Email already registered")
        if personal_number is not None:
            existing = await self.soldiers.get_by_personal_number(personal_number)
            if existing is not None and existing.id != exclude_id:
                raise ConflictError("Personal number already in use")

    # =====================================================================
    # Account lifecycle
    # =====================================================================

    async def create_user(self, email: str, temporary_password: str) -> Soldier:
        """
        Create an account that still needs its profile.

        The first account in an empty database becomes an approved administrator
        with nothing left to complete.
        """
        await self._check_unique(email, None)
        bootstrap = await self.soldiers.count() == 0

        user = Soldier(
            email=email,
            password=hash_password(temporary_password),
            is_admin=bootstrap,
            approval_status=ApprovalStatus.APPROVED if bootstrap else ApprovalStatus.CREATED,
            needs_profile_completion=not bootstrap,
        )
        user = await self.soldiers.create(user)
        if bootstrap:
            logger.info(f"Created bootstrap administrator {email}")
        else:
            logger.info(f"Created user {email} awaiting profile completion")
        return user

    async def ensure_initial_admin(self, email: str, password: str) -> Optional[Soldier]:
        """Create the bootstrap administrator when the database has no accounts; otherwise do nothing."""
        if await self.soldiers.count() > 0:
            return None
        return await self.create_user(email, password)

    async def create_soldier(self, data: SoldierCreate) -> Soldier:
        """Create a complete, approved account in one step."""
        await self._check_unique(data.email, data.personal_number)
        await self._check_references(data.department_id, data.role_id)
        user = Soldier(
            **data.model_dump(exclude={"password"}),
            password=hash_password(data.password),
            approval_status=ApprovalStatus.APPROVED,
            needs_profile_completion=False,
        )
        user = await self.soldiers.create(user)
        logger.info(f"Created soldier {user.email} (id={user.id})")
        return user

    async def login(
        self, email: str, password: str, signer: TokenSigner, request: Optional[Request] = None
    ) -> Tuple[str, Soldier]:
        """
        Check credentials and issue a session token.

        Raises:
            UnauthorizedError: wrong credentials, pending approval, or rejected
                without a pending profile fix
        """
        user = await self.soldiers.get_by_email(email)
        if user is None or not verify_password(user.password, password):
            await self.audit.write(
                "LOGIN_FAILED",
                "auth",
                user_email=email,
                status=AuditStatus.FAILURE,
                error_message="Invalid email or password",
                request=request,
            )
            raise UnauthorizedError("Invalid email or password")

        reason = None
        if user.approval_status == ApprovalStatus.PENDING:
            reason = "Your account is pending admin approval"
        elif user.approval_status == ApprovalStatus.REJECTED and not user.needs_profile_completion:
            reason = "Your account has been rejected"
        if reason is not None:
            await self.audit.write(
                "LOGIN_FAILED", "auth", user=user, status=AuditStatus.FAILURE, error_message=reason, request=request
            )
            raise UnauthorizedError(reason)

        token = signer.issue(user.id)
        await self.audit.write("LOGIN_SUCCESS", "auth", user=user, resource_id=user.id, request=request)
        return token, user

    async def complete_profile(self, user: Soldier, data: CompleteProfileRequest) -> Soldier:
        if not user.needs_profile_completion and user.approval_status != ApprovalStatus.REJECTED:
            raise ValidationError("Profile already completed")
        await self._check_unique(None, data.personal_number, exclude_id=user.id)
        await self._check_references(data.department_id, data.role_id)

        user.personal_number = data.personal_number
        user.name = data.name
        user.type = data.type
        user.department_id = data.department_id
        user.role_id = data.role_id
        user.is_commander = data.is_commander
        user.password = hash_password(data.new_password)
        user.needs_profile_completion = False
        if user.approval_status in (ApprovalStatus.CREATED, ApprovalStatus.REJECTED):
            user.approval_status = ApprovalStatus.PENDING
        user = await self.soldiers.update(user)
        logger.info(f"User {user.email} completed the profile, status {user.approval_status.value}")
        return user

    async def get_all_users(self) -> List[Soldier]:
        return await self.soldiers.list()

    async def get_created_users(self) -> List[Soldier]:
        return await self.soldiers.list_by_status(ApprovalStatus.CREATED)

    async def get_pending_users(self) -> List[Soldier]:
        return await self.soldiers.list_by_status(ApprovalStatus.PENDING)

    async def _decide(self, user_id: int, status: ApprovalStatus) -> Soldier:
        user = await self.get_user(user_id)
        if user.approval_status != ApprovalStatus.PENDING:
            raise ValidationError(
                f"User is not pending approval. Current status: {user.approval_status.value}"
            )
        user.approval_status = status
        if status == ApprovalStatus.REJECTED:
            user.needs_profile_completion = True
        user = await self.soldiers.update(user)
        logger.info(f"User {user.email} {status.value.lower()}")
        return user

    async def approve_user(self, user_id: int) -> Soldier:
        return await self._decide(user_id, ApprovalStatus.APPROVED)

    async def reject_user(self, user_id: int) -> Soldier:
        return await self._decide(user_id, ApprovalStatus.REJECTED)

    async def reset_password(self, user_id: int, new_password: str) -> Soldier:
        user = await self.get_user(user_id)
        user.password = hash_password(new_password)
        user.needs_profile_completion = True
        user = await self.soldiers.update(user)
        logger.info(f"Password reset for {user.email}")
        return user

    async def update_user(self, user_id: int, data: UpdateUserRequest) -> Soldier:
        user = await self.get_user(user_id)
        changes = data.model_dump(exclude_unset=True)
        await self._check_unique(changes.get("email"), changes.get("personal_number"), exclude_id=user.id)
        await self._check_references(changes.get("department_id"), changes.get("role_id"))
        for field, value in changes.items():
            setattr(user, field, value)
        return await self.soldiers.update(user)

    async def delete_user(self, user_id: int, current_user: Soldier) -> None:
        user = await self.get_user(user_id)
        if user.id == current_user.id:
            raise ValidationError("You cannot delete your own account")
        if user.is_admin and await self.soldiers.count_admins() <= 1:
            raise ValidationError("Cannot delete the last admin user")
        await UserPermissionRepository(self.session).delete_for_user(user.id)
        await self.soldiers.delete(user.id)
        logger.info(f"Deleted user {user.email} (by {current_user.email})")


async def seed_initial_admin(email: str, password: str) -> Optional[Soldier]:
    """Startup hook: make sure a fresh deployment has an administrator to log in with."""
    async with async_session_maker() as session:
        user = await AuthService(session).ensure_initial_admin(email, password)
    if user is None:
        logger.debug("Accounts already exist, skipping the initial administrator")
    return user
