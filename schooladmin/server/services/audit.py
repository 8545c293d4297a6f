"""
Audit trail service.

Writes ``AuditLog`` rows and mirrors each entry to the application log and to
Logfire.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from schooladmin.core.database.entities.audit_logs import AuditLog
from schooladmin.core.database.entities.soldiers import Soldier
from schooladmin.core.database.repositories.audit_logs import AuditLogRepository
from schooladmin.core.models.domain.enums import AuditStatus
from schooladmin.core.monitoring import log_audit_event

logger = logging.getLogger(__name__)


class AuditService:
    """Service for recording security-relevant events."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = AuditLogRepository(session)

    async def write(
        self,
        action: str,
        resource: str,
        *,
        user: Optional[Soldier] = None,
        user_email: Optional[str] = None,
        resource_id: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        status: AuditStatus = AuditStatus.SUCCESS,
        error_message: Optional[str] = None,
        request: Optional[Request] = None,
    ) -> AuditLog:
        """
        Persist an audit entry.

        Args:
            action: What happened, e.g. LOGIN_SUCCESS or PERMISSION_DENIED
            resource: The resource the action concerns
            user: Acting user, when authenticated
            user_email: Email to record when there is no user (failed logins)
            resource_id: Identifier of the affected record
            details: JSON-serializable context
            status: SUCCESS, FAILURE or ERROR
            error_message: Error text for failures
            request: Source request, for client address and user agent

        Returns:
            The stored AuditLog
        """
        entry = AuditLog(
            user_id=user.id if user else None,
            user_email=user.email if user else user_email,
            action=action,
            resource=resource,
            resource_id=str(resource_id) if resource_id is not None else None,
            details=json.dumps(details, ensure_ascii=False, default=str) if details else None,
            ip_address=request.client.host if request is not None and request.client else None,
            user_agent=request.headers.get("user-agent") if request is not None else None,
            status=status,
            error_message=error_message,
        )
        entry = await self.repo.create(entry)

        log = logger.info if status == AuditStatus.SUCCESS else logger.warning
        log(f"Audit {action} on {resource} by {entry.user_email or 'anonymous'}: {status.value}")
        log_audit_event(
            action=action,
            resource=resource,
            status=status.value,
            user_email=entry.user_email,
            resource_id=entry.resource_id,
        )
        return entry
