"""
Audit log entity.

One row per security-relevant event: logins, denied requests, permission
changes and Excel imports.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Text
from sqlmodel import Field

from schooladmin.core.models.domain.enums import AuditStatus

from ..base import Base, utc_now


class AuditLog(Base, table=True):
    """Append-only audit trail entry.

    Table: audit_logs
    """

    __tablename__ = "audit_logs"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(default=None, index=True)
    user_email: Optional[str] = Field(default=None, max_length=255)
    action: str = Field(max_length=64, index=True)
    resource: str = Field(max_length=64)
    resource_id: Optional[str] = Field(default=None, max_length=64)
    details: Optional[str] = Field(default=None, sa_type=Text, description="JSON encoded context")
    ip_address: Optional[str] = Field(default=None, max_length=64)
    user_agent: Optional[str] = Field(default=None, max_length=512)
    status: AuditStatus = Field(default=AuditStatus.SUCCESS)
    error_message: Optional[str] = Field(default=None, sa_type=Text)

    created_at: datetime = Field(default_factory=utc_now, index=True)

    def __repr__(self) -> str:
        return f"AuditLog(id={self.id}, action={self.action}, status={self.status})"
