"""
Permission I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from schooladmin.core.models.domain.enums import PageAction, PermissionSource


class PermissionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    resource: str
    action: str
    description: Optional[str] = None
    created_at: datetime


class PermissionCreate(BaseModel):
    resource: str = Field(min_length=1, max_length=128)
    action: str = Field(min_length=1, max_length=128)
    description: Optional[str] = Field(default=None, max_length=512)


class PermissionWithSource(PermissionRead):
    """Effective permission and where it comes from."""

    source: PermissionSource
    role_id: Optional[int] = None
    role_name: Optional[str] = None


class PermissionGrantRequest(BaseModel):
    permission_id: int


class PagePermissionRequest(BaseModel):
    page: str = Field(min_length=1)
    action: PageAction


class BulkPagePermissionRequest(BaseModel):
    permissions: List[PagePermissionRequest] = Field(min_length=1)


class PageAccess(BaseModel):
    view: bool = False
    edit: bool = False


PagePermissionsMap = Dict[str, PageAccess]


class ApiPermissionRead(BaseModel):
    resource: str
    action: str
    method: str
    path: str


class PageRead(BaseModel):
    """Registry entry of a page."""

    page: str
    display_name: str
    display_name_hebrew: str
    description: str
    description_hebrew: str
    category: str
    category_hebrew: str
    supports_edit_mode: bool
    view_apis: List[ApiPermissionRead]
    edit_apis: List[ApiPermissionRead]


class CategoryRead(BaseModel):
    category: str
    category_hebrew: str
    pages: List[PageRead]


class PagesResponse(BaseModel):
    pages: List[PageRead]
    categories: List[CategoryRead]


class GrantResult(BaseModel):
    """Outcome of a page grant or revoke."""

    message: str
    page_permission: PermissionRead
    api_permissions: List[PermissionRead] = Field(default_factory=list)


class BulkGrantResult(BaseModel):
    granted: List[GrantResult] = Field(default_factory=list)
    errors: List[Dict[str, str]] = Field(default_factory=list)
