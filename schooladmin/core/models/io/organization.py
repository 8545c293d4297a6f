"""
Organization I/O models: departments, roles and rooms.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import NameStr


class DepartmentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime
    updated_at: datetime


class DepartmentWithCount(DepartmentRead):
    member_count: int = Field(default=0, description="Number of soldiers in the department")


class DepartmentCreate(BaseModel):
    name: NameStr


class DepartmentUpdate(BaseModel):
    name: Optional[NameStr] = None


class RoleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    created_at: datetime
    updated_at: datetime


class RoleCreate(BaseModel):
    name: NameStr


class RoleUpdate(BaseModel):
    name: Optional[NameStr] = None


class RoomRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    capacity: int
    created_at: datetime
    updated_at: datetime


class RoomCreate(BaseModel):
    name: NameStr
    capacity: int = Field(ge=0, description="Number of seats")


class RoomUpdate(BaseModel):
    name: Optional[NameStr] = None
    capacity: Optional[int] = Field(default=None, ge=0)
