"""
Organization entity models.

Departments group staff members, roles describe what a member does (and carry
role-level permission grants), rooms are the bookable spaces of the unit.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base, utc_now


class Department(Base, table=True):
    """Organizational department.

    Table: departments
    """

    __tablename__ = "departments"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True, description="Department name")

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Department(id={self.id}, name={self.name})"


class Role(Base, table=True):
    """Staff role.

    Table: roles
    """

    __tablename__ = "roles"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True, description="Role name")

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Role(id={self.id}, name={self.name})"


class Room(Base, table=True):
    """Room with a seating capacity.

    Table: rooms
    """

    __tablename__ = "rooms"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, description="Room name")
    capacity: int = Field(default=0, description="Number of seats")

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now})

    def __repr__(self) -> str:
        return f"Room(id={self.id}, name={self.name}, capacity={self.capacity})"
