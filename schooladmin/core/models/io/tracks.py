"""
Track I/O models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TrackRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    is_active: bool = Field(description="True while at least one student studies in the track")
    student_count: int = 0
    created_at: datetime
    updated_at: datetime


class TrackCreate(BaseModel):
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, max_length=1024)

    @field_validator("name")
    @classmethod
    def _required_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("שם מגמה הוא שדה חובה")
        return value


class TrackUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1024)
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def _required_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip()
        if not value:
            raise ValueError("שם מגמה הוא שדה חובה")
        return value
