"""
Excel upload I/O models.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class RowConflictDetail(BaseModel):
    """One problem found in a sheet row."""

    type: str = Field(description="Conflict code, e.g. INVALID_ID_NUMBER or TRACK_NOT_FOUND")
    message: str
    message_hebrew: str
    suggestions: Optional[List[str]] = None


class RowConflict(BaseModel):
    row: int = Field(description="Spreadsheet row number (the header is row 1)")
    id_number: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    conflicts: List[RowConflictDetail]


class UploadValidationResponse(BaseModel):
    total_rows: int
    valid_rows: int
    conflicts: List[RowConflict]


class UploadRowError(BaseModel):
    row: int
    error: str


class UploadSummary(BaseModel):
    total_rows: int
    created: int
    updated: int
    errors: int


class UploadResponse(BaseModel):
    message: str
    summary: UploadSummary
    errors: List[UploadRowError]
