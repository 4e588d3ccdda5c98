"""
Note management schemas.

These schemas define the API contracts for note CRUD, optimistic-concurrency
updates, version history and keyword search.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..services.access_control import AccessLevel
from .common import PaginationResponse


class NoteCreate(BaseModel):
    """Note creation request schema."""

    title: str = Field(min_length=1, max_length=255, description="Note title")
    content: str = Field(default="", description="Note content")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("Title cannot be blank")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Meeting Notes - Q4 Planning",
                "content": "## Agenda\n\n1. Review Q3 performance\n2. Set Q4 objectives",
            }
        }
    )


class NoteUpdate(BaseModel):
    """
    Update request carrying the version the client last read.

    The update is applied only if the note is still at that version.
    """

    title: str = Field(min_length=1, max_length=255, description="New title")
    content: str = Field(description="New content")
    version: int = Field(ge=1, description="Version the client last read")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError("Title cannot be blank")
        return v

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Meeting Notes - Q4 Planning (final)",
                "content": "## Agenda\n\n1. Review Q3 performance\n2. Set Q4 objectives\n\nAction items added.",
                "version": 3,
            }
        }
    )


class RevertRequest(BaseModel):
    """Revert a note to an earlier stored version."""

    version: int = Field(ge=1, description="Version number to restore")


class NoteResponse(BaseModel):
    """Note response schema."""

    id: uuid.UUID = Field(description="Note unique identifier")
    title: str = Field(description="Note title")
    content: str = Field(description="Note content")
    version: int = Field(description="Current version number")

    owner_id: uuid.UUID = Field(description="Note owner ID")
    owner_username: Optional[str] = Field(default=None, description="Note owner username")
    access_level: AccessLevel = Field(description="Caller's access level on this note")
    can_edit: bool = Field(description="Whether current user can edit this note")

    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "title": "Meeting Notes - Q4 Planning",
                "content": "## Agenda\n\n1. Review Q3 performance\n2. Set Q4 objectives",
                "version": 4,
                "owner_id": "456e7890-e89b-12d3-a456-426614174000",
                "owner_username": "john_doe",
                "access_level": "owner",
                "can_edit": True,
                "created_at": "2025-09-13T10:30:00Z",
                "updated_at": "2025-09-13T11:00:00Z",
            }
        },
    )


class NoteListItem(BaseModel):
    """Simplified note schema for list views."""

    id: uuid.UUID
    title: str
    content_preview: str = Field(description="Content preview")
    version: int
    owner_id: uuid.UUID
    owner_username: Optional[str] = None
    is_owned: bool = Field(description="Whether current user owns this note")
    created_at: datetime
    updated_at: datetime


class NoteListResponse(PaginationResponse[NoteListItem]):
    """Paginated note list response."""


class NoteSearchResponse(BaseModel):
    """Keyword search results."""

    query: str = Field(description="Normalized search keywords")
    items: List[NoteListItem]
    total: int


class NoteVersionResponse(BaseModel):
    """One historical snapshot of a note."""

    note_id: uuid.UUID
    version: int
    title: str
    content: str
    changed_by: uuid.UUID
    changed_by_username: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NoteVersionListResponse(BaseModel):
    note_id: uuid.UUID
    current_version: int
    versions: List[NoteVersionResponse] = Field(description="Versions, newest first")
