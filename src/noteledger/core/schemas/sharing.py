"""
Sharing schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.share import SharePermission
from .common import PaginationResponse


class ShareRequest(BaseModel):
    """Grant or change another user's access to a note."""

    shared_with_user_id: uuid.UUID = Field(description="User receiving access")
    permission: SharePermission = Field(default=SharePermission.READ, description="read or edit")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "shared_with_user_id": "456e7890-e89b-12d3-a456-426614174000",
                "permission": "edit",
            }
        }
    )


class ShareResponse(BaseModel):
    """Share response schema."""

    id: uuid.UUID
    note_id: uuid.UUID
    shared_by_user_id: uuid.UUID
    shared_with_user_id: uuid.UUID
    shared_with_username: Optional[str] = None
    permission: SharePermission
    shared_at: datetime
    created: bool = Field(default=False, description="True when this call created the share")

    model_config = ConfigDict(from_attributes=True)


class SharedNoteResponse(BaseModel):
    """A note someone else shared with the current user."""

    note_id: uuid.UUID
    title: str
    content_preview: str
    version: int
    owner_id: uuid.UUID
    owner_username: Optional[str] = None
    permission: SharePermission
    shared_at: datetime


class SharedNoteListResponse(PaginationResponse[SharedNoteResponse]):
    """Paginated list of notes shared with the caller."""
