"""Attachment schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AttachmentResponse(BaseModel):
    id: uuid.UUID
    note_id: uuid.UUID
    uploaded_by: uuid.UUID
    original_filename: str
    mime_type: str
    file_size: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
