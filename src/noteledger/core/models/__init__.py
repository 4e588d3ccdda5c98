"""
Database models for NoteLedger.

Models included:
    - User: account with username/email/password authentication
    - Note: current state of a note, with version counter and soft-delete status
    - NoteVersion: append-only content history
    - NoteShare: read/edit grants from an owner to another user
    - NoteAttachment: uploaded file metadata
"""

from .attachment import NoteAttachment
from .base import BaseModel
from .note import Note, NoteStatus
from .note_version import NoteVersion
from .share import NoteShare, SharePermission
from .user import User

__all__ = [
    "BaseModel",
    "User",
    "Note",
    "NoteStatus",
    "NoteVersion",
    "NoteShare",
    "SharePermission",
    "NoteAttachment",
]
