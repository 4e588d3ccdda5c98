"""Repository layer for data access."""

from .attachment_repository import AttachmentRepository
from .note_repository import NoteRepository
from .share_repository import ShareRepository
from .user_repository import UserRepository
from .version_repository import VersionRepository

__all__ = [
    "UserRepository",
    "NoteRepository",
    "VersionRepository",
    "ShareRepository",
    "AttachmentRepository",
]
