"""Resolve what a user may do with a note."""

import logging
from enum import Enum
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError, PermissionDeniedError
from ..models.note import Note
from ..models.share import SharePermission
from ..repositories.share_repository import ShareRepository

logger = logging.getLogger(__name__)


class AccessLevel(str, Enum):
    OWNER = "owner"
    EDITOR = "editor"
    VIEWER = "viewer"
    NONE = "none"

    @property
    def can_read(self) -> bool:
        return self is not AccessLevel.NONE

    @property
    def can_write(self) -> bool:
        return self in (AccessLevel.OWNER, AccessLevel.EDITOR)

    @property
    def is_owner(self) -> bool:
        return self is AccessLevel.OWNER


def level_for(note: Note, user_id: UUID, permission: Optional[SharePermission]) -> AccessLevel:
    """Pure mapping from ownership and share permission to an access level."""
    if note.owner_id == user_id:
        return AccessLevel.OWNER
    if permission is None:
        return AccessLevel.NONE
    if SharePermission(permission) == SharePermission.EDIT:
        return AccessLevel.EDITOR
    return AccessLevel.VIEWER


class AccessControlResolver:
    """
    Read-only access checks for notes.

    A caller with no access at all gets NotFoundError rather than
    PermissionDeniedError, so the existence of other users' notes is not
    revealed. PermissionDeniedError is only raised to callers who can
    already see the note.
    """

    def __init__(self, session: AsyncSession):
        self.share_repo = ShareRepository(session)

    async def resolve(self, note: Note, user_id: UUID) -> AccessLevel:
        if note.owner_id == user_id:
            return AccessLevel.OWNER
        permission = await self.share_repo.get_permission(note.id, user_id)
        return level_for(note, user_id, permission)

    async def require_read(self, note: Note, user_id: UUID) -> AccessLevel:
        level = await self.resolve(note, user_id)
        if not level.can_read:
            raise NotFoundError("Note not found or access denied")
        return level

    async def require_write(self, note: Note, user_id: UUID) -> AccessLevel:
        level = await self.require_read(note, user_id)
        if not level.can_write:
            logger.info(f"User {user_id} denied write on note {note.id} ({level.value})")
            raise PermissionDeniedError("You have read-only access to this note")
        return level

    async def require_owner(self, note: Note, user_id: UUID) -> AccessLevel:
        level = await self.require_read(note, user_id)
        if not level.is_owner:
            logger.info(f"User {user_id} denied owner action on note {note.id} ({level.value})")
            raise PermissionDeniedError("Only the note owner can perform this action")
        return level
