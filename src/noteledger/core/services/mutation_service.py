"""
Optimistic-concurrency writes on notes.

Every successful update or revert moves a note from version N to N + 1 and
appends the matching NoteVersion row in the same transaction. The move is a
conditional UPDATE keyed on the version the caller read, so of two writers
holding the same version exactly one commits and the other gets
VersionConflictError with nothing written.
"""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheInvalidationCoordinator
from ..exceptions import (
    NoteLedgerError,
    NotFoundError,
    StorageFailureError,
    VersionConflictError,
    VersionNotFoundError,
)
from ..models.base import utcnow
from ..models.note import Note
from ..repositories.note_repository import NoteRepository
from ..repositories.share_repository import ShareRepository
from ..repositories.version_repository import VersionRepository
from ..schemas.notes import NoteResponse, NoteUpdate, RevertRequest
from .access_control import AccessControlResolver
from .interfaces import INoteMutationService
from .note_service import note_to_response

logger = logging.getLogger(__name__)


class NoteMutationService(INoteMutationService):
    """Update and revert, the two versioned write paths."""

    def __init__(self, session: AsyncSession, cache: CacheInvalidationCoordinator):
        self.session = session
        self.cache = cache
        self.note_repo = NoteRepository(session)
        self.version_repo = VersionRepository(session)
        self.share_repo = ShareRepository(session)
        self.access = AccessControlResolver(session)

    async def update_note(self, note_id: UUID, user_id: UUID, request: NoteUpdate) -> NoteResponse:
        """Apply new title/content if the note is still at request.version."""
        async def load():
            note = await self._load_active(note_id)
            level = await self.access.require_write(note, user_id)
            return note, level, request.title, request.content

        return await self._mutate(note_id, user_id, request.version, load, "update")

    async def revert_note(self, note_id: UUID, user_id: UUID, request: RevertRequest) -> NoteResponse:
        """Restore an earlier version's content as a brand new version (owner only)."""
        async def load():
            note = await self._load_active(note_id)
            level = await self.access.require_owner(note, user_id)
            target = await self.version_repo.get(note.id, request.version)
            if target is None:
                raise VersionNotFoundError(note.id, request.version)
            return note, level, target.title, target.content

        return await self._mutate(note_id, user_id, None, load, "revert")

    async def _load_active(self, note_id: UUID) -> Note:
        note = await self.note_repo.get_active(note_id)
        if note is None:
            raise NotFoundError("Note not found or access denied")
        return note

    async def _mutate(self, note_id, user_id, expected_version, load, action: str) -> NoteResponse:
        """
        Run load -> authorize -> compare -> apply -> commit, then signal.

        expected_version None means "whatever version was just loaded", which
        is what revert uses; the conditional UPDATE still guards against a
        writer that commits between our read and our write.
        """
        expected = expected_version
        try:
            note, level, title, content = await load()
            expected = note.version if expected_version is None else expected_version
            if note.version != expected:
                raise VersionConflictError(expected, note.version)

            if not await self.note_repo.compare_and_swap(note.id, expected, title, content):
                current = await self.note_repo.current_version(note.id)
                raise VersionConflictError(expected, current)

            await self.version_repo.append(note.id, expected + 1, title, content, user_id)
            affected = await self._affected_users(note, user_id)
            await self.session.commit()
        except NoteLedgerError as e:
            await self.session.rollback()
            if isinstance(e, VersionConflictError):
                logger.info(
                    f"Version conflict on note {note_id}",
                    extra={
                        "action": action,
                        "user_id": str(user_id),
                        "expected_version": e.expected_version,
                        "current_version": e.current_version,
                    },
                )
            raise
        except IntegrityError as e:
            # another writer already stored this (note_id, version) pair
            await self.session.rollback()
            logger.info(f"Version row collision on note {note_id} during {action}")
            raise VersionConflictError(expected, None) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Storage failure during {action} of note {note_id}: {e}")
            raise StorageFailureError(f"Could not {action} note") from e

        new_version = expected + 1
        # built before refresh, which expires the instance before it reloads
        committed = note_to_response(note, level).model_copy(
            update={
                "version": new_version,
                "title": title,
                "content": content,
                "updated_at": utcnow(),
            }
        )
        logger.info(
            f"Note {note_id} {action} committed at version {new_version}",
            extra={"user_id": str(user_id), "version": new_version},
        )
        await self.cache.invalidate_many(affected)

        try:
            await self.session.refresh(note)
        except SQLAlchemyError as e:
            logger.warning(f"Could not reload note {note_id} after {action}: {e}")
            return committed
        return note_to_response(note, level)

    async def _affected_users(self, note: Note, user_id: UUID) -> List[UUID]:
        recipients = await self.share_repo.list_recipient_ids(note.id)
        return [note.owner_id, user_id, *recipients]
