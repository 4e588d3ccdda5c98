"""Note service implementation."""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheInvalidationCoordinator
from ..exceptions import NotFoundError, StorageFailureError, VersionNotFoundError
from ..models.note import Note
from ..models.note_version import NoteVersion
from ..repositories.note_repository import NoteRepository
from ..repositories.share_repository import ShareRepository
from ..repositories.version_repository import VersionRepository
from ..schemas.notes import (
    NoteCreate,
    NoteListItem,
    NoteListResponse,
    NoteResponse,
    NoteVersionListResponse,
    NoteVersionResponse,
)
from .access_control import AccessControlResolver, AccessLevel
from .interfaces import INoteService

logger = logging.getLogger(__name__)


def loaded_username(obj, relation: str):
    # only read relationships that are already loaded; a lazy load would need IO
    related = obj.__dict__.get(relation)
    return related.username if related is not None else None


def note_to_response(note: Note, level: AccessLevel) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        title=note.title,
        content=note.content,
        version=note.version,
        owner_id=note.owner_id,
        owner_username=loaded_username(note, "owner"),
        access_level=level,
        can_edit=level.can_write,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


def note_to_list_item(note: Note, user_id: UUID) -> NoteListItem:
    return NoteListItem(
        id=note.id,
        title=note.title,
        content_preview=note.preview,
        version=note.version,
        owner_id=note.owner_id,
        owner_username=loaded_username(note, "owner"),
        is_owned=note.owner_id == user_id,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


def version_to_response(entry: NoteVersion) -> NoteVersionResponse:
    return NoteVersionResponse(
        note_id=entry.note_id,
        version=entry.version,
        title=entry.title,
        content=entry.content,
        changed_by=entry.changed_by,
        changed_by_username=loaded_username(entry, "author"),
        created_at=entry.created_at,
    )


class NoteService(INoteService):
    """Note service implementation."""

    def __init__(self, session: AsyncSession, cache: CacheInvalidationCoordinator):
        self.session = session
        self.cache = cache
        self.note_repo = NoteRepository(session)
        self.version_repo = VersionRepository(session)
        self.share_repo = ShareRepository(session)
        self.access = AccessControlResolver(session)

    async def create_note(self, user_id: UUID, request: NoteCreate) -> NoteResponse:
        """Create note together with its version 1 snapshot."""
        try:
            note = await self.note_repo.create_note(
                {"title": request.title, "content": request.content, "owner_id": user_id}
            )
            await self.version_repo.append(note.id, 1, note.title, note.content, user_id)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to create note for user {user_id}: {e}")
            raise StorageFailureError("Could not create note") from e

        logger.info(f"Note {note.id} created", extra={"user_id": str(user_id)})
        await self.cache.invalidate(user_id)
        return note_to_response(note, AccessLevel.OWNER)

    async def get_note(self, note_id: UUID, user_id: UUID) -> NoteResponse:
        """Get note by ID. Callers without access see NotFound, never Forbidden."""
        note = await self._load_active(note_id)
        level = await self.access.require_read(note, user_id)
        return note_to_response(note, level)

    async def list_notes(self, user_id: UUID, page: int = 1, per_page: int = 20) -> NoteListResponse:
        notes, total = await self.note_repo.list_accessible(user_id, page, per_page)
        items = [note_to_list_item(note, user_id) for note in notes]
        return NoteListResponse.create(items=items, total=total, page=page, per_page=per_page)

    async def delete_note(self, note_id: UUID, user_id: UUID) -> None:
        """Soft delete. History and shares stay in the database."""
        try:
            note = await self._load_active(note_id)
            await self.access.require_owner(note, user_id)
            recipients = await self.share_repo.list_recipient_ids(note.id)
            await self.note_repo.soft_delete(note)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to delete note {note_id}: {e}")
            raise StorageFailureError("Could not delete note") from e

        logger.info(f"Note {note_id} soft-deleted", extra={"user_id": str(user_id)})
        await self.cache.invalidate_many([user_id, *recipients])

    async def list_versions(self, note_id: UUID, user_id: UUID) -> NoteVersionListResponse:
        """History newest first. Still readable after the note is soft-deleted."""
        note = await self._load_for_history(note_id)
        await self.access.require_read(note, user_id)
        versions = await self.version_repo.list_descending(note.id)
        return NoteVersionListResponse(
            note_id=note.id,
            current_version=note.version,
            versions=[version_to_response(v) for v in versions],
        )

    async def get_version(self, note_id: UUID, user_id: UUID, version: int) -> NoteVersionResponse:
        note = await self._load_for_history(note_id)
        await self.access.require_read(note, user_id)
        entry = await self.version_repo.get(note.id, version)
        if entry is None:
            raise VersionNotFoundError(note.id, version)
        return version_to_response(entry)

    async def _load_active(self, note_id: UUID) -> Note:
        note = await self.note_repo.get_active(note_id)
        if note is None:
            raise NotFoundError("Note not found or access denied")
        return note

    async def _load_for_history(self, note_id: UUID) -> Note:
        note = await self.note_repo.get_with_history(note_id)
        if note is None:
            raise NotFoundError("Note not found or access denied")
        return note
