"""Attachment service implementation."""

import logging
from typing import List
from uuid import UUID

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError, StorageFailureError
from ..models.note import Note
from ..repositories.attachment_repository import AttachmentRepository
from ..repositories.note_repository import NoteRepository
from ..schemas.attachments import AttachmentResponse
from ..storage import LocalFileStorage
from .access_control import AccessControlResolver
from .interfaces import IAttachmentService

logger = logging.getLogger(__name__)


class AttachmentService(IAttachmentService):
    def __init__(self, session: AsyncSession, storage: LocalFileStorage):
        self.session = session
        self.storage = storage
        self.note_repo = NoteRepository(session)
        self.attachment_repo = AttachmentRepository(session)
        self.access = AccessControlResolver(session)

    async def add_attachment(
        self, note_id: UUID, user_id: UUID, upload: UploadFile
    ) -> AttachmentResponse:
        """Attach a file to a note. Owner or editor only."""
        note = await self._load_active(note_id)
        await self.access.require_write(note, user_id)

        stored = await self.storage.save(upload)
        try:
            attachment = await self.attachment_repo.create_attachment(
                {
                    "note_id": note_id,
                    "uploaded_by": user_id,
                    "filename": stored.filename,
                    "original_filename": stored.original_filename,
                    "mime_type": stored.mime_type,
                    "file_size": stored.size,
                    "file_path": stored.path,
                }
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            await run_in_threadpool(self.storage.delete, stored.path)
            logger.error(f"Failed to record attachment for note {note_id}: {e}")
            raise StorageFailureError("Could not save attachment") from e

        return AttachmentResponse.model_validate(attachment)

    async def list_attachments(self, note_id: UUID, user_id: UUID) -> List[AttachmentResponse]:
        note = await self._load_active(note_id)
        await self.access.require_read(note, user_id)
        attachments = await self.attachment_repo.list_for_note(note.id)
        return [AttachmentResponse.model_validate(a) for a in attachments]

    async def _load_active(self, note_id: UUID) -> Note:
        note = await self.note_repo.get_active(note_id)
        if note is None:
            raise NotFoundError("Note not found or access denied")
        return note
