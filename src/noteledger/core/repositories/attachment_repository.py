"""Attachment repository for database operations."""

from typing import List
from uuid import UUID

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.attachment import NoteAttachment


class AttachmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_attachment(self, attachment_data: dict) -> NoteAttachment:
        attachment = NoteAttachment(**attachment_data)
        self.session.add(attachment)
        await self.session.flush()
        return attachment

    async def list_for_note(self, note_id: UUID) -> List[NoteAttachment]:
        stmt = (
            select(NoteAttachment)
            .where(NoteAttachment.note_id == note_id)
            .order_by(desc(NoteAttachment.created_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())
