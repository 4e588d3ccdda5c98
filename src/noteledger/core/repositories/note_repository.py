"""Note repository for database operations."""

from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import utcnow
from ..models.note import Note, NoteStatus
from ..models.share import NoteShare


class NoteRepository:
    """Repository for note database operations. Never commits."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_note(self, note_data: dict) -> Note:
        """Stage a new note at version 1."""
        note = Note(**note_data)
        note.version = 1
        note.status = NoteStatus.ACTIVE
        self.session.add(note)
        await self.session.flush()
        return note

    async def get_active(self, note_id: UUID) -> Optional[Note]:
        """Get a note unless it is missing or soft-deleted."""
        stmt = select(Note).where(Note.id == note_id, Note.status == NoteStatus.ACTIVE)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_with_history(self, note_id: UUID) -> Optional[Note]:
        """Get a note whatever its status. Only history reads use this."""
        result = await self.session.execute(select(Note).where(Note.id == note_id))
        return result.scalar_one_or_none()

    async def get_accessible_many(self, note_ids: Sequence[UUID], user_id: UUID) -> List[Note]:
        """Active notes among note_ids that the user owns or has a share on."""
        if not note_ids:
            return []
        stmt = (
            select(Note)
            .where(
                Note.id.in_(list(note_ids)),
                Note.status == NoteStatus.ACTIVE,
                self._accessible_condition(user_id),
            )
            .order_by(desc(Note.updated_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def current_version(self, note_id: UUID) -> Optional[int]:
        stmt = select(Note.version).where(Note.id == note_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def _accessible_condition(self, user_id: UUID):
        shared_ids = select(NoteShare.note_id).where(NoteShare.shared_with_user_id == user_id)
        return or_(Note.owner_id == user_id, Note.id.in_(shared_ids))

    async def list_accessible(
        self, user_id: UUID, page: int = 1, per_page: int = 20
    ) -> tuple[List[Note], int]:
        """List active notes owned by or shared with the user, newest first."""
        offset = (page - 1) * per_page
        condition = self._accessible_condition(user_id)

        count_stmt = select(func.count(Note.id)).where(condition, Note.status == NoteStatus.ACTIVE)
        total_result = await self.session.execute(count_stmt)
        total_count = total_result.scalar() or 0

        stmt = (
            select(Note)
            .where(condition, Note.status == NoteStatus.ACTIVE)
            .order_by(desc(Note.updated_at), desc(Note.created_at))
            .offset(offset)
            .limit(per_page)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars()), total_count

    async def search_accessible_ids(self, user_id: UUID, keywords: str) -> List[UUID]:
        """Ids of active accessible notes whose title or content contains the keywords."""
        pattern = f"%{_escape_like(keywords)}%"
        stmt = (
            select(Note.id)
            .where(
                self._accessible_condition(user_id),
                Note.status == NoteStatus.ACTIVE,
                or_(
                    Note.title.ilike(pattern, escape="\\"),
                    Note.content.ilike(pattern, escape="\\"),
                ),
            )
            .order_by(desc(Note.updated_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def compare_and_swap(
        self, note_id: UUID, expected_version: int, title: str, content: str
    ) -> bool:
        """
        Move an active note from expected_version to expected_version + 1.

        Returns False when no row matched, i.e. the note is gone or another
        writer already moved it past expected_version.
        """
        stmt = (
            update(Note)
            .where(
                Note.id == note_id,
                Note.version == expected_version,
                Note.status == NoteStatus.ACTIVE,
            )
            .values(
                version=Note.version + 1,
                title=title,
                content=content,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def soft_delete(self, note: Note) -> Note:
        note.soft_delete()
        await self.session.flush()
        return note


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
