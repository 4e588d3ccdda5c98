"""Append-only store of note versions."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.note_version import NoteVersion


class VersionRepository:
    """
    Read and append access to note history.

    A stored version never changes. Rows only disappear through the database
    cascade when a note row itself is hard-deleted.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(
        self, note_id: UUID, version: int, title: str, content: str, changed_by: UUID
    ) -> NoteVersion:
        """Stage a new version in the current transaction."""
        entry = NoteVersion(
            note_id=note_id,
            version=version,
            title=title,
            content=content,
            changed_by=changed_by,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get(self, note_id: UUID, version: int) -> Optional[NoteVersion]:
        stmt = select(NoteVersion).where(
            NoteVersion.note_id == note_id, NoteVersion.version == version
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_descending(self, note_id: UUID) -> List[NoteVersion]:
        """All versions of a note, newest first."""
        stmt = (
            select(NoteVersion)
            .where(NoteVersion.note_id == note_id)
            .order_by(desc(NoteVersion.version))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def latest_version(self, note_id: UUID) -> Optional[int]:
        stmt = select(func.max(NoteVersion.version)).where(NoteVersion.note_id == note_id)
        result = await self.session.execute(stmt)
        return result.scalar()
