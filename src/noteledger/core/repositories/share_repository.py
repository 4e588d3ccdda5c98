"""Share repository for database operations."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.note import Note, NoteStatus
from ..models.share import NoteShare, SharePermission


class ShareRepository:
    """Repository for share database operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_share(self, note_id: UUID, user_id: UUID) -> Optional[NoteShare]:
        """Get the share granting user_id access to note_id, if any."""
        stmt = select(NoteShare).where(
            NoteShare.note_id == note_id, NoteShare.shared_with_user_id == user_id
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_permission(self, note_id: UUID, user_id: UUID) -> Optional[SharePermission]:
        stmt = select(NoteShare.permission).where(
            NoteShare.note_id == note_id, NoteShare.shared_with_user_id == user_id
        )
        result = await self.session.execute(stmt)
        permission = result.scalar_one_or_none()
        return SharePermission(permission) if permission is not None else None

    async def create_share(self, share_data: dict) -> NoteShare:
        """Stage a new share; raises IntegrityError on flush if one already exists."""
        share = NoteShare(**share_data)
        self.session.add(share)
        await self.session.flush()
        return share

    async def update_permission(self, share: NoteShare, permission: SharePermission) -> NoteShare:
        share.permission = permission
        await self.session.flush()
        return share

    async def delete_share(self, note_id: UUID, user_id: UUID) -> bool:
        stmt = delete(NoteShare).where(
            NoteShare.note_id == note_id, NoteShare.shared_with_user_id == user_id
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def list_for_note(self, note_id: UUID) -> List[NoteShare]:
        stmt = (
            select(NoteShare)
            .where(NoteShare.note_id == note_id)
            .order_by(desc(NoteShare.shared_at))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def list_recipient_ids(self, note_id: UUID) -> List[UUID]:
        stmt = select(NoteShare.shared_with_user_id).where(NoteShare.note_id == note_id)
        result = await self.session.execute(stmt)
        return list(result.scalars())

    async def list_shares_received(
        self, user_id: UUID, page: int = 1, per_page: int = 20
    ) -> tuple[List[tuple[NoteShare, Note]], int]:
        """List shares received by user on notes that are still active."""
        offset = (page - 1) * per_page
        base = (
            select(NoteShare, Note)
            .join(Note, Note.id == NoteShare.note_id)
            .where(NoteShare.shared_with_user_id == user_id, Note.status == NoteStatus.ACTIVE)
        )

        count_stmt = select(func.count()).select_from(base.subquery())
        total_result = await self.session.execute(count_stmt)
        total_count = total_result.scalar() or 0

        stmt = base.order_by(desc(NoteShare.shared_at)).offset(offset).limit(per_page)
        result = await self.session.execute(stmt)
        return [(share, note) for share, note in result.all()], total_count
