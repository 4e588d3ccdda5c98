"""Sharing service implementation."""

import logging
from typing import List
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..cache import CacheInvalidationCoordinator
from ..exceptions import NotFoundError, SelfShareError, StorageFailureError, UserNotFoundError
from ..models.note import Note
from ..models.share import NoteShare, SharePermission
from ..repositories.note_repository import NoteRepository
from ..repositories.share_repository import ShareRepository
from ..repositories.user_repository import UserRepository
from ..schemas.sharing import (
    SharedNoteListResponse,
    SharedNoteResponse,
    ShareRequest,
    ShareResponse,
)
from .access_control import AccessControlResolver
from .interfaces import ISharingService
from .note_service import loaded_username

logger = logging.getLogger(__name__)


def share_to_response(share: NoteShare, created: bool = False, username=None) -> ShareResponse:
    return ShareResponse(
        id=share.id,
        note_id=share.note_id,
        shared_by_user_id=share.shared_by_user_id,
        shared_with_user_id=share.shared_with_user_id,
        shared_with_username=username or loaded_username(share, "shared_with_user"),
        permission=SharePermission(share.permission),
        shared_at=share.shared_at,
        created=created,
    )


class SharingService(ISharingService):
    """Owner-managed read/edit grants on notes."""

    def __init__(self, session: AsyncSession, cache: CacheInvalidationCoordinator):
        self.session = session
        self.cache = cache
        self.note_repo = NoteRepository(session)
        self.share_repo = ShareRepository(session)
        self.user_repo = UserRepository(session)
        self.access = AccessControlResolver(session)

    async def share_note(self, note_id: UUID, user_id: UUID, request: ShareRequest) -> ShareResponse:
        """
        Grant request.permission on a note to another user.

        Sharing again with the same user replaces the permission instead of
        adding a second row, so repeated calls leave exactly one share.
        """
        target_id = request.shared_with_user_id
        if target_id == user_id:
            raise SelfShareError()

        note = await self._load_active(note_id)
        await self.access.require_owner(note, user_id)

        target = await self.user_repo.get_by_id(target_id)
        if target is None:
            raise UserNotFoundError(target_id)
        target_username = target.username

        share, created = await self._upsert(note_id, user_id, target_id, request.permission)

        logger.info(
            f"Note {note_id} shared with {target_id}",
            extra={"permission": request.permission.value, "new_share": created},
        )
        await self.cache.invalidate_many([user_id, target_id])
        return share_to_response(share, created=created, username=target_username)

    async def _upsert(
        self, note_id: UUID, owner_id: UUID, target_id: UUID, permission: SharePermission
    ) -> tuple[NoteShare, bool]:
        try:
            existing = await self.share_repo.get_share(note_id, target_id)
            if existing is not None:
                share = await self.share_repo.update_permission(existing, permission)
                await self.session.commit()
                return share, False

            share = await self.share_repo.create_share(
                {
                    "note_id": note_id,
                    "shared_by_user_id": owner_id,
                    "shared_with_user_id": target_id,
                    "permission": permission,
                }
            )
            await self.session.commit()
            return share, True
        except IntegrityError:
            # a concurrent request inserted the same (note, recipient) pair first
            await self.session.rollback()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to share note {note_id}: {e}")
            raise StorageFailureError("Could not share note") from e

        try:
            existing = await self.share_repo.get_share(note_id, target_id)
            if existing is None:
                raise StorageFailureError("Share disappeared during upsert")
            share = await self.share_repo.update_permission(existing, permission)
            await self.session.commit()
            return share, False
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageFailureError("Could not share note") from e

    async def revoke_share(self, note_id: UUID, user_id: UUID, shared_with_user_id: UUID) -> None:
        note = await self._load_active(note_id)
        await self.access.require_owner(note, user_id)
        try:
            removed = await self.share_repo.delete_share(note_id, shared_with_user_id)
            if not removed:
                raise NotFoundError("Share not found")
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageFailureError("Could not revoke share") from e

        logger.info(f"Share on note {note_id} for {shared_with_user_id} revoked")
        await self.cache.invalidate_many([user_id, shared_with_user_id])

    async def list_note_shares(self, note_id: UUID, user_id: UUID) -> List[ShareResponse]:
        note = await self._load_active(note_id)
        await self.access.require_owner(note, user_id)
        shares = await self.share_repo.list_for_note(note.id)
        return [share_to_response(share) for share in shares]

    async def list_shared_with_me(
        self, user_id: UUID, page: int = 1, per_page: int = 20
    ) -> SharedNoteListResponse:
        rows, total = await self.share_repo.list_shares_received(user_id, page, per_page)
        items = [
            SharedNoteResponse(
                note_id=note.id,
                title=note.title,
                content_preview=note.preview,
                version=note.version,
                owner_id=note.owner_id,
                owner_username=loaded_username(note, "owner"),
                permission=SharePermission(share.permission),
                shared_at=share.shared_at,
            )
            for share, note in rows
        ]
        return SharedNoteListResponse.create(items=items, total=total, page=page, per_page=per_page)

    async def _load_active(self, note_id: UUID) -> Note:
        note = await self.note_repo.get_active(note_id)
        if note is None:
            raise NotFoundError("Note not found or access denied")
        return note
