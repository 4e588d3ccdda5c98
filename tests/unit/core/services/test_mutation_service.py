"""Tests for versioned update and revert."""

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from noteledger.core.cache import CacheInvalidationCoordinator
from noteledger.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    StorageFailureError,
    VersionConflictError,
    VersionNotFoundError,
)
from noteledger.core.schemas.notes import NoteUpdate, RevertRequest
from noteledger.core.services.access_control import AccessLevel
from noteledger.core.services.mutation_service import NoteMutationService


def make_note(owner_id, version=3):
    now = datetime.now(timezone.utc)
    return SimpleNamespace(
        id=uuid.uuid4(),
        owner_id=owner_id,
        title="Title",
        content="Content",
        version=version,
        created_at=now,
        updated_at=now,
    )


def bump_version(note):
    note.version += 1


class TestNoteMutationService:
    @pytest.fixture
    def mock_session(self):
        session = AsyncMock()
        session.refresh.side_effect = bump_version
        return session

    @pytest.fixture
    def mock_cache(self):
        return AsyncMock()

    @pytest.fixture
    def owner_id(self):
        return uuid.uuid4()

    @pytest.fixture
    def note(self, owner_id):
        return make_note(owner_id)

    @pytest.fixture
    def service(self, mock_session, mock_cache, note):
        service = NoteMutationService(mock_session, mock_cache)
        service.note_repo = AsyncMock()
        service.version_repo = AsyncMock()
        service.share_repo = AsyncMock()
        service.access = AsyncMock()

        service.note_repo.get_active.return_value = note
        service.note_repo.compare_and_swap.return_value = True
        service.share_repo.list_recipient_ids.return_value = []
        service.access.require_write.return_value = AccessLevel.OWNER
        service.access.require_owner.return_value = AccessLevel.OWNER
        return service

    @pytest.mark.asyncio
    async def test_update_moves_to_next_version(self, service, mock_session, note, owner_id):
        request = NoteUpdate(title="New", content="Body", version=3)

        result = await service.update_note(note.id, owner_id, request)

        assert result.version == 4
        assert result.access_level is AccessLevel.OWNER
        service.note_repo.compare_and_swap.assert_awaited_once_with(note.id, 3, "New", "Body")
        service.version_repo.append.assert_awaited_once_with(note.id, 4, "New", "Body", owner_id)
        mock_session.commit.assert_awaited_once()
        mock_session.rollback.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_invalidates_owner_caller_and_recipients(
        self, service, mock_cache, note, owner_id
    ):
        editor = uuid.uuid4()
        viewer = uuid.uuid4()
        service.access.require_write.return_value = AccessLevel.EDITOR
        service.share_repo.list_recipient_ids.return_value = [editor, viewer]

        result = await service.update_note(
            note.id, editor, NoteUpdate(title="New", content="Body", version=3)
        )

        assert result.can_edit is True
        mock_cache.invalidate_many.assert_awaited_once_with([owner_id, editor, editor, viewer])

    @pytest.mark.asyncio
    async def test_reload_failure_after_commit_still_returns_and_invalidates(
        self, service, mock_session, mock_cache, note, owner_id
    ):
        mock_session.refresh.side_effect = OperationalError("SELECT", {}, Exception("gone"))

        result = await service.update_note(
            note.id, owner_id, NoteUpdate(title="New", content="Body", version=3)
        )

        assert (result.version, result.title, result.content) == (4, "New", "Body")
        mock_session.commit.assert_awaited_once()
        mock_session.rollback.assert_not_awaited()
        mock_cache.invalidate_many.assert_awaited_once_with([owner_id, owner_id])

    @pytest.mark.asyncio
    async def test_stale_version_writes_nothing(self, service, mock_session, mock_cache, note, owner_id):
        note.version = 4

        with pytest.raises(VersionConflictError) as exc_info:
            await service.update_note(note.id, owner_id, NoteUpdate(title="X", content="Y", version=3))

        assert exc_info.value.expected_version == 3
        assert exc_info.value.current_version == 4
        service.note_repo.compare_and_swap.assert_not_awaited()
        service.version_repo.append.assert_not_awaited()
        mock_session.commit.assert_not_awaited()
        mock_session.rollback.assert_awaited_once()
        mock_cache.invalidate_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lost_compare_and_swap_reports_current_version(
        self, service, mock_session, note, owner_id
    ):
        service.note_repo.compare_and_swap.return_value = False
        service.note_repo.current_version.return_value = 4

        with pytest.raises(VersionConflictError) as exc_info:
            await service.update_note(note.id, owner_id, NoteUpdate(title="X", content="Y", version=3))

        assert exc_info.value.current_version == 4
        assert exc_info.value.details == {"expected_version": 3, "current_version": 4}
        service.version_repo.append.assert_not_awaited()
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_note(self, service, note, owner_id):
        service.note_repo.get_active.return_value = None

        with pytest.raises(NotFoundError):
            await service.update_note(note.id, owner_id, NoteUpdate(title="X", content="Y", version=3))

    @pytest.mark.asyncio
    async def test_viewer_is_denied_before_any_write(self, service, mock_session, note):
        service.access.require_write.side_effect = PermissionDeniedError("read-only")

        with pytest.raises(PermissionDeniedError):
            await service.update_note(
                note.id, uuid.uuid4(), NoteUpdate(title="X", content="Y", version=3)
            )

        service.note_repo.compare_and_swap.assert_not_awaited()
        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_version_row_collision_is_a_conflict(self, service, mock_session, note, owner_id):
        service.version_repo.append.side_effect = IntegrityError("INSERT", {}, Exception("dup"))

        with pytest.raises(VersionConflictError) as exc_info:
            await service.update_note(note.id, owner_id, NoteUpdate(title="X", content="Y", version=3))

        assert exc_info.value.expected_version == 3
        mock_session.rollback.assert_awaited_once()
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_database_error_is_storage_failure(self, service, mock_session, note, owner_id):
        service.note_repo.compare_and_swap.side_effect = OperationalError("UPDATE", {}, Exception("down"))

        with pytest.raises(StorageFailureError):
            await service.update_note(note.id, owner_id, NoteUpdate(title="X", content="Y", version=3))

        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_revert_appends_old_content_as_new_version(self, service, note, owner_id):
        service.version_repo.get.return_value = SimpleNamespace(title="Old", content="Original")

        result = await service.revert_note(note.id, owner_id, RevertRequest(version=1))

        assert result.version == 4
        service.version_repo.get.assert_awaited_once_with(note.id, 1)
        service.note_repo.compare_and_swap.assert_awaited_once_with(note.id, 3, "Old", "Original")
        service.version_repo.append.assert_awaited_once_with(note.id, 4, "Old", "Original", owner_id)

    @pytest.mark.asyncio
    async def test_revert_to_missing_version(self, service, mock_session, note, owner_id):
        service.version_repo.get.return_value = None

        with pytest.raises(VersionNotFoundError):
            await service.revert_note(note.id, owner_id, RevertRequest(version=99))

        service.note_repo.compare_and_swap.assert_not_awaited()
        mock_session.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_revert_requires_owner(self, service, note):
        service.access.require_owner.side_effect = PermissionDeniedError("owner only")

        with pytest.raises(PermissionDeniedError):
            await service.revert_note(note.id, uuid.uuid4(), RevertRequest(version=1))

        service.version_repo.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_failure_does_not_fail_committed_update(
        self, mock_session, note, owner_id
    ):
        redis_client = Mock()
        redis_client.delete_pattern = AsyncMock(side_effect=ConnectionError("redis down"))
        service = NoteMutationService(mock_session, CacheInvalidationCoordinator(redis_client))
        service.note_repo = AsyncMock()
        service.version_repo = AsyncMock()
        service.share_repo = AsyncMock()
        service.access = AsyncMock()
        service.note_repo.get_active.return_value = note
        service.note_repo.compare_and_swap.return_value = True
        service.share_repo.list_recipient_ids.return_value = []
        service.access.require_write.return_value = AccessLevel.OWNER

        result = await service.update_note(
            note.id, owner_id, NoteUpdate(title="New", content="Body", version=3)
        )

        assert result.version == 4
        mock_session.commit.assert_awaited_once()
        redis_client.delete_pattern.assert_awaited()
