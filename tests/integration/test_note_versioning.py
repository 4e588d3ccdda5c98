"""
Versioning, sharing and access rules exercised through the services
against a real SQLite database, one session per call like one request.
"""

import pytest
from sqlalchemy import func, select

from noteledger.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    SelfShareError,
    VersionConflictError,
    VersionNotFoundError,
)
from noteledger.core.models import NoteShare, NoteVersion
from noteledger.core.schemas.notes import NoteCreate, NoteUpdate, RevertRequest
from noteledger.core.schemas.sharing import ShareRequest
from noteledger.core.services.access_control import AccessLevel
from noteledger.core.services.mutation_service import NoteMutationService
from noteledger.core.services.note_service import NoteService
from noteledger.core.services.search_service import SearchService
from noteledger.core.services.sharing_service import SharingService


class Api:
    """Runs each service call in its own session."""

    def __init__(self, session_factory, coordinator):
        self.session_factory = session_factory
        self.coordinator = coordinator

    async def create(self, user_id, title="Plan", content="v1 content"):
        async with self.session_factory() as session:
            return await NoteService(session, self.coordinator).create_note(
                user_id, NoteCreate(title=title, content=content)
            )

    async def get(self, note_id, user_id):
        async with self.session_factory() as session:
            return await NoteService(session, self.coordinator).get_note(note_id, user_id)

    async def update(self, note_id, user_id, version, content, title="Plan"):
        async with self.session_factory() as session:
            return await NoteMutationService(session, self.coordinator).update_note(
                note_id, user_id, NoteUpdate(title=title, content=content, version=version)
            )

    async def revert(self, note_id, user_id, version):
        async with self.session_factory() as session:
            return await NoteMutationService(session, self.coordinator).revert_note(
                note_id, user_id, RevertRequest(version=version)
            )

    async def share(self, note_id, owner_id, target_id, permission="read"):
        async with self.session_factory() as session:
            return await SharingService(session, self.coordinator).share_note(
                note_id, owner_id, ShareRequest(shared_with_user_id=target_id, permission=permission)
            )

    async def versions(self, note_id, user_id):
        async with self.session_factory() as session:
            return await NoteService(session, self.coordinator).list_versions(note_id, user_id)

    async def version(self, note_id, user_id, version):
        async with self.session_factory() as session:
            return await NoteService(session, self.coordinator).get_version(note_id, user_id, version)

    async def delete(self, note_id, user_id):
        async with self.session_factory() as session:
            await NoteService(session, self.coordinator).delete_note(note_id, user_id)

    async def search(self, user_id, keywords):
        async with self.session_factory() as session:
            return await SearchService(session).search(user_id, keywords)

    async def count(self, stmt):
        async with self.session_factory() as session:
            return (await session.execute(stmt)).scalar()


@pytest.fixture
def api(session_factory, coordinator):
    return Api(session_factory, coordinator)


@pytest.fixture
def ids(alice, bob, carol):
    return alice.id, bob.id, carol.id


@pytest.mark.asyncio
async def test_shared_editing_conflict_and_revert(api, ids):
    alice, bob, carol = ids

    note = await api.create(alice, content="original")
    assert note.version == 1

    await api.share(note.id, alice, bob, "edit")
    edited = await api.update(note.id, bob, version=1, content="bob's edit")
    assert edited.version == 2
    assert edited.access_level is AccessLevel.EDITOR

    with pytest.raises(VersionConflictError) as exc_info:
        await api.update(note.id, alice, version=1, content="alice's stale edit")
    assert exc_info.value.current_version == 2

    reverted = await api.revert(note.id, alice, 1)
    assert reverted.version == 3
    assert reverted.content == "original"

    history = await api.versions(note.id, alice)
    assert history.current_version == 3
    assert [v.version for v in history.versions] == [3, 2, 1]
    assert [v.content for v in history.versions] == ["original", "bob's edit", "original"]
    assert history.versions[1].changed_by == bob

    with pytest.raises(NotFoundError):
        await api.get(note.id, carol)


@pytest.mark.asyncio
async def test_conflict_leaves_no_trace(api, ids):
    alice, _, _ = ids
    note = await api.create(alice)
    await api.update(note.id, alice, version=1, content="second")

    with pytest.raises(VersionConflictError):
        await api.update(note.id, alice, version=1, content="lost")

    current = await api.get(note.id, alice)
    assert current.version == 2
    assert current.content == "second"
    rows = await api.count(
        select(func.count()).select_from(NoteVersion).where(NoteVersion.note_id == note.id)
    )
    assert rows == 2


@pytest.mark.asyncio
async def test_versions_grow_by_one_and_match_history(api, ids):
    alice, _, _ = ids
    note = await api.create(alice)

    version = note.version
    for i in range(5):
        updated = await api.update(note.id, alice, version=version, content=f"edit {i}")
        assert updated.version == version + 1
        version = updated.version

    history = await api.versions(note.id, alice)
    assert [v.version for v in history.versions] == list(range(6, 0, -1))
    snapshot = await api.version(note.id, alice, 6)
    assert snapshot.content == "edit 4"


@pytest.mark.asyncio
async def test_viewer_reads_but_cannot_write(api, ids):
    alice, bob, _ = ids
    note = await api.create(alice)
    await api.share(note.id, alice, bob, "read")

    seen = await api.get(note.id, bob)
    assert seen.access_level is AccessLevel.VIEWER
    assert seen.can_edit is False

    with pytest.raises(PermissionDeniedError):
        await api.update(note.id, bob, version=1, content="nope")
    assert (await api.get(note.id, alice)).version == 1


@pytest.mark.asyncio
async def test_editor_cannot_revert(api, ids):
    alice, bob, _ = ids
    note = await api.create(alice)
    await api.share(note.id, alice, bob, "edit")
    await api.update(note.id, bob, version=1, content="two")

    with pytest.raises(PermissionDeniedError):
        await api.revert(note.id, bob, 1)


@pytest.mark.asyncio
async def test_revert_to_unknown_version(api, ids):
    alice, _, _ = ids
    note = await api.create(alice)

    with pytest.raises(VersionNotFoundError):
        await api.revert(note.id, alice, 7)
    assert (await api.get(note.id, alice)).version == 1


@pytest.mark.asyncio
async def test_resharing_replaces_permission(api, ids):
    alice, bob, _ = ids
    note = await api.create(alice)

    first = await api.share(note.id, alice, bob, "read")
    second = await api.share(note.id, alice, bob, "edit")

    assert first.created is True
    assert second.created is False
    assert second.id == first.id
    rows = await api.count(
        select(func.count()).select_from(NoteShare).where(NoteShare.note_id == note.id)
    )
    assert rows == 1
    assert (await api.get(note.id, bob)).access_level is AccessLevel.EDITOR


@pytest.mark.asyncio
async def test_self_share_rejected(api, ids):
    alice, _, _ = ids
    note = await api.create(alice)

    with pytest.raises(SelfShareError):
        await api.share(note.id, alice, alice)


@pytest.mark.asyncio
async def test_soft_delete_hides_note_but_keeps_history(api, ids):
    alice, bob, carol = ids
    note = await api.create(alice)
    await api.share(note.id, alice, bob, "edit")
    await api.update(note.id, bob, version=1, content="two")

    with pytest.raises(PermissionDeniedError):
        await api.delete(note.id, bob)

    await api.delete(note.id, alice)

    with pytest.raises(NotFoundError):
        await api.get(note.id, alice)
    with pytest.raises(NotFoundError):
        await api.update(note.id, alice, version=2, content="after delete")
    history = await api.versions(note.id, alice)
    assert [v.version for v in history.versions] == [2, 1]
    assert history.current_version == 2
    assert (await api.version(note.id, bob, 1)).content == "v1 content"
    with pytest.raises(NotFoundError):
        await api.versions(note.id, carol)

    rows = await api.count(
        select(func.count()).select_from(NoteVersion).where(NoteVersion.note_id == note.id)
    )
    assert rows == 2


@pytest.mark.asyncio
async def test_search_only_returns_visible_notes(api, ids):
    alice, bob, carol = ids
    mine = await api.create(alice, title="Roadmap", content="launch plan")
    shared = await api.create(bob, title="Budget plan", content="")
    await api.create(carol, title="Private plan", content="")
    await api.share(shared.id, bob, alice)

    result = await api.search(alice, "PLAN")

    assert {item.id for item in result.items} == {mine.id, shared.id}
    assert result.total == 2


@pytest.mark.asyncio
async def test_revert_creates_new_version_and_keeps_old_record(api, ids):
    alice, _, _ = ids
    note = await api.create(alice, content="c1")
    for version in range(1, 5):
        await api.update(note.id, alice, version=version, content=f"c{version + 1}")

    before = await api.version(note.id, alice, 2)
    reverted = await api.revert(note.id, alice, 2)
    after = await api.version(note.id, alice, 2)

    assert reverted.version == 6
    assert reverted.content == "c2"
    assert (after.version, after.content, after.created_at) == (
        before.version,
        before.content,
        before.created_at,
    )
    assert (await api.version(note.id, alice, 6)).content == "c2"


@pytest.mark.asyncio
async def test_stranger_can_neither_read_nor_write(api, ids):
    alice, _, carol = ids
    note = await api.create(alice)

    with pytest.raises(NotFoundError):
        await api.update(note.id, carol, version=1, content="intrusion")
    with pytest.raises(NotFoundError):
        await api.versions(note.id, carol)
    with pytest.raises(NotFoundError):
        await api.revert(note.id, carol, 1)
    assert (await api.get(note.id, alice)).version == 1
