"""Notes API endpoints."""

from typing import Awaitable, Callable, List
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache import CacheInvalidationCoordinator, ResponseCache, response_cache_key
from ..core.schemas.attachments import AttachmentResponse
from ..core.schemas.notes import (
    NoteCreate,
    NoteListResponse,
    NoteResponse,
    NoteSearchResponse,
    NoteUpdate,
    NoteVersionListResponse,
    NoteVersionResponse,
    RevertRequest,
)
from ..core.schemas.sharing import ShareRequest, ShareResponse
from ..core.services.attachment_service import AttachmentService
from ..core.services.mutation_service import NoteMutationService
from ..core.services.note_service import NoteService
from ..core.services.search_service import SearchService
from ..core.services.sharing_service import SharingService
from ..core.storage import LocalFileStorage
from ..database import get_db_session
from ..dependencies import get_cache_coordinator, get_file_storage, get_response_cache
from ..middleware.auth import get_current_user_id

router = APIRouter(prefix="/notes", tags=["notes"])


async def cached(
    request: Request,
    user_id: UUID,
    cache: ResponseCache,
    produce: Callable[[], Awaitable[BaseModel]],
):
    """Serve a GET response from the per-user cache, filling it on a miss."""
    key = response_cache_key(request.url.path, user_id, request.url.query)
    hit = await cache.get(key)
    if hit is not None:
        return hit
    result = await produce()
    await cache.set(key, result.model_dump(mode="json"))
    return result


@router.post("/", response_model=NoteResponse, status_code=201)
async def create_note(
    request: NoteCreate,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
):
    """Create a new note at version 1."""
    note_service = NoteService(session, coordinator)
    return await note_service.create_note(current_user_id, request)


@router.get("/", response_model=NoteListResponse)
async def list_notes(
    http_request: Request,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
    cache: ResponseCache = Depends(get_response_cache),
):
    """List notes owned by or shared with the caller."""
    note_service = NoteService(session, coordinator)
    return await cached(
        http_request,
        current_user_id,
        cache,
        lambda: note_service.list_notes(current_user_id, page, per_page),
    )


@router.get("/search", response_model=NoteSearchResponse)
async def search_notes(
    http_request: Request,
    keywords: str = Query("", max_length=1000),
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    cache: ResponseCache = Depends(get_response_cache),
):
    """Keyword search across title and content."""
    search_service = SearchService(session)
    return await cached(
        http_request,
        current_user_id,
        cache,
        lambda: search_service.search(current_user_id, keywords),
    )


@router.get("/{note_id}", response_model=NoteResponse)
async def get_note(
    note_id: UUID,
    http_request: Request,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
    cache: ResponseCache = Depends(get_response_cache),
):
    note_service = NoteService(session, coordinator)
    return await cached(
        http_request,
        current_user_id,
        cache,
        lambda: note_service.get_note(note_id, current_user_id),
    )


@router.put("/{note_id}", response_model=NoteResponse)
async def update_note(
    note_id: UUID,
    request: NoteUpdate,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
):
    """Update a note; 409 if it changed since `version` was read."""
    mutation_service = NoteMutationService(session, coordinator)
    return await mutation_service.update_note(note_id, current_user_id, request)


@router.delete("/{note_id}", status_code=204)
async def delete_note(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
):
    """Soft-delete a note."""
    note_service = NoteService(session, coordinator)
    await note_service.delete_note(note_id, current_user_id)


@router.get("/{note_id}/versions", response_model=NoteVersionListResponse)
async def list_versions(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
):
    note_service = NoteService(session, coordinator)
    return await note_service.list_versions(note_id, current_user_id)


@router.get("/{note_id}/versions/{version}", response_model=NoteVersionResponse)
async def get_version(
    note_id: UUID,
    version: int,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
):
    note_service = NoteService(session, coordinator)
    return await note_service.get_version(note_id, current_user_id, version)


@router.post("/{note_id}/revert", response_model=NoteResponse)
async def revert_note(
    note_id: UUID,
    request: RevertRequest,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
):
    """Restore an earlier version as a new version."""
    mutation_service = NoteMutationService(session, coordinator)
    return await mutation_service.revert_note(note_id, current_user_id, request)


@router.post("/{note_id}/share", response_model=ShareResponse)
async def share_note(
    note_id: UUID,
    request: ShareRequest,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
):
    """Share a note, or change the permission of an existing share."""
    sharing_service = SharingService(session, coordinator)
    return await sharing_service.share_note(note_id, current_user_id, request)


@router.get("/{note_id}/shares", response_model=List[ShareResponse])
async def list_note_shares(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
):
    sharing_service = SharingService(session, coordinator)
    return await sharing_service.list_note_shares(note_id, current_user_id)


@router.delete("/{note_id}/shares/{user_id}", status_code=204)
async def revoke_share(
    note_id: UUID,
    user_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
):
    sharing_service = SharingService(session, coordinator)
    await sharing_service.revoke_share(note_id, current_user_id, user_id)


@router.post("/{note_id}/attachments", response_model=AttachmentResponse, status_code=201)
async def add_attachment(
    note_id: UUID,
    file: UploadFile = File(...),
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    storage: LocalFileStorage = Depends(get_file_storage),
):
    """Upload an image or video to a note."""
    attachment_service = AttachmentService(session, storage)
    return await attachment_service.add_attachment(note_id, current_user_id, file)


@router.get("/{note_id}/attachments", response_model=List[AttachmentResponse])
async def list_attachments(
    note_id: UUID,
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    storage: LocalFileStorage = Depends(get_file_storage),
):
    attachment_service = AttachmentService(session, storage)
    return await attachment_service.list_attachments(note_id, current_user_id)
