"""Sharing API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.cache import CacheInvalidationCoordinator
from ..core.schemas.sharing import SharedNoteListResponse
from ..core.services.sharing_service import SharingService
from ..database import get_db_session
from ..dependencies import get_cache_coordinator
from ..middleware.auth import get_current_user_id

router = APIRouter(prefix="/sharing", tags=["sharing"])


@router.get("/received", response_model=SharedNoteListResponse)
async def list_shared_with_me(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    current_user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
    coordinator: CacheInvalidationCoordinator = Depends(get_cache_coordinator),
):
    """Notes other users have shared with the caller."""
    sharing_service = SharingService(session, coordinator)
    return await sharing_service.list_shared_with_me(current_user_id, page, per_page)
