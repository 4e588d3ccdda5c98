"""Keyword search over the notes a user can read."""

import logging
import time
from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import InvalidArgumentError
from ..repositories.note_repository import NoteRepository
from ..schemas.notes import NoteSearchResponse
from .interfaces import ISearchService
from .note_service import note_to_list_item

logger = logging.getLogger(__name__)

MAX_KEYWORDS_LENGTH = 255


class SearchBackend(ABC):
    """Anything that can turn keywords into candidate note ids for a user."""

    @abstractmethod
    async def search(self, query: str, scope_user_id: UUID) -> List[UUID]:
        """Return ids of matching notes visible to scope_user_id."""


class DatabaseSearchBackend(SearchBackend):
    """Case-insensitive substring match on title and content."""

    def __init__(self, session: AsyncSession):
        self.note_repo = NoteRepository(session)

    async def search(self, query: str, scope_user_id: UUID) -> List[UUID]:
        return await self.note_repo.search_accessible_ids(scope_user_id, query)


def normalize_keywords(keywords: Optional[str]) -> str:
    query = (keywords or "").strip()[:MAX_KEYWORDS_LENGTH]
    if not query:
        raise InvalidArgumentError("Search keywords are required", code="empty_query")
    return query


class SearchService(ISearchService):
    """Search service implementation."""

    def __init__(self, session: AsyncSession, backend: Optional[SearchBackend] = None):
        self.session = session
        self.note_repo = NoteRepository(session)
        self.backend = backend or DatabaseSearchBackend(session)

    async def search(self, user_id: UUID, keywords: str) -> NoteSearchResponse:
        query = normalize_keywords(keywords)
        started = time.perf_counter()

        ids = await self.backend.search(query, user_id)
        # backend results are candidates; visibility is re-checked against the database
        notes = await self.note_repo.get_accessible_many(ids, user_id)

        logger.info(
            f"Search returned {len(notes)} notes",
            extra={
                "user_id": str(user_id),
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return NoteSearchResponse(
            query=query,
            items=[note_to_list_item(note, user_id) for note in notes],
            total=len(notes),
        )
