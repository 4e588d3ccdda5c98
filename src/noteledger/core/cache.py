"""Per-user response cache and its invalidation."""

import logging
from typing import Any, Iterable, Optional
from uuid import UUID

from .redis_client import RedisClient

logger = logging.getLogger(__name__)

CACHE_PREFIX = "cache"
NOTES_PATH_PREFIX = "/api/notes"


def response_cache_key(path: str, user_id: UUID, query: str = "") -> str:
    """Key of a cached GET response, e.g. cache:/api/notes/?page=2:<user_id>."""
    full_path = f"{path}?{query}" if query else path
    return f"{CACHE_PREFIX}:{full_path}:{user_id}"


class ResponseCache:
    """Read-through helpers for GET endpoints."""

    def __init__(self, redis_client: RedisClient, ttl_seconds: int):
        self.redis = redis_client
        self.ttl_seconds = ttl_seconds

    async def get(self, key: str) -> Optional[Any]:
        return await self.redis.get_json(key)

    async def set(self, key: str, value: Any) -> None:
        await self.redis.set_json(key, value, expire=self.ttl_seconds)


class CacheInvalidationCoordinator:
    """
    Drops cached note responses after a committed write.

    Invalidation is best effort: failures are logged and never reach the
    caller, whose write has already been committed.
    """

    def __init__(self, redis_client: RedisClient):
        self.redis = redis_client

    @staticmethod
    def pattern_for(user_id: UUID) -> str:
        return f"{CACHE_PREFIX}:{NOTES_PATH_PREFIX}*:{user_id}"

    async def invalidate(self, user_id: UUID) -> None:
        try:
            removed = await self.redis.delete_pattern(self.pattern_for(user_id))
            if removed:
                logger.debug(f"Invalidated {removed} cached responses for user {user_id}")
        except Exception:
            logger.warning(
                "Cache invalidation failed", exc_info=True, extra={"user_id": str(user_id)}
            )

    async def invalidate_many(self, user_ids: Iterable[UUID]) -> None:
        for user_id in dict.fromkeys(user_ids):
            await self.invalidate(user_id)
