"""Redis client for response caching, refresh tokens and rate limiting."""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from ..config import Settings

logger = logging.getLogger(__name__)


class RedisClient:
    """
    Thin wrapper over redis.asyncio.

    Every method degrades to a no-op result when the connection is missing or a
    command fails, so Redis is never on the critical path of a request.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.redis: Optional[redis.Redis] = None

    @property
    def available(self) -> bool:
        return self.redis is not None

    async def connect(self) -> None:
        """Connect to Redis."""
        try:
            self.redis = redis.from_url(
                self.settings.redis_url,
                max_connections=self.settings.redis_max_connections,
                decode_responses=True,
            )
            await self.redis.ping()
            logger.info("Connected to Redis successfully")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self.redis = None
            raise

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("Disconnected from Redis")

    async def get(self, key: str) -> Optional[str]:
        if not self.redis:
            return None
        try:
            return await self.redis.get(key)
        except Exception as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: str, expire: Optional[int] = None) -> bool:
        """Set value with optional expiration in seconds."""
        if not self.redis:
            return False
        try:
            if expire:
                return bool(await self.redis.setex(key, expire, value))
            return bool(await self.redis.set(key, value))
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        if not self.redis:
            return False
        try:
            return await self.redis.delete(key) > 0
        except Exception as e:
            logger.error(f"Redis DELETE error for key {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern. Raises on Redis errors."""
        if not self.redis:
            return 0
        keys = [key async for key in self.redis.scan_iter(match=pattern, count=100)]
        if not keys:
            return 0
        return await self.redis.delete(*keys)

    async def get_json(self, key: str) -> Optional[Any]:
        cached = await self.get(key)
        if cached is None:
            return None
        try:
            return json.loads(cached)
        except ValueError:
            logger.warning(f"Discarding malformed cache entry {key}")
            return None

    async def set_json(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        return await self.set(key, json.dumps(value, default=str), expire)

    # Rate limiting
    async def increment_rate_limit(self, key: str, expire: int = 60) -> int:
        """Increment rate limit counter, returning the new count (0 when unavailable)."""
        if not self.redis:
            return 0
        try:
            async with self.redis.pipeline() as pipe:
                pipe.incr(key)
                pipe.expire(key, expire)
                results = await pipe.execute()
                return int(results[0]) if results else 0
        except Exception as e:
            logger.error(f"Rate limit error for key {key}: {e}")
            return 0
