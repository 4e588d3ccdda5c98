"""Health service implementation."""

import time
from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import Settings
from ..redis_client import RedisClient
from ..schemas.common import HealthCheckResponse


class HealthService:
    """Database and Redis probes."""

    def __init__(self, session: AsyncSession, redis_client: RedisClient, settings: Settings):
        self.session = session
        self.redis = redis_client
        self.settings = settings

    async def get_health_status(self) -> HealthCheckResponse:
        db_health = await self.check_database_health()
        redis_health = await self.check_redis_health()

        # Redis is optional, so only the database decides overall health
        if not db_health["connected"]:
            overall_status = "unhealthy"
        elif not redis_health["connected"]:
            overall_status = "degraded"
        else:
            overall_status = "healthy"

        return HealthCheckResponse(
            status=overall_status,
            version=self.settings.app_version,
            checks={"database": db_health, "redis": redis_health},
        )

    async def check_database_health(self) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            result = await self.session.execute(text("SELECT 1"))
            result.scalar()
        except Exception as e:
            return {"connected": False, "status": "unhealthy", "error": str(e)}
        return {
            "connected": True,
            "status": "healthy",
            "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
        }

    async def check_redis_health(self) -> Dict[str, Any]:
        if not self.redis.available:
            return {"connected": False, "status": "unavailable"}
        started = time.perf_counter()
        try:
            await self.redis.redis.ping()
        except Exception as e:
            return {"connected": False, "status": "unhealthy", "error": str(e)}
        return {
            "connected": True,
            "status": "healthy",
            "response_time_ms": round((time.perf_counter() - started) * 1000, 2),
        }
