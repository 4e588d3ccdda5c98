"""Fixed-window rate limiting backed by Redis."""

import logging
from typing import Sequence

from fastapi import Depends, HTTPException, Request, status

from ..config import Settings, get_settings
from ..core.redis_client import RedisClient
from ..dependencies import get_redis_client

logger = logging.getLogger(__name__)


def client_key(request: Request, trusted_proxies: Sequence[str] = ()) -> str:
    """Client IP for rate limiting.

    X-Forwarded-For is only read when the direct peer is a trusted proxy. The
    header is walked right to left and the first hop that is not itself a
    trusted proxy is the client.
    """
    peer = request.client.host if request.client else "unknown"
    if peer not in trusted_proxies:
        return peer
    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded:
        return peer
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted_proxies:
            return hop
    return hops[0] if hops else peer


async def rate_limit(
    request: Request,
    redis_client: RedisClient = Depends(get_redis_client),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject the request with 429 once a client exceeds its window budget."""
    window_seconds = settings.rate_limit_window_minutes * 60
    key = f"rate_limit:{client_key(request, settings.trusted_proxies)}"
    count = await redis_client.increment_rate_limit(key, expire=window_seconds)
    if count > settings.rate_limit_requests:
        logger.warning("Rate limit exceeded", extra={"client": key})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests from this IP, please try again later.",
            headers={"Retry-After": str(window_seconds)},
        )
