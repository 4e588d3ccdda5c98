"""FastAPI dependencies exposing the objects built in the app lifespan."""

from fastapi import Request

from .core.cache import CacheInvalidationCoordinator, ResponseCache
from .core.redis_client import RedisClient
from .core.storage import LocalFileStorage


def get_redis_client(request: Request) -> RedisClient:
    return request.app.state.redis


def get_cache_coordinator(request: Request) -> CacheInvalidationCoordinator:
    return request.app.state.cache_coordinator


def get_response_cache(request: Request) -> ResponseCache:
    return request.app.state.response_cache


def get_file_storage(request: Request) -> LocalFileStorage:
    return request.app.state.file_storage
