# Main application entry point
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import auth_router, health_router, notes_router, sharing_router
from .config import Settings, get_settings
from .core.cache import CacheInvalidationCoordinator, ResponseCache
from .core.exceptions import ErrorKind, NoteLedgerError
from .core.logging import LoggingMiddleware, get_logger, setup_logging
from .core.redis_client import RedisClient
from .core.schemas.common import ErrorResponse
from .core.storage import LocalFileStorage
from .database import Database
from .middleware.rate_limit import rate_limit

logger = get_logger("main")

ERROR_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.VERSION_CONFLICT: 409,
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.STORAGE_FAILURE: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build process-wide collaborators and hang them on app.state."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting NoteLedger application",
        extra={"version": settings.app_version, "environment": settings.environment},
    )

    database = Database.from_settings(settings)
    if settings.auto_create_tables:
        await database.create_tables()
        logger.info("Database tables created/verified")

    redis_client = RedisClient(settings)
    try:
        await redis_client.connect()
    except Exception as e:
        logger.warning(f"Redis connection failed: {e}. Continuing without Redis...")

    app.state.database = database
    app.state.redis = redis_client
    app.state.cache_coordinator = CacheInvalidationCoordinator(redis_client)
    app.state.response_cache = ResponseCache(redis_client, settings.cache_ttl_seconds)
    app.state.file_storage = LocalFileStorage(
        settings.upload_dir, settings.max_file_size_bytes, settings.allowed_mime_types
    )

    yield

    logger.info("Shutting down NoteLedger application")
    await redis_client.disconnect()
    await database.dispose()


async def handle_domain_error(request: Request, exc: NoteLedgerError) -> JSONResponse:
    status_code = ERROR_STATUS[exc.kind]
    if status_code >= 500:
        logger.error(
            exc.message, extra={"path": request.url.path, "code": exc.code}, exc_info=exc
        )
    body = ErrorResponse(
        error=exc.kind.value, code=exc.code, message=exc.message, details=exc.details or None
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception", extra={"path": request.url.path, "method": request.method})
    body = ErrorResponse(error="internal_error", code="internal_error", message="Internal server error")
    return JSONResponse(status_code=500, content=body.model_dump(mode="json"))


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Versioned multi-user notes with sharing",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_exception_handler(NoteLedgerError, handle_domain_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    limited = [Depends(rate_limit)]
    app.include_router(auth_router, prefix="/api", dependencies=limited)
    app.include_router(notes_router, prefix="/api", dependencies=limited)
    app.include_router(sharing_router, prefix="/api", dependencies=limited)
    app.include_router(health_router, prefix="/api")

    @app.get("/")
    async def root():
        return {"message": settings.app_name, "version": settings.app_version}

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run("noteledger.main:app", host=_settings.host, port=_settings.port, reload=_settings.reload)
