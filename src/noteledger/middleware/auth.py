"""Authentication middleware."""

from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import Settings, get_settings
from ..security import get_user_id_from_token


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class JWTBearer(HTTPBearer):
    """Bearer token authentication resolving to the caller's user id."""

    def __init__(self):
        super().__init__(auto_error=False)

    async def __call__(self, request: Request) -> Optional[HTTPAuthorizationCredentials]:
        credentials = await super().__call__(request)
        if credentials is None:
            raise _unauthorized("Not authenticated")
        if credentials.scheme.lower() != "bearer":
            raise _unauthorized("Invalid authentication scheme")
        return credentials


bearer_scheme = JWTBearer()


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> UUID:
    """Get current authenticated user ID."""
    user_id = get_user_id_from_token(credentials.credentials, settings)
    if user_id is None:
        raise _unauthorized("Invalid or expired token")
    return user_id
