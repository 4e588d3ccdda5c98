"""Authentication service implementation."""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ...config import Settings
from ...security import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
    subject_as_uuid,
    verify_and_update,
)
from ..exceptions import InvalidArgumentError, StorageFailureError, UserNotFoundError
from ..models.user import User
from ..redis_client import RedisClient
from ..repositories.user_repository import UserRepository
from ..schemas.auth import (
    AccessTokenResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from .interfaces import IAuthService

logger = logging.getLogger(__name__)


def refresh_token_key(user_id: UUID) -> str:
    return f"refresh_token:{user_id}"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthService(IAuthService):
    """Authentication service implementation."""

    def __init__(self, session: AsyncSession, redis_client: RedisClient, settings: Settings):
        self.session = session
        self.redis = redis_client
        self.settings = settings
        self.user_repo = UserRepository(session)

    async def register_user(self, request: RegisterRequest) -> TokenResponse:
        """Register new user and return tokens for it."""
        if await self.user_repo.is_username_or_email_taken(request.username, request.email):
            raise InvalidArgumentError("User already exists", code="user_exists")

        try:
            user = await self.user_repo.create_user(
                {
                    "username": request.username,
                    "email": request.email,
                    "password_hash": hash_password(request.password),
                    "full_name": request.full_name,
                    "is_active": True,
                }
            )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise InvalidArgumentError("User already exists", code="user_exists") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StorageFailureError("Could not register user") from e

        logger.info(f"Registered user {user.id}")
        return await self._issue_tokens(user)

    async def authenticate_user(self, request: LoginRequest) -> TokenResponse:
        """Login by email and password."""
        user = await self.user_repo.get_by_email(request.email)
        if user is None or not user.can_login():
            raise _unauthorized("Invalid credentials")

        valid, new_hash = verify_and_update(request.password, user.password_hash)
        if not valid:
            logger.info("Failed login attempt", extra={"user_id": str(user.id)})
            raise _unauthorized("Invalid credentials")

        if new_hash:
            user.password_hash = new_hash
            await self.session.commit()

        return await self._issue_tokens(user)

    async def refresh_token(self, request: RefreshTokenRequest) -> AccessTokenResponse:
        """Exchange a refresh token for a new access token."""
        user_id = subject_as_uuid(decode_refresh_token(request.refresh_token, self.settings))
        if user_id is None:
            raise _unauthorized("Invalid refresh token")

        # only the most recently issued refresh token is accepted while Redis is up
        if self.redis.available:
            stored = await self.redis.get(refresh_token_key(user_id))
            if stored != request.refresh_token:
                raise _unauthorized("Invalid refresh token")

        user = await self.user_repo.get_by_id(user_id)
        if user is None or not user.can_login():
            raise _unauthorized("Invalid refresh token")

        return AccessTokenResponse(
            access_token=create_access_token({"sub": str(user.id)}, settings=self.settings),
            expires_in=self.settings.access_token_expire_minutes * 60,
        )

    async def get_current_user(self, user_id: UUID) -> UserResponse:
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return UserResponse.model_validate(user)

    async def _issue_tokens(self, user: User) -> TokenResponse:
        access_token = create_access_token({"sub": str(user.id)}, settings=self.settings)
        refresh_token = create_refresh_token(user.id, self.settings)
        await self.redis.set(
            refresh_token_key(user.id),
            refresh_token,
            expire=self.settings.refresh_token_expire_days * 24 * 3600,
        )
        return TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self.settings.access_token_expire_minutes * 60,
            user=UserResponse.model_validate(user),
        )
