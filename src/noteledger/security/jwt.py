"""JWT token utilities."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from jose import JWTError, jwt

from ..config import Settings, get_settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _encode(
    claims: Dict[str, Any], secret: str, token_type: str, lifetime: timedelta, algorithm: str
) -> str:
    to_encode = claims.copy()
    to_encode.update(
        {
            "exp": datetime.now(timezone.utc) + lifetime,
            "type": token_type,
            "jti": str(uuid.uuid4()),
        }
    )
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    settings: Optional[Settings] = None,
) -> str:
    """Create a short-lived access token; data must carry the user id as "sub"."""
    settings = settings or get_settings()
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(data, settings.secret_key, ACCESS_TOKEN_TYPE, lifetime, settings.algorithm)


def create_refresh_token(user_id: UUID, settings: Optional[Settings] = None) -> str:
    """Create a refresh token signed with the separate refresh secret."""
    settings = settings or get_settings()
    return _encode(
        {"sub": str(user_id)},
        settings.refresh_secret_key,
        REFRESH_TOKEN_TYPE,
        timedelta(days=settings.refresh_token_expire_days),
        settings.algorithm,
    )


def _decode(token: str, secret: str, token_type: str, algorithm: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError:
        return None
    if payload.get("type") != token_type:
        return None
    return payload


def decode_access_token(token: str, settings: Optional[Settings] = None) -> Optional[Dict[str, Any]]:
    """Decode and validate an access token. Returns None when invalid or expired."""
    settings = settings or get_settings()
    return _decode(token, settings.secret_key, ACCESS_TOKEN_TYPE, settings.algorithm)


def decode_refresh_token(token: str, settings: Optional[Settings] = None) -> Optional[Dict[str, Any]]:
    settings = settings or get_settings()
    return _decode(token, settings.refresh_secret_key, REFRESH_TOKEN_TYPE, settings.algorithm)


def subject_as_uuid(payload: Optional[Dict[str, Any]]) -> Optional[UUID]:
    if not payload:
        return None
    subject = payload.get("sub")
    if not subject:
        return None
    try:
        return UUID(subject)
    except ValueError:
        return None


def get_user_id_from_token(token: str, settings: Optional[Settings] = None) -> Optional[UUID]:
    """Extract user ID from an access token."""
    return subject_as_uuid(decode_access_token(token, settings))
