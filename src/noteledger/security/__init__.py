"""Security utilities."""

from .jwt import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    get_user_id_from_token,
    subject_as_uuid,
)
from .password import hash_password, verify_and_update, verify_password

__all__ = [
    "hash_password",
    "verify_password",
    "verify_and_update",
    "create_access_token",
    "create_refresh_token",
    "decode_access_token",
    "decode_refresh_token",
    "get_user_id_from_token",
    "subject_as_uuid",
]
