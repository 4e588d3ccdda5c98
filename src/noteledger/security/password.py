"""Password hashing utilities."""

from typing import Optional, Tuple

from passlib.context import CryptContext

# bcrypt_sha256 pre-hashes with SHA-256, so passwords longer than 72 bytes are not truncated
pwd_context = CryptContext(schemes=["bcrypt_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def verify_and_update(plain_password: str, hashed_password: str) -> Tuple[bool, Optional[str]]:
    """
    Verify a password and, when its hash uses outdated parameters, return a
    replacement hash to store. The second element is None if no rehash is due.
    """
    return pwd_context.verify_and_update(plain_password, hashed_password)
