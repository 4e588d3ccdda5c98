"""Request-level dependencies for authentication and rate limiting."""

from .auth import JWTBearer, get_current_user_id
from .rate_limit import rate_limit

__all__ = ["get_current_user_id", "JWTBearer", "rate_limit"]
