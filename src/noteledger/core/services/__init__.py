"""
Service layer.

Services take an AsyncSession plus whatever collaborators they need (cache
coordinator, Redis client, file storage) and build their repositories from
the session. Import concrete services from their modules.
"""

from .access_control import AccessControlResolver, AccessLevel

__all__ = ["AccessControlResolver", "AccessLevel"]
