"""
Pydantic schemas for validating and documenting API requests and responses.
"""

from .attachments import AttachmentResponse
from .auth import (
    AccessTokenResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from .common import ErrorResponse, HealthCheckResponse, PaginationResponse
from .notes import (
    NoteCreate,
    NoteListItem,
    NoteListResponse,
    NoteResponse,
    NoteSearchResponse,
    NoteUpdate,
    NoteVersionListResponse,
    NoteVersionResponse,
    RevertRequest,
)
from .sharing import SharedNoteListResponse, SharedNoteResponse, ShareRequest, ShareResponse

__all__ = [
    "AccessTokenResponse",
    "LoginRequest",
    "RefreshTokenRequest",
    "RegisterRequest",
    "TokenResponse",
    "UserResponse",
    "NoteCreate",
    "NoteUpdate",
    "RevertRequest",
    "NoteResponse",
    "NoteListItem",
    "NoteListResponse",
    "NoteSearchResponse",
    "NoteVersionResponse",
    "NoteVersionListResponse",
    "ShareRequest",
    "ShareResponse",
    "SharedNoteResponse",
    "SharedNoteListResponse",
    "AttachmentResponse",
    "PaginationResponse",
    "ErrorResponse",
    "HealthCheckResponse",
]
