"""
Service interfaces for NoteLedger.
"""

from abc import ABC, abstractmethod
from typing import List
from uuid import UUID

from fastapi import UploadFile

from ..schemas.attachments import AttachmentResponse
from ..schemas.auth import (
    AccessTokenResponse,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from ..schemas.notes import (
    NoteCreate,
    NoteListResponse,
    NoteResponse,
    NoteSearchResponse,
    NoteUpdate,
    NoteVersionListResponse,
    NoteVersionResponse,
    RevertRequest,
)
from ..schemas.sharing import SharedNoteListResponse, ShareRequest, ShareResponse


class IAuthService(ABC):
    """Auth service for user management."""

    @abstractmethod
    async def register_user(self, request: RegisterRequest) -> TokenResponse:
        """Register new user and log them in."""

    @abstractmethod
    async def authenticate_user(self, request: LoginRequest) -> TokenResponse:
        """Login user and return JWT tokens."""

    @abstractmethod
    async def refresh_token(self, request: RefreshTokenRequest) -> AccessTokenResponse:
        """Exchange a refresh token for a new access token."""

    @abstractmethod
    async def get_current_user(self, user_id: UUID) -> UserResponse:
        """Get user by ID."""


class INoteService(ABC):
    """Note lifecycle and history reads."""

    @abstractmethod
    async def create_note(self, user_id: UUID, request: NoteCreate) -> NoteResponse:
        """Create a note at version 1."""

    @abstractmethod
    async def get_note(self, note_id: UUID, user_id: UUID) -> NoteResponse:
        """Get note visible to the user."""

    @abstractmethod
    async def list_notes(self, user_id: UUID, page: int, per_page: int) -> NoteListResponse:
        """List notes owned by or shared with the user."""

    @abstractmethod
    async def delete_note(self, note_id: UUID, user_id: UUID) -> None:
        """Soft-delete a note (owner only)."""

    @abstractmethod
    async def list_versions(self, note_id: UUID, user_id: UUID) -> NoteVersionListResponse:
        """Version history, newest first."""

    @abstractmethod
    async def get_version(self, note_id: UUID, user_id: UUID, version: int) -> NoteVersionResponse:
        """A single historical version."""


class INoteMutationService(ABC):
    """Versioned writes."""

    @abstractmethod
    async def update_note(self, note_id: UUID, user_id: UUID, request: NoteUpdate) -> NoteResponse:
        """Optimistic update against request.version."""

    @abstractmethod
    async def revert_note(self, note_id: UUID, user_id: UUID, request: RevertRequest) -> NoteResponse:
        """Revert to an earlier version as a new version."""


class ISharingService(ABC):
    """Note sharing service."""

    @abstractmethod
    async def share_note(self, note_id: UUID, user_id: UUID, request: ShareRequest) -> ShareResponse:
        """Create or update a share."""

    @abstractmethod
    async def revoke_share(self, note_id: UUID, user_id: UUID, shared_with_user_id: UUID) -> None:
        """Remove a share."""

    @abstractmethod
    async def list_note_shares(self, note_id: UUID, user_id: UUID) -> List[ShareResponse]:
        """Shares of one note (owner only)."""

    @abstractmethod
    async def list_shared_with_me(
        self, user_id: UUID, page: int, per_page: int
    ) -> SharedNoteListResponse:
        """Notes other users shared with the caller."""


class ISearchService(ABC):
    @abstractmethod
    async def search(self, user_id: UUID, keywords: str) -> NoteSearchResponse:
        """Keyword search scoped to the caller."""


class IAttachmentService(ABC):
    @abstractmethod
    async def add_attachment(
        self, note_id: UUID, user_id: UUID, upload: UploadFile
    ) -> AttachmentResponse:
        """Store a file and attach it to a note."""

    @abstractmethod
    async def list_attachments(self, note_id: UUID, user_id: UUID) -> List[AttachmentResponse]:
        """Attachments of a note."""
