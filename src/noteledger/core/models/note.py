# Note model for user content
import uuid
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, utcnow
from .types import GUID

if TYPE_CHECKING:
    from .user import User


class NoteStatus(str, Enum):
    """Lifecycle status of a note."""

    ACTIVE = "active"
    DELETED = "deleted"


class Note(BaseModel):
    """Versioned note owned by a single user."""

    __tablename__ = "notes"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # bumped by exactly one on every successful update or revert
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    status: Mapped[NoteStatus] = mapped_column(
        String(20), default=NoteStatus.ACTIVE, nullable=False
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    owner: Mapped["User"] = relationship("User", lazy="selectin")

    __table_args__ = (
        Index("idx_notes_owner_id", "owner_id"),
        Index("idx_notes_status", "status"),
        Index("idx_notes_owner_updated", "owner_id", "updated_at"),
        CheckConstraint("length(title) <= 255", name="ck_notes_title_len"),
        CheckConstraint("version >= 1", name="ck_notes_version_positive"),
    )

    def __repr__(self) -> str:
        truncated = self.title if len(self.title) <= 30 else (self.title[:30] + "...")
        return f"<Note(title='{truncated}', version={self.version}, owner_id={self.owner_id})>"

    @property
    def is_active(self) -> bool:
        return self.status == NoteStatus.ACTIVE

    @property
    def preview(self) -> str:
        """Get content preview."""
        if len(self.content) <= 150:
            return self.content
        return self.content[:147] + "..."

    def is_owned_by(self, user_id: uuid.UUID) -> bool:
        """Check if this note is owned by the specified user."""
        return self.owner_id == user_id

    def soft_delete(self) -> None:
        """Mark note as deleted; the row and its history stay in place."""
        self.status = NoteStatus.DELETED
        self.deleted_at = utcnow()
