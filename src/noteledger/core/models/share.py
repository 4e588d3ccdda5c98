# Note sharing between users
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel
from .types import GUID

if TYPE_CHECKING:
    from .user import User


class SharePermission(str, Enum):
    """What a share recipient may do."""

    READ = "read"
    EDIT = "edit"


class NoteShare(BaseModel):
    """Grant from a note's owner to another user."""

    __tablename__ = "note_shares"

    note_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
    )
    shared_by_user_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    shared_with_user_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    permission: Mapped[SharePermission] = mapped_column(
        String(20), default=SharePermission.READ, nullable=False
    )

    shared_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    shared_with_user: Mapped["User"] = relationship(
        "User", foreign_keys=[shared_with_user_id], lazy="selectin"
    )

    __table_args__ = (
        UniqueConstraint("note_id", "shared_with_user_id", name="uq_note_shares_note_recipient"),
        CheckConstraint("permission IN ('read', 'edit')", name="ck_note_shares_permission"),
        CheckConstraint(
            "shared_by_user_id <> shared_with_user_id", name="ck_note_shares_not_self"
        ),
        Index("idx_note_shares_note_id", "note_id"),
        Index("idx_note_shares_shared_with", "shared_with_user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<NoteShare(note_id={self.note_id}, shared_with={self.shared_with_user_id}, "
            f"permission={self.permission})>"
        )

    @property
    def can_edit(self) -> bool:
        return SharePermission(self.permission) == SharePermission.EDIT
