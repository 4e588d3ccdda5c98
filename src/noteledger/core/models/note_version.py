# Immutable snapshots of note content
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel
from .types import GUID

if TYPE_CHECKING:
    from .user import User


class NoteVersion(BaseModel):
    """
    One historical snapshot of a note.

    Rows are only ever inserted. The (note_id, version) pair is unique, so two
    writers racing for the same version number cannot both succeed.
    """

    __tablename__ = "note_versions"

    note_id: Mapped[uuid.UUID] = mapped_column(
        GUID(), ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # NO ACTION: an author who edited other users' notes cannot be deleted
    changed_by: Mapped[uuid.UUID] = mapped_column(GUID(), ForeignKey("users.id"), nullable=False)

    author: Mapped["User"] = relationship("User", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("note_id", "version", name="uq_note_versions_note_version"),
        CheckConstraint("version >= 1", name="ck_note_versions_version_positive"),
        Index("idx_note_versions_note_id_version", "note_id", "version"),
    )

    def __repr__(self) -> str:
        return f"<NoteVersion(note_id={self.note_id}, version={self.version})>"
