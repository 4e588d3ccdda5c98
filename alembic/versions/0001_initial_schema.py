"""initial schema: users, notes, note_versions, note_shares, note_attachments

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-09-20 10:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from noteledger.core.models.types import GUID

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _base_columns():
    return [
        sa.Column("id", GUID(), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("username", sa.String(50), nullable=False, unique=True),
        sa.Column("email", sa.String(100), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(100), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.CheckConstraint("length(username) <= 50", name="ck_users_username_len"),
        sa.CheckConstraint("length(email) <= 100", name="ck_users_email_len"),
        sa.CheckConstraint(
            "full_name IS NULL OR length(full_name) <= 100", name="ck_users_full_name_len"
        ),
    )
    op.create_index("idx_users_username", "users", ["username"])
    op.create_index("idx_users_email", "users", ["email"])

    op.create_table(
        "notes",
        *_base_columns(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "owner_id", GUID(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.CheckConstraint("length(title) <= 255", name="ck_notes_title_len"),
        sa.CheckConstraint("version >= 1", name="ck_notes_version_positive"),
    )
    op.create_index("idx_notes_owner_id", "notes", ["owner_id"])
    op.create_index("idx_notes_status", "notes", ["status"])
    op.create_index("idx_notes_owner_updated", "notes", ["owner_id", "updated_at"])

    op.create_table(
        "note_versions",
        *_base_columns(),
        sa.Column(
            "note_id", GUID(), sa.ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("changed_by", GUID(), sa.ForeignKey("users.id"), nullable=False),
        sa.UniqueConstraint("note_id", "version", name="uq_note_versions_note_version"),
        sa.CheckConstraint("version >= 1", name="ck_note_versions_version_positive"),
    )
    op.create_index(
        "idx_note_versions_note_id_version", "note_versions", ["note_id", "version"]
    )

    op.create_table(
        "note_shares",
        *_base_columns(),
        sa.Column(
            "note_id", GUID(), sa.ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "shared_by_user_id",
            GUID(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "shared_with_user_id",
            GUID(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("permission", sa.String(20), nullable=False),
        sa.Column("shared_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("note_id", "shared_with_user_id", name="uq_note_shares_note_recipient"),
        sa.CheckConstraint("permission IN ('read', 'edit')", name="ck_note_shares_permission"),
        sa.CheckConstraint("shared_by_user_id <> shared_with_user_id", name="ck_note_shares_not_self"),
    )
    op.create_index("idx_note_shares_note_id", "note_shares", ["note_id"])
    op.create_index("idx_note_shares_shared_with", "note_shares", ["shared_with_user_id"])

    op.create_table(
        "note_attachments",
        *_base_columns(),
        sa.Column(
            "note_id", GUID(), sa.ForeignKey("notes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "uploaded_by", GUID(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("original_filename", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("file_path", sa.String(500), nullable=False),
    )
    op.create_index("idx_note_attachments_note_id", "note_attachments", ["note_id"])


def downgrade() -> None:
    op.drop_index("idx_note_attachments_note_id", table_name="note_attachments")
    op.drop_table("note_attachments")
    op.drop_index("idx_note_shares_shared_with", table_name="note_shares")
    op.drop_index("idx_note_shares_note_id", table_name="note_shares")
    op.drop_table("note_shares")
    op.drop_index("idx_note_versions_note_id_version", table_name="note_versions")
    op.drop_table("note_versions")
    op.drop_index("idx_notes_owner_updated", table_name="notes")
    op.drop_index("idx_notes_status", table_name="notes")
    op.drop_index("idx_notes_owner_id", table_name="notes")
    op.drop_table("notes")
    op.drop_index("idx_users_email", table_name="users")
    op.drop_index("idx_users_username", table_name="users")
    op.drop_table("users")
