"""create auth, notes and notifications tables

Revision ID: 0001_memo_schema
Revises:
Create Date: 2026-10-16 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_memo_schema"
down_revision = None
branch_labels = None
depends_on = None

SCHEMAS = ("auth", "notes", "notifications")


def _is_mssql() -> bool:
    return op.get_bind().dialect.name == "mssql"


def _utc_now():
    if _is_mssql():
        return sa.text("SYSUTCDATETIME()")
    return sa.text("CURRENT_TIMESTAMP")


def _created_at(name: str = "CreatedAt") -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=False, server_default=_utc_now())


def upgrade() -> None:
    if _is_mssql():
        for schema in SCHEMAS:
            op.execute(
                f"IF NOT EXISTS (SELECT * FROM sys.schemas WHERE name = '{schema}') "
                f"EXEC('CREATE SCHEMA {schema}')"
            )

    op.create_table(
        "users",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("Username", sa.String(length=120), nullable=False),
        sa.Column("PasswordHash", sa.String(length=255), nullable=False),
        sa.Column("Role", sa.String(length=20), nullable=False, server_default="User"),
        sa.Column("FailedLoginCount", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("LockedUntil", sa.DateTime(timezone=True), nullable=True),
        sa.Column("LastLoginAt", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.UniqueConstraint("Username", name="ux_auth_users_username"),
        schema="auth",
    )

    op.create_table(
        "refresh_tokens",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("UserId", sa.Integer(), nullable=False),
        sa.Column("TokenHash", sa.String(length=64), nullable=False),
        _created_at(),
        sa.Column("ExpiresAt", sa.DateTime(timezone=True), nullable=False),
        sa.Column("RevokedAt", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["UserId"], ["auth.users.Id"], name="fk_auth_refresh_tokens_user"),
        sa.UniqueConstraint("TokenHash", name="ux_auth_refresh_tokens_hash"),
        schema="auth",
    )
    op.create_index("ix_auth_refresh_tokens_user", "refresh_tokens", ["UserId"], schema="auth")

    op.create_table(
        "notifications",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("UserId", sa.Integer(), nullable=False),
        sa.Column("Type", sa.String(length=40), nullable=False, server_default="ReminderDue"),
        sa.Column("Title", sa.Unicode(length=200), nullable=False),
        sa.Column("Body", sa.Unicode(length=500), nullable=True),
        sa.Column("NoteId", sa.Integer(), nullable=True),
        sa.Column("ReminderId", sa.Integer(), nullable=True),
        sa.Column("DueAt", sa.DateTime(timezone=True), nullable=True),
        sa.Column("IsRead", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("ReadAt", sa.DateTime(timezone=True), nullable=True),
        sa.Column("IsDismissed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("DismissedAt", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        schema="notifications",
    )
    op.create_index(
        "ix_notifications_inbox", "notifications", ["UserId", "IsDismissed", "CreatedAt"], schema="notifications"
    )
    op.create_index("ix_notifications_reminder", "notifications", ["ReminderId"], schema="notifications")

    op.create_table(
        "Folders",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("OwnerUserId", sa.Integer(), nullable=False),
        sa.Column("ParentFolderId", sa.Integer(), nullable=True),
        sa.Column("Name", sa.Unicode(length=200), nullable=False),
        sa.Column("IsInTrash", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("TrashedAt", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _created_at("UpdatedAt"),
        sa.ForeignKeyConstraint(["OwnerUserId"], ["auth.users.Id"], name="fk_notes_folders_owner"),
        sa.ForeignKeyConstraint(["ParentFolderId"], ["notes.Folders.Id"], name="fk_notes_folders_parent"),
        schema="notes",
    )
    op.create_index("ix_notes_folders_owner_parent", "Folders", ["OwnerUserId", "ParentFolderId"], schema="notes")

    op.create_table(
        "Notes",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("OwnerUserId", sa.Integer(), nullable=False),
        sa.Column("FolderId", sa.Integer(), nullable=True),
        sa.Column("Title", sa.Unicode(length=500), nullable=False),
        sa.Column("Content", sa.UnicodeText(), nullable=False, server_default=""),
        sa.Column("RichContent", sa.LargeBinary(), nullable=True),
        sa.Column("IsInTrash", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("TrashedAt", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _created_at("UpdatedAt"),
        sa.ForeignKeyConstraint(["OwnerUserId"], ["auth.users.Id"], name="fk_notes_notes_owner"),
        sa.ForeignKeyConstraint(
            ["FolderId"], ["notes.Folders.Id"], name="fk_notes_notes_folder", ondelete="CASCADE"
        ),
        schema="notes",
    )
    op.create_index("ix_notes_notes_folder", "Notes", ["FolderId"], schema="notes")
    op.create_index(
        "ix_notes_notes_owner_trash_updated",
        "Notes",
        ["OwnerUserId", "IsInTrash", "UpdatedAt"],
        schema="notes",
    )

    op.create_table(
        "NoteImages",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("OwnerUserId", sa.Integer(), nullable=False),
        sa.Column("NoteId", sa.Integer(), nullable=True),
        sa.Column("StoragePath", sa.String(length=500), nullable=False),
        sa.Column("ContentType", sa.String(length=120), nullable=True),
        sa.Column("OriginalFileName", sa.Unicode(length=255), nullable=True),
        sa.Column("FileSizeBytes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("Hash", sa.String(length=64), nullable=False),
        sa.Column("OcrText", sa.UnicodeText(), nullable=True),
        sa.Column("OcrStatus", sa.String(length=20), nullable=False, server_default="Skipped"),
        sa.Column("OcrUpdatedAt", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["OwnerUserId"], ["auth.users.Id"], name="fk_notes_images_owner"),
        sa.ForeignKeyConstraint(["NoteId"], ["notes.Notes.Id"], name="fk_notes_images_note", ondelete="CASCADE"),
        schema="notes",
    )
    op.create_index("ix_notes_images_note", "NoteImages", ["NoteId"], schema="notes")

    op.create_table(
        "Reminders",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("OwnerUserId", sa.Integer(), nullable=False),
        sa.Column("NoteId", sa.Integer(), nullable=True),
        sa.Column("Title", sa.Unicode(length=200), nullable=False),
        sa.Column("ReminderAt", sa.DateTime(timezone=True), nullable=False),
        sa.Column("IsActive", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("RepeatType", sa.String(length=20), nullable=False, server_default="none"),
        sa.Column("LastTriggeredAt", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
        _created_at("UpdatedAt"),
        sa.ForeignKeyConstraint(["OwnerUserId"], ["auth.users.Id"], name="fk_notes_reminders_owner"),
        sa.ForeignKeyConstraint(["NoteId"], ["notes.Notes.Id"], name="fk_notes_reminders_note", ondelete="CASCADE"),
        schema="notes",
    )
    op.create_index("ix_notes_reminders_active_date", "Reminders", ["IsActive", "ReminderAt"], schema="notes")
    op.create_index("ix_notes_reminders_note", "Reminders", ["NoteId"], schema="notes")

    op.create_table(
        "Tags",
        sa.Column("Id", sa.Integer(), primary_key=True),
        sa.Column("OwnerUserId", sa.Integer(), nullable=False),
        sa.Column("Name", sa.Unicode(length=120), nullable=False),
        sa.Column("NormalizedName", sa.Unicode(length=120), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["OwnerUserId"], ["auth.users.Id"], name="fk_notes_tags_owner"),
        sa.UniqueConstraint("OwnerUserId", "NormalizedName", name="ux_notes_tags_owner_name"),
        schema="notes",
    )

    # Links cascade from notes; tag deletes clear their links through the ORM.
    op.create_table(
        "NoteTagLinks",
        sa.Column("NoteId", sa.Integer(), primary_key=True),
        sa.Column("TagId", sa.Integer(), primary_key=True),
        _created_at(),
        sa.ForeignKeyConstraint(["NoteId"], ["notes.Notes.Id"], name="fk_notes_tag_links_note", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["TagId"], ["notes.Tags.Id"], name="fk_notes_tag_links_tag"),
        schema="notes",
    )


def downgrade() -> None:
    op.drop_table("NoteTagLinks", schema="notes")
    op.drop_table("Tags", schema="notes")
    op.drop_index("ix_notes_reminders_note", table_name="Reminders", schema="notes")
    op.drop_index("ix_notes_reminders_active_date", table_name="Reminders", schema="notes")
    op.drop_table("Reminders", schema="notes")
    op.drop_index("ix_notes_images_note", table_name="NoteImages", schema="notes")
    op.drop_table("NoteImages", schema="notes")
    op.drop_index("ix_notes_notes_owner_trash_updated", table_name="Notes", schema="notes")
    op.drop_index("ix_notes_notes_folder", table_name="Notes", schema="notes")
    op.drop_table("Notes", schema="notes")
    op.drop_index("ix_notes_folders_owner_parent", table_name="Folders", schema="notes")
    op.drop_table("Folders", schema="notes")
    op.drop_index("ix_notifications_reminder", table_name="notifications", schema="notifications")
    op.drop_index("ix_notifications_inbox", table_name="notifications", schema="notifications")
    op.drop_table("notifications", schema="notifications")
    op.drop_index("ix_auth_refresh_tokens_user", table_name="refresh_tokens", schema="auth")
    op.drop_table("refresh_tokens", schema="auth")
    op.drop_table("users", schema="auth")
