"""CodeVault schema - users, projects, snippets, line_notes, files, chat_messages

Revision ID: 0001
Revises:
Create Date: 2026-10-18

Foreign keys carry no ON DELETE action; project and snippet deletion run
explicit cascade plans in the service layer.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        server_default=sa.func.now(),
        nullable=False,
    )


def upgrade() -> None:
    # ==========================================================================
    # users table
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("open_id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("login_method", sa.String(64), nullable=True),
        sa.Column("role", sa.String(16), server_default="user", nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("last_signed_in"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("open_id"),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_users_role"),
    )

    # ==========================================================================
    # projects table
    # ==========================================================================
    op.create_table(
        "projects",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(7), server_default="#6366f1", nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_index("idx_projects_user_updated", "projects", ["user_id", "updated_at"])

    # ==========================================================================
    # snippets table
    # ==========================================================================
    op.create_table(
        "snippets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("language", sa.String(50), server_default="javascript", nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_favorite", sa.Boolean(), server_default=sa.false(), nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
    )
    op.create_index("idx_snippets_user_updated", "snippets", ["user_id", "updated_at"])
    op.create_index("idx_snippets_project", "snippets", ["project_id"])

    # ==========================================================================
    # line_notes table
    # ==========================================================================
    op.create_table(
        "line_notes",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("snippet_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("revision", sa.Integer(), server_default="1", nullable=False),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["snippet_id"], ["snippets.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.CheckConstraint("line_number >= 1", name="ck_line_notes_line_number"),
        # Conflict target of the note upsert
        sa.UniqueConstraint(
            "snippet_id", "line_number", "user_id", name="uix_line_notes_snippet_line_user"
        ),
    )

    # ==========================================================================
    # files table
    # ==========================================================================
    op.create_table(
        "files",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("project_id", sa.Integer(), nullable=True),
        sa.Column("filename", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("file_key", sa.String(512), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"]),
        sa.CheckConstraint("file_size >= 0", name="ck_files_file_size"),
    )
    op.create_index("idx_files_user_created", "files", ["user_id", "created_at"])

    # ==========================================================================
    # chat_messages table
    # ==========================================================================
    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("snippet_id", sa.Integer(), nullable=True),
        sa.Column("role", sa.String(16), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["snippet_id"], ["snippets.id"]),
        sa.CheckConstraint(
            "role IN ('user', 'assistant', 'system')", name="ck_chat_messages_role"
        ),
    )
    op.create_index(
        "idx_chat_messages_user_snippet", "chat_messages", ["user_id", "snippet_id", "id"]
    )


def downgrade() -> None:
    op.drop_index("idx_chat_messages_user_snippet", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("idx_files_user_created", table_name="files")
    op.drop_table("files")
    op.drop_table("line_notes")
    op.drop_index("idx_snippets_project", table_name="snippets")
    op.drop_index("idx_snippets_user_updated", table_name="snippets")
    op.drop_table("snippets")
    op.drop_index("idx_projects_user_updated", table_name="projects")
    op.drop_table("projects")
    op.drop_table("users")
