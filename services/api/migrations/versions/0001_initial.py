from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("github_id", sa.BigInteger(), nullable=False),
        sa.Column("login", sa.String(length=255), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("access_token", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_github_id", "users", ["github_id"], unique=True)
    op.create_index("ix_users_created_at", "users", ["created_at"])

    op.create_table(
        "projects",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("github_repo_id", sa.BigInteger(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_projects_user_id", "projects", ["user_id"])
    op.create_index("ix_projects_github_repo_id", "projects", ["github_repo_id"], unique=True)
    op.create_index("ix_projects_created_at", "projects", ["created_at"])

    op.create_table(
        "issues",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "project_id", sa.String(length=36), sa.ForeignKey("projects.id"), nullable=False
        ),
        sa.Column("github_issue_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("state", sa.String(length=32), nullable=False, server_default="open"),
        *_timestamps(),
        sa.UniqueConstraint(
            "project_id", "github_issue_number", name="uix_issues_project_number"
        ),
    )
    op.create_index("ix_issues_created_at", "issues", ["created_at"])

    op.create_table(
        "notes",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("issue_id", sa.String(length=36), sa.ForeignKey("issues.id"), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("color", sa.String(length=32), nullable=False, server_default="#fff9c4"),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("sort_order", sa.Integer(), nullable=True),
        sa.Column("category", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_notes_issue_id", "notes", ["issue_id"])
    op.create_index("ix_notes_category", "notes", ["category"])
    op.create_index("ix_notes_created_at", "notes", ["created_at"])
    op.create_index(
        "ix_notes_user_pinned_created", "notes", ["user_id", "is_pinned", "created_at"]
    )

    op.create_table(
        "session_records",
        sa.Column("key", sa.String(length=128), primary_key=True),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_session_records_expires_at", "session_records", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_session_records_expires_at", table_name="session_records")
    op.drop_table("session_records")
    op.drop_index("ix_notes_user_pinned_created", table_name="notes")
    op.drop_index("ix_notes_created_at", table_name="notes")
    op.drop_index("ix_notes_category", table_name="notes")
    op.drop_index("ix_notes_issue_id", table_name="notes")
    op.drop_table("notes")
    op.drop_index("ix_issues_created_at", table_name="issues")
    op.drop_table("issues")
    op.drop_index("ix_projects_created_at", table_name="projects")
    op.drop_index("ix_projects_github_repo_id", table_name="projects")
    op.drop_index("ix_projects_user_id", table_name="projects")
    op.drop_table("projects")
    op.drop_index("ix_users_created_at", table_name="users")
    op.drop_index("ix_users_github_id", table_name="users")
    op.drop_table("users")
