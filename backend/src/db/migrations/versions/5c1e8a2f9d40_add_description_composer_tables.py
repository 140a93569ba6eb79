"""
Add description composer tables.

Creates users, channels, templates, containers, videos, per-video variables and
the description history ledger, plus a trigger that refuses to move a video
from one container straight to another.

Revision ID: 5c1e8a2f9d40
Revises:
Create Date: 2026-10-19 09:12:44.518203
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "5c1e8a2f9d40"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "auth_subject",
            sa.String(length=255),
            nullable=False,
            comment="Identity provider 'sub' claim - unique identifier for the user",
        ),
        sa.Column("email", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_auth_subject"), "users", ["auth_subject"], unique=True)

    op.create_table(
        "youtube_channels",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("platform_channel_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("platform_channel_id"),
    )
    op.create_index(op.f("ix_youtube_channels_user_id"), "youtube_channels", ["user_id"])

    op.create_table(
        "templates",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_templates_user_id"), "templates", ["user_id"])

    op.create_table(
        "containers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column(
            "template_order",
            postgresql.JSONB(astext_type=sa.Text()),
            server_default=sa.text("'[]'::jsonb"),
            nullable=False,
        ),
        sa.Column("separator", sa.Text(), server_default="\n\n", nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_containers_user_id"), "containers", ["user_id"])

    op.create_table(
        "youtube_videos",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("channel_id", sa.Uuid(), nullable=False),
        sa.Column("platform_video_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("current_description", sa.Text(), nullable=True),
        sa.Column("container_id", sa.Uuid(), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "sync_status", sa.String(length=20), server_default="synced", nullable=False,
        ),
        sa.Column("sync_error", sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "sync_status IN ('synced', 'pending', 'failed')",
            name="ck_youtube_videos_sync_status",
        ),
        sa.ForeignKeyConstraint(["channel_id"], ["youtube_channels.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["container_id"], ["containers.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_youtube_videos_channel_id"), "youtube_videos", ["channel_id"])
    op.create_index(op.f("ix_youtube_videos_container_id"), "youtube_videos", ["container_id"])
    op.create_index(
        op.f("ix_youtube_videos_platform_video_id"),
        "youtube_videos",
        ["platform_video_id"],
        unique=True,
    )

    op.create_table(
        "video_variables",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("video_id", sa.Uuid(), nullable=False),
        sa.Column("template_id", sa.Uuid(), nullable=False),
        sa.Column("variable_name", sa.String(length=255), nullable=False),
        sa.Column("variable_value", sa.Text(), server_default="", nullable=False),
        sa.Column(
            "variable_type", sa.String(length=20), server_default="text", nullable=False,
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["template_id"], ["templates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["video_id"], ["youtube_videos.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "video_id",
            "template_id",
            "variable_name",
            name="uq_video_variables_video_template_name",
        ),
    )
    op.create_index(op.f("ix_video_variables_video_id"), "video_variables", ["video_id"])
    op.create_index(op.f("ix_video_variables_template_id"), "video_variables", ["template_id"])

    op.create_table(
        "description_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("video_id", sa.Uuid(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(length=20), server_default="push", nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.CheckConstraint("version_number >= 1", name="ck_description_history_version"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["video_id"], ["youtube_videos.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "video_id", "version_number", name="uq_description_history_version",
        ),
    )
    op.create_index(
        "ix_description_history_video_created",
        "description_history",
        ["video_id", "created_at"],
    )

    # A video's container only moves between NULL and one container id
    op.execute("""
        CREATE OR REPLACE FUNCTION prevent_container_reassignment()
        RETURNS TRIGGER AS $$
        BEGIN
            IF OLD.container_id IS NOT NULL
               AND NEW.container_id IS NOT NULL
               AND OLD.container_id <> NEW.container_id THEN
                RAISE EXCEPTION 'Video % is already assigned to container %',
                    OLD.id, OLD.container_id
                    USING ERRCODE = 'check_violation';
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER trg_prevent_container_reassignment
        BEFORE UPDATE OF container_id ON youtube_videos
        FOR EACH ROW EXECUTE FUNCTION prevent_container_reassignment();
    """)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute(
        "DROP TRIGGER IF EXISTS trg_prevent_container_reassignment ON youtube_videos",
    )
    op.execute("DROP FUNCTION IF EXISTS prevent_container_reassignment()")
    op.drop_index("ix_description_history_video_created", table_name="description_history")
    op.drop_table("description_history")
    op.drop_index(op.f("ix_video_variables_template_id"), table_name="video_variables")
    op.drop_index(op.f("ix_video_variables_video_id"), table_name="video_variables")
    op.drop_table("video_variables")
    op.drop_index(op.f("ix_youtube_videos_platform_video_id"), table_name="youtube_videos")
    op.drop_index(op.f("ix_youtube_videos_container_id"), table_name="youtube_videos")
    op.drop_index(op.f("ix_youtube_videos_channel_id"), table_name="youtube_videos")
    op.drop_table("youtube_videos")
    op.drop_index(op.f("ix_containers_user_id"), table_name="containers")
    op.drop_table("containers")
    op.drop_index(op.f("ix_templates_user_id"), table_name="templates")
    op.drop_table("templates")
    op.drop_index(op.f("ix_youtube_channels_user_id"), table_name="youtube_channels")
    op.drop_table("youtube_channels")
    op.drop_index(op.f("ix_users_auth_subject"), table_name="users")
    op.drop_table("users")
