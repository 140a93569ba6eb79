"""DescriptionHistory model: append-only ledger of rendered descriptions."""
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, UUIDv7Mixin, utc_now


class HistorySource(StrEnum):
    """What wrote the history entry."""

    PUSH = "push"  # Push pipeline, after the platform accepted the description
    ROLLBACK = "rollback"  # Rollback, before the push is requested


class DescriptionHistory(Base, UUIDv7Mixin):
    """
    One committed description of a video.

    Version numbers are sequential per video, start at 1 and never repeat.
    Records are immutable: rollback appends a new record whose description
    equals an older one.
    """

    __tablename__ = "description_history"

    video_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("youtube_videos.id", ondelete="CASCADE"),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    version_number: Mapped[int] = mapped_column(nullable=False)
    source: Mapped[str] = mapped_column(
        String(20), nullable=False, default=HistorySource.PUSH.value,
    )
    created_by: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Timestamp (only created_at - history records are immutable)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        # Unique constraint prevents duplicate versions from race conditions
        UniqueConstraint(
            "video_id",
            "version_number",
            name="uq_description_history_version",
        ),
        Index("ix_description_history_video_created", "video_id", "created_at"),
    )
