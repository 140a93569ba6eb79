"""Video model and its one-way container assignment."""
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from models.base import Base, TimestampMixin, UUIDv7Mixin
from services.exceptions import VideoAlreadyAssignedError

if TYPE_CHECKING:
    from models.youtube_channel import YouTubeChannel


class DescriptionSyncStatus(StrEnum):
    """Whether ``current_description`` is confirmed by the platform."""

    SYNCED = "synced"  # Matches what the platform last accepted
    PENDING = "pending"  # Set locally (rollback), push requested but not confirmed
    FAILED = "failed"  # Last push attempt failed; see sync_error


@dataclass(frozen=True)
class Unassigned:
    """The video is under manual control."""


@dataclass(frozen=True)
class Assigned:
    """The video's description is generated from ``container_id``."""

    container_id: UUID


ContainerAssignment = Unassigned | Assigned


class Video(Base, UUIDv7Mixin, TimestampMixin):
    """
    Video model - created by the external channel sync.

    ``container_id`` follows a two-state machine: Unassigned -> Assigned(c) on
    attach, Assigned(c) -> Unassigned on detach or rollback. Moving a video
    straight from one container to another is rejected here, at the only place
    the column is written.
    """

    __tablename__ = "youtube_videos"

    channel_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("youtube_channels.id", ondelete="CASCADE"),
        index=True,
    )
    platform_video_id: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    current_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    container_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("containers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    published_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    sync_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DescriptionSyncStatus.SYNCED.value,
    )
    sync_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    channel: Mapped["YouTubeChannel"] = relationship(back_populates="videos")

    @validates("container_id")
    def _validate_container_transition(self, _key: str, value: UUID | None) -> UUID | None:
        current = self.container_id
        if current is not None and value is not None and value != current:
            raise VideoAlreadyAssignedError(self.id, current)
        return value

    @property
    def assignment(self) -> ContainerAssignment:
        """Current container assignment as a tagged value."""
        if self.container_id is None:
            return Unassigned()
        return Assigned(self.container_id)

    def assign_container(self, container_id: UUID) -> None:
        """
        Attach the video to a container.

        Raises:
            VideoAlreadyAssignedError: If the video already has a container,
                including the same one.
        """
        match self.assignment:
            case Assigned(current):
                raise VideoAlreadyAssignedError(self.id, current)
            case Unassigned():
                self.container_id = container_id

    def detach_container(self) -> bool:
        """Detach the video from its container. Returns whether it was attached."""
        match self.assignment:
            case Assigned():
                self.container_id = None
                return True
            case Unassigned():
                return False
