"""YouTube channel model. Rows are created by the external channel sync."""
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, TimestampMixin, UUIDv7Mixin

if TYPE_CHECKING:
    from models.video import Video


class YouTubeChannel(Base, UUIDv7Mixin, TimestampMixin):
    """A connected channel; its owner owns every video synced from it."""

    __tablename__ = "youtube_channels"

    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    platform_channel_id: Mapped[str] = mapped_column(String(64), unique=True)
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)

    videos: Mapped[list["Video"]] = relationship(
        back_populates="channel",
        passive_deletes=True,
    )
