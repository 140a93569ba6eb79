"""Per-video variable values, keyed by (video, template, variable name)."""
from enum import StrEnum
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDv7Mixin


class VariableType(StrEnum):
    """
    Input hint for editors.

    Presentation only: the type never changes how a value is substituted, and
    unknown strings are stored as-is.
    """

    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    URL = "url"


class VideoVariable(Base, UUIDv7Mixin, TimestampMixin):
    """
    One placeholder value for one video.

    The same variable name used in two templates of a container yields two
    independent rows, one per template.
    """

    __tablename__ = "video_variables"

    video_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("youtube_videos.id", ondelete="CASCADE"),
        index=True,
    )
    template_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("templates.id", ondelete="CASCADE"),
        index=True,
    )
    variable_name: Mapped[str] = mapped_column(String(255), nullable=False)
    variable_value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    variable_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=VariableType.TEXT.value,
    )

    __table_args__ = (
        UniqueConstraint(
            "video_id",
            "template_id",
            "variable_name",
            name="uq_video_variables_video_template_name",
        ),
    )
