"""SQLAlchemy models."""
from models.base import Base, TimestampMixin, UUIDv7Mixin
from models.user import User
from models.youtube_channel import YouTubeChannel
from models.template import Template
from models.container import Container
from models.video import Video
from models.video_variable import VideoVariable
from models.description_history import DescriptionHistory

__all__ = [
    "Base",
    "Container",
    "DescriptionHistory",
    "Template",
    "TimestampMixin",
    "UUIDv7Mixin",
    "User",
    "Video",
    "VideoVariable",
    "YouTubeChannel",
]
