"""User model for storing authenticated users."""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDv7Mixin


class User(Base, UUIDv7Mixin, TimestampMixin):
    """User model - owner of templates, containers and channels."""

    __tablename__ = "users"

    auth_subject: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        comment="Identity provider 'sub' claim - unique identifier for the user",
    )
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
