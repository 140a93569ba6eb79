"""Template model: reusable description text with {{placeholders}}."""
from uuid import UUID

from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDv7Mixin


class Template(Base, UUIDv7Mixin, TimestampMixin):
    """
    Template model.

    The variable set of a template is never stored; it is derived from
    ``content`` with ``services.template_renderer.parse_variables``.
    """

    __tablename__ = "templates"

    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
