"""Container model: an ordered composition of templates."""
from uuid import UUID

from sqlalchemy import JSON, ForeignKey, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, TimestampMixin, UUIDv7Mixin

DEFAULT_SEPARATOR = "\n\n"


class Container(Base, UUIDv7Mixin, TimestampMixin):
    """
    Container model.

    ``template_order`` holds template ids as strings; its order is the segment
    order of the rendered description. A container references templates but
    does not own them.
    """

    __tablename__ = "containers"

    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    template_order: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"),
        nullable=False,
        default=list,
    )
    separator: Mapped[str] = mapped_column(Text, nullable=False, default=DEFAULT_SEPARATOR)

    @property
    def template_ids(self) -> list[UUID]:
        """Template ids in composition order."""
        return [UUID(str(template_id)) for template_id in self.template_order or []]

    def references(self, template_id: UUID) -> bool:
        """Whether the template is part of this container's composition."""
        return str(template_id) in {str(t) for t in self.template_order or []}
