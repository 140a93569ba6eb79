"""Pydantic schemas for description preview and rendering."""
from uuid import UUID

from pydantic import BaseModel, Field


class DescriptionPreviewResponse(BaseModel):
    """The description a video would get from its container right now."""

    video_id: UUID
    container_id: UUID
    description: str
    missing_variables: list[str]
    template_count: int
    character_count: int
    exceeds_limit: bool


class RenderTemplate(BaseModel):
    """Unsaved template text."""

    content: str = ""


class RenderRequest(BaseModel):
    """Ad-hoc templates and values to render without touching stored data."""

    templates: list[RenderTemplate] = Field(default_factory=list, max_length=50)
    values: dict[str, str] = Field(default_factory=dict)
    separator: str | None = None


class RenderResponse(BaseModel):
    """Rendered description."""

    description: str
    missing_variables: list[str]
    character_count: int
