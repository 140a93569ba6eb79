"""Pydantic schemas for container endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ContainerCreate(BaseModel):
    """Schema for creating a container."""

    name: str = Field(max_length=255)
    template_ids: list[UUID] = Field(
        default_factory=list,
        description="Templates in the order their text appears in the description.",
    )
    separator: str | None = Field(
        default=None,
        description="Text between rendered templates. Defaults to a blank line.",
    )

    @field_validator("name")
    @classmethod
    def check_name_not_empty(cls, v: str) -> str:
        """Validate name is not empty."""
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class ContainerUpdate(BaseModel):
    """
    Schema for updating a container.

    Changing ``template_ids`` or ``separator`` regenerates every attached
    video; renaming does not.
    """

    name: str | None = Field(default=None, max_length=255)
    template_ids: list[UUID] | None = None
    separator: str | None = None

    @field_validator("name")
    @classmethod
    def check_name_not_empty(cls, v: str | None) -> str | None:
        """Validate name is not empty (if provided)."""
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v is not None else None


class ContainerResponse(BaseModel):
    """Schema for a container."""

    id: UUID
    name: str
    template_ids: list[UUID]
    separator: str
    video_count: int = 0
    created_at: datetime
    updated_at: datetime


class ContainerUpdateResponse(ContainerResponse):
    """Schema for an updated container and the videos queued for regeneration."""

    affected_video_ids: list[UUID] = Field(default_factory=list)


class ContainerListResponse(BaseModel):
    """Schema for paginated container list responses."""

    items: list[ContainerResponse]
    total: int
    offset: int
    limit: int
    has_more: bool


class ContainerDeleteResponse(BaseModel):
    """Schema for a deleted container."""

    id: UUID
    videos_detached: int
