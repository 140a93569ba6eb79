"""Pydantic schemas for video endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class VideoResponse(BaseModel):
    """Schema for a synced video and its description state."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    channel_id: UUID
    platform_video_id: str
    title: str | None
    current_description: str | None
    container_id: UUID | None
    sync_status: str
    sync_error: str | None
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime


class VideoListResponse(BaseModel):
    """Schema for paginated video list responses."""

    items: list[VideoResponse]
    total: int
    offset: int
    limit: int
    has_more: bool


class AttachRequest(BaseModel):
    """Container to attach a video to."""

    container_id: UUID


class AttachResponse(BaseModel):
    """Result of attaching a video to a container."""

    video: VideoResponse
    variables_created: int


class DetachResponse(BaseModel):
    """Result of detaching a video from its container."""

    video_id: UUID
    was_attached: bool
    variables_cleared: int


class PushRequest(BaseModel):
    """Videos to regenerate and push now."""

    video_ids: list[UUID] = Field(min_length=1, max_length=500)


class PushResponse(BaseModel):
    """Videos queued for regeneration."""

    video_ids: list[UUID]
