"""Pydantic schemas for description history endpoints."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class HistoryResponse(BaseModel):
    """Schema for a single history record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    video_id: UUID
    version_number: int
    description: str
    source: str
    created_by: UUID | None
    created_at: datetime


class HistoryListResponse(BaseModel):
    """Schema for paginated history list responses."""

    items: list[HistoryResponse]
    total: int  # Total count of history records for the video (before pagination)
    offset: int  # Current pagination offset
    limit: int  # Current pagination limit
    has_more: bool  # True if there are more results beyond this page


class VersionDiffResponse(BaseModel):
    """Schema for diff between a version and its predecessor."""

    video_id: UUID
    version: int
    before_description: str
    after_description: str
    patch: str  # diff-match-patch text format


class RollbackResponse(BaseModel):
    """Schema for a completed rollback."""

    model_config = ConfigDict(from_attributes=True)

    video_id: UUID
    history_id: UUID  # The new entry recording the restored description
    restored_description: str
    restored_from_version: int
    version: int
    delinked_container: bool
    variables_cleared: int
