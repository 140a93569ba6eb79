"""Pydantic schemas for per-video variables."""
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class VariableUpdate(BaseModel):
    """One variable value to write."""

    template_id: UUID
    name: str
    value: str = ""
    type: str | None = Field(
        default=None,
        max_length=20,
        description="Input hint (text, number, date, url). Omit to keep the current one.",
    )


class VariablesUpdateRequest(BaseModel):
    """Batch of variable values for one video."""

    variables: list[VariableUpdate] = Field(min_length=1)


class VariableResponse(BaseModel):
    """Schema for a stored variable."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    template_id: UUID
    variable_name: str
    variable_value: str
    variable_type: str
    updated_at: datetime


class VariableListResponse(BaseModel):
    """A video's variables."""

    video_id: UUID
    container_id: UUID | None
    items: list[VariableResponse]


class VariablesUpdateResponse(VariableListResponse):
    """Variables after an update, and the videos queued for regeneration."""

    affected_video_ids: list[UUID] = Field(default_factory=list)
