"""Pydantic schemas for change-impact endpoints."""
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class AffectedContainerResponse(BaseModel):
    """A container reached by a change."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    video_count: int


class ImpactResponse(BaseModel):
    """Videos a change would regenerate."""

    model_config = ConfigDict(from_attributes=True)

    video_ids: list[UUID]
    containers: list[AffectedContainerResponse]
