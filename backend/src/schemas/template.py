"""Pydantic schemas for template endpoints."""
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from core.config import get_settings
from services.template_renderer import parse_user_variables, parse_variables


def _check_content_length(v: str | None) -> str | None:
    limit = get_settings().max_template_length
    if v is not None and len(v) > limit:
        raise ValueError(f"Template content exceeds {limit} characters")
    return v


def _check_name_not_empty(v: str | None) -> str | None:
    if v is not None and not v.strip():
        raise ValueError("Name cannot be empty")
    return v.strip() if v is not None else None


class TemplateCreate(BaseModel):
    """Schema for creating a new template."""

    name: str = Field(max_length=255)
    content: str = ""

    @field_validator("name")
    @classmethod
    def check_name_not_empty(cls, v: str) -> str:
        """Validate name is not empty."""
        return _check_name_not_empty(v)

    @field_validator("content")
    @classmethod
    def check_content_length(cls, v: str) -> str:
        """Validate content fits the configured limit."""
        return _check_content_length(v)


class TemplateUpdate(BaseModel):
    """
    Schema for updating a template.

    Only a ``content`` change regenerates descriptions; renaming never does.
    """

    name: str | None = Field(default=None, max_length=255)
    content: str | None = None

    @field_validator("name")
    @classmethod
    def check_name_not_empty(cls, v: str | None) -> str | None:
        """Validate name is not empty (if provided)."""
        return _check_name_not_empty(v)

    @field_validator("content")
    @classmethod
    def check_content_length(cls, v: str | None) -> str | None:
        """Validate content fits the configured limit (if provided)."""
        return _check_content_length(v)


class TemplateResponse(BaseModel):
    """Schema for a template, with the variables derived from its content."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    content: str
    variables: list[str] = Field(
        default_factory=list,
        description="User-filled placeholder names, in first-occurrence order.",
    )
    created_at: datetime
    updated_at: datetime

    @model_validator(mode="before")
    @classmethod
    def derive_variables(cls, data: Any) -> Any:
        """Derive ``variables`` from the content of a Template model."""
        if hasattr(data, "__dict__") and not isinstance(data, dict):
            field_names = set(cls.model_fields.keys()) - {"variables"}
            data_dict = {key: getattr(data, key) for key in field_names if hasattr(data, key)}
            data_dict["variables"] = parse_user_variables(data.content)
            return data_dict
        return data


class TemplateUpdateResponse(TemplateResponse):
    """Schema for an updated template and the videos queued for regeneration."""

    affected_video_ids: list[UUID] = Field(default_factory=list)


class TemplateListResponse(BaseModel):
    """Schema for paginated template list responses."""

    items: list[TemplateResponse]
    total: int
    offset: int
    limit: int
    has_more: bool


class TemplateDeleteResponse(BaseModel):
    """Schema for a deleted template."""

    id: UUID
    containers_updated: int
    affected_video_ids: list[UUID]


class ParseVariablesRequest(BaseModel):
    """Schema for extracting placeholders from unsaved template text."""

    content: str = ""


class ParseVariablesResponse(BaseModel):
    """Placeholder names found in the text."""

    variables: list[str]
    user_variables: list[str]

    @classmethod
    def from_content(cls, content: str) -> "ParseVariablesResponse":
        """Parse the content into all names and user-filled names."""
        return cls(
            variables=parse_variables(content),
            user_variables=parse_user_variables(content),
        )
