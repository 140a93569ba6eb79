"""Template CRUD endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user, get_dispatcher
from models.user import User
from schemas.impact import ImpactResponse
from schemas.template import (
    ParseVariablesRequest,
    ParseVariablesResponse,
    TemplateCreate,
    TemplateDeleteResponse,
    TemplateListResponse,
    TemplateResponse,
    TemplateUpdate,
    TemplateUpdateResponse,
)
from services.dispatch import DescriptionUpdateDispatcher
from services.impact_service import impact_of_template_change
from services.template_service import template_service

router = APIRouter(prefix="/templates", tags=["templates"])


@router.post("/parse-variables", response_model=ParseVariablesResponse)
async def parse_template_variables(
    data: ParseVariablesRequest,
    current_user: User = Depends(get_current_user),  # noqa: ARG001
) -> ParseVariablesResponse:
    """Extract the placeholder names from unsaved template text."""
    return ParseVariablesResponse.from_content(data.content)


@router.post("/", response_model=TemplateResponse, status_code=201)
async def create_template(
    data: TemplateCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> TemplateResponse:
    """Create a new template."""
    template = await template_service.create(db, current_user.id, data)
    return TemplateResponse.model_validate(template)


@router.get("/", response_model=TemplateListResponse)
async def list_templates(
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=100, description="Pagination limit"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> TemplateListResponse:
    """List templates for the current user, newest first."""
    templates, total = await template_service.search(db, current_user.id, offset, limit)
    items = [TemplateResponse.model_validate(t) for t in templates]
    return TemplateListResponse(
        items=items,
        total=total,
        offset=offset,
        limit=limit,
        has_more=offset + len(items) < total,
    )


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> TemplateResponse:
    """Get a single template by ID."""
    template = await template_service.get(db, current_user.id, template_id)
    return TemplateResponse.model_validate(template)


@router.patch("/{template_id}", response_model=TemplateUpdateResponse)
async def update_template(
    template_id: UUID,
    data: TemplateUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    dispatcher: DescriptionUpdateDispatcher = Depends(get_dispatcher),
) -> TemplateUpdateResponse:
    """
    Update a template.

    A content change regenerates the description of every video whose
    container uses the template; a rename regenerates nothing.
    """
    template, affected = await template_service.update(
        db, current_user.id, template_id, data, dispatcher,
    )
    # Queued updates read committed rows
    await db.commit()
    return TemplateUpdateResponse(
        **TemplateResponse.model_validate(template).model_dump(),
        affected_video_ids=affected,
    )


@router.delete("/{template_id}", response_model=TemplateDeleteResponse)
async def delete_template(
    template_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    dispatcher: DescriptionUpdateDispatcher = Depends(get_dispatcher),
) -> TemplateDeleteResponse:
    """Delete a template, removing it from every container that uses it."""
    result = await template_service.delete(db, current_user.id, template_id, dispatcher)
    await db.commit()
    return TemplateDeleteResponse(
        id=template_id,
        containers_updated=result.containers_updated,
        affected_video_ids=result.affected_video_ids,
    )


@router.get("/{template_id}/impact", response_model=ImpactResponse)
async def get_template_impact(
    template_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ImpactResponse:
    """List the videos a content change to this template would regenerate."""
    impact = await impact_of_template_change(db, current_user.id, template_id)
    return ImpactResponse.model_validate(impact)
