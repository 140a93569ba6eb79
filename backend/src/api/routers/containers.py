"""Container CRUD endpoints."""
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_async_session, get_current_user, get_dispatcher
from models.container import Container
from models.user import User
from schemas.container import (
    ContainerCreate,
    ContainerDeleteResponse,
    ContainerListResponse,
    ContainerResponse,
    ContainerUpdate,
    ContainerUpdateResponse,
)
from schemas.impact import ImpactResponse
from services.container_service import container_service
from services.dispatch import DescriptionUpdateDispatcher
from services.impact_service import count_videos_by_container, impact_of_container_change

router = APIRouter(prefix="/containers", tags=["containers"])


def _to_response(container: Container, video_count: int) -> ContainerResponse:
    return ContainerResponse(
        id=container.id,
        name=container.name,
        template_ids=container.template_ids,
        separator=container.separator,
        video_count=video_count,
        created_at=container.created_at,
        updated_at=container.updated_at,
    )


@router.post("/", response_model=ContainerResponse, status_code=201)
async def create_container(
    data: ContainerCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ContainerResponse:
    """Create a new container from an ordered list of templates."""
    container = await container_service.create(db, current_user.id, data)
    return _to_response(container, 0)


@router.get("/", response_model=ContainerListResponse)
async def list_containers(
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=100, description="Pagination limit"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ContainerListResponse:
    """List containers for the current user with their attached video counts."""
    containers, total = await container_service.search(db, current_user.id, offset, limit)
    counts = await count_videos_by_container(db, [c.id for c in containers])
    items = [_to_response(c, counts[c.id]) for c in containers]
    return ContainerListResponse(
        items=items,
        total=total,
        offset=offset,
        limit=limit,
        has_more=offset + len(items) < total,
    )


@router.get("/{container_id}", response_model=ContainerResponse)
async def get_container(
    container_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ContainerResponse:
    """Get a single container by ID."""
    container = await container_service.get(db, current_user.id, container_id)
    counts = await count_videos_by_container(db, [container.id])
    return _to_response(container, counts[container.id])


@router.patch("/{container_id}", response_model=ContainerUpdateResponse)
async def update_container(
    container_id: UUID,
    data: ContainerUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    dispatcher: DescriptionUpdateDispatcher = Depends(get_dispatcher),
) -> ContainerUpdateResponse:
    """
    Update a container.

    Changing the template order or separator regenerates every attached video;
    a rename regenerates nothing.
    """
    container, affected = await container_service.update(
        db, current_user.id, container_id, data, dispatcher,
    )
    counts = await count_videos_by_container(db, [container.id])
    # Queued updates read committed rows
    await db.commit()
    return ContainerUpdateResponse(
        **_to_response(container, counts[container.id]).model_dump(),
        affected_video_ids=affected,
    )


@router.delete("/{container_id}", response_model=ContainerDeleteResponse)
async def delete_container(
    container_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ContainerDeleteResponse:
    """Delete a container. Its videos are detached and keep their current descriptions."""
    detached = await container_service.delete(db, current_user.id, container_id)
    return ContainerDeleteResponse(id=container_id, videos_detached=detached)


@router.get("/{container_id}/impact", response_model=ImpactResponse)
async def get_container_impact(
    container_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> ImpactResponse:
    """List the videos a composition change to this container would regenerate."""
    impact = await impact_of_container_change(db, current_user.id, container_id)
    return ImpactResponse.model_validate(impact)
