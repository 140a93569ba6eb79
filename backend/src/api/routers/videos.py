"""Video endpoints: container attachment, variables, preview, history and rollback."""
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_async_session,
    get_current_user,
    get_dispatcher,
    get_settings,
)
from core.config import Settings
from models.user import User
from schemas.description import DescriptionPreviewResponse
from schemas.history import (
    HistoryListResponse,
    HistoryResponse,
    RollbackResponse,
    VersionDiffResponse,
)
from schemas.variable import (
    VariableListResponse,
    VariableResponse,
    VariablesUpdateRequest,
    VariablesUpdateResponse,
)
from schemas.video import (
    AttachRequest,
    AttachResponse,
    DetachResponse,
    PushRequest,
    PushResponse,
    VideoListResponse,
    VideoResponse,
)
from services import variable_service, video_service
from services.description_service import preview_description
from services.dispatch import DescriptionUpdateDispatcher
from services.history_service import history_service
from services.propagation_service import on_variable_changed
from services.rollback_service import rollback_video

router = APIRouter(prefix="/videos", tags=["videos"])


@router.post("/push", response_model=PushResponse, status_code=202)
async def push_videos(
    data: PushRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    dispatcher: DescriptionUpdateDispatcher = Depends(get_dispatcher),
) -> PushResponse:
    """
    Regenerate and push the descriptions of the given videos now.

    Ids that are not the user's videos are ignored.
    """
    video_ids = await video_service.get_owned_video_ids(db, current_user.id, data.video_ids)
    await dispatcher.dispatch(video_ids, current_user.id)
    return PushResponse(video_ids=video_ids)


@router.get("/", response_model=VideoListResponse)
async def list_videos(
    container_id: UUID | None = Query(default=None, description="Only videos in this container"),
    unassigned: bool = Query(default=False, description="Only videos without a container"),
    q: str | None = Query(default=None, description="Search title or YouTube video id"),
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=100, description="Pagination limit"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> VideoListResponse:
    """List the videos of the current user's channels."""
    videos, total = await video_service.search_videos(
        db,
        current_user.id,
        container_id=container_id,
        unassigned=unassigned,
        query=q,
        offset=offset,
        limit=limit,
    )
    items = [VideoResponse.model_validate(v) for v in videos]
    return VideoListResponse(
        items=items,
        total=total,
        offset=offset,
        limit=limit,
        has_more=offset + len(items) < total,
    )


@router.get("/{video_id}", response_model=VideoResponse)
async def get_video(
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> VideoResponse:
    """Get a single video by ID."""
    video = await video_service.get_video(db, current_user.id, video_id)
    return VideoResponse.model_validate(video)


@router.post("/{video_id}/container", response_model=AttachResponse)
async def attach_container(
    video_id: UUID,
    data: AttachRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> AttachResponse:
    """
    Attach a video to a container and create its (empty) variables.

    A video's container is set once; an attached video must be detached (or
    rolled back) before it can be attached again.
    """
    result = await variable_service.attach_video_to_container(
        db, current_user.id, video_id, data.container_id,
    )
    await db.refresh(result.video)
    return AttachResponse(
        video=VideoResponse.model_validate(result.video),
        variables_created=result.variables_created,
    )


@router.delete("/{video_id}/container", response_model=DetachResponse)
async def detach_container(
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> DetachResponse:
    """Detach a video from its container and delete its variables."""
    result = await variable_service.detach_video(db, current_user.id, video_id)
    return DetachResponse(
        video_id=video_id,
        was_attached=result.was_attached,
        variables_cleared=result.variables_cleared,
    )


@router.get("/{video_id}/variables", response_model=VariableListResponse)
async def list_variables(
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> VariableListResponse:
    """List a video's variables."""
    video = await video_service.get_video(db, current_user.id, video_id)
    variables = await variable_service.list_variables(db, current_user.id, video.id)
    return VariableListResponse(
        video_id=video.id,
        container_id=video.container_id,
        items=[VariableResponse.model_validate(v) for v in variables],
    )


@router.put("/{video_id}/variables", response_model=VariablesUpdateResponse)
async def update_variables(
    video_id: UUID,
    data: VariablesUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    dispatcher: DescriptionUpdateDispatcher = Depends(get_dispatcher),
) -> VariablesUpdateResponse:
    """Update variable values in one batch and regenerate this video's description."""
    variables = await variable_service.update_variables(
        db, current_user.id, video_id, data.variables,
    )
    affected = await on_variable_changed(db, current_user.id, video_id, dispatcher)
    video = await video_service.get_video(db, current_user.id, video_id)
    items = [VariableResponse.model_validate(v) for v in variables]
    # Queued updates read committed rows
    await db.commit()
    return VariablesUpdateResponse(
        video_id=video.id,
        container_id=video.container_id,
        items=items,
        affected_video_ids=affected,
    )


@router.get("/{video_id}/preview", response_model=DescriptionPreviewResponse)
async def preview(
    video_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> DescriptionPreviewResponse:
    """Render the description the video would get from its container right now."""
    composed = await preview_description(db, current_user.id, video_id)
    return DescriptionPreviewResponse(
        video_id=video_id,
        container_id=composed.container_id,
        description=composed.description,
        missing_variables=composed.missing_variables,
        template_count=composed.template_count,
        character_count=composed.character_count,
        exceeds_limit=composed.character_count > settings.max_description_length,
    )


@router.get("/{video_id}/history", response_model=HistoryListResponse)
async def get_video_history(
    video_id: UUID,
    offset: int = Query(default=0, ge=0, description="Pagination offset"),
    limit: int = Query(default=50, ge=1, le=100, description="Pagination limit"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> HistoryListResponse:
    """Get the description history of a video, newest version first."""
    video = await video_service.get_video(db, current_user.id, video_id)
    entries, total = await history_service.list_history(db, video.id, limit, offset)
    items = [HistoryResponse.model_validate(e) for e in entries]
    return HistoryListResponse(
        items=items,
        total=total,
        offset=offset,
        limit=limit,
        has_more=offset + len(items) < total,
    )


@router.get("/{video_id}/history/{version}/diff", response_model=VersionDiffResponse)
async def get_version_diff(
    video_id: UUID,
    version: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
) -> VersionDiffResponse:
    """Diff a version's description against the previous version."""
    video = await video_service.get_video(db, current_user.id, video_id)
    diff = await history_service.get_version_diff(db, video.id, version)
    if not diff.found:
        raise HTTPException(status_code=404, detail="Version not found")
    return VersionDiffResponse(
        video_id=video.id,
        version=version,
        before_description=diff.before_description,
        after_description=diff.after_description,
        patch=diff.patch,
    )


@router.post("/{video_id}/history/{history_id}/rollback", response_model=RollbackResponse)
async def rollback(
    video_id: UUID,
    history_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_session),
    dispatcher: DescriptionUpdateDispatcher = Depends(get_dispatcher),
) -> RollbackResponse:
    """
    Restore a version of the video's description.

    The video is detached from its container and its variables are deleted, so
    later template edits no longer overwrite it. The restored text is recorded
    as a new version and pushed to YouTube.
    """
    result = await rollback_video(db, current_user.id, video_id, history_id, dispatcher)
    # Queued push reads committed rows
    await db.commit()
    return RollbackResponse.model_validate(result)
