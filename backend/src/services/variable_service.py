"""
Variable store synchronization.

Variable rows exist only for videos attached to a container and only for the
placeholder names present in that container's templates. Rows are seeded when a
video is attached, reconciled when the container's templates change, and purged
when the video is detached.
"""
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from uuid6 import uuid7

from models.container import Container
from models.template import Template
from models.video import Video
from models.video_variable import VariableType, VideoVariable
from schemas.variable import VariableUpdate
from services.entity_lookup import (
    get_owned_container,
    get_owned_video,
    load_container_templates,
)
from services.exceptions import InvalidVariableError, VideoNotAssignedError
from services.template_renderer import parse_user_variables

logger = logging.getLogger(__name__)

# Dialect-specific INSERT constructs that support ON CONFLICT DO NOTHING
_INSERT_CONSTRUCTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


@dataclass
class AttachResult:
    """Result of attaching a video to a container."""

    video: Video
    variables_created: int


@dataclass
class DetachResult:
    """Result of detaching a video from its container."""

    was_attached: bool
    variables_cleared: int


@dataclass
class SyncResult:
    """Result of reconciling a container's variable rows."""

    created: int = 0
    removed: int = 0


def expected_variable_keys(templates: Sequence[Template]) -> list[tuple[UUID, str]]:
    """
    List the (template_id, variable_name) keys a container defines, in order.

    A name used by two templates gives two keys.
    """
    keys: list[tuple[UUID, str]] = []
    for template in templates:
        for name in parse_user_variables(template.content):
            key = (template.id, name)
            if key not in keys:
                keys.append(key)
    return keys


async def _insert_missing_variables(
    db: AsyncSession,
    video_ids: Sequence[UUID],
    keys: Sequence[tuple[UUID, str]],
) -> int:
    """
    Insert empty variable rows, ignoring rows that already exist.

    Idempotent under the (video, template, name) unique key, so a retry after a
    partial failure never duplicates rows.

    Returns:
        Number of rows actually inserted.
    """
    rows: list[dict[str, Any]] = [
        {
            "id": uuid7(),
            "video_id": video_id,
            "template_id": template_id,
            "variable_name": name,
            "variable_value": "",
            "variable_type": VariableType.TEXT.value,
        }
        for video_id in video_ids
        for template_id, name in keys
    ]
    if not rows:
        return 0

    dialect = db.get_bind().dialect.name
    insert_construct = _INSERT_CONSTRUCTS.get(dialect)
    if insert_construct is None:
        raise NotImplementedError(f"Variable seeding is not supported on {dialect}")

    stmt = insert_construct(VideoVariable).values(rows).on_conflict_do_nothing(
        index_elements=["video_id", "template_id", "variable_name"],
    )
    result = await db.execute(stmt)
    return max(result.rowcount or 0, 0)


async def attach_video_to_container(
    db: AsyncSession,
    user_id: UUID,
    video_id: UUID,
    container_id: UUID,
) -> AttachResult:
    """
    Attach a video to a container and seed its variables.

    Sets the video's container, then creates one empty variable per
    (template, placeholder) across the container's templates.

    Args:
        db: Database session.
        user_id: Owner of both the video and the container.
        video_id: ID of the video to attach.
        container_id: ID of the container.

    Returns:
        AttachResult with the video and the number of variables created.

    Raises:
        VideoNotFoundError: If the video doesn't exist or isn't owned by the user.
        VideoAlreadyAssignedError: If the video already has a container.
        ContainerNotFoundError: If the container doesn't exist or isn't owned by the user.
    """
    video = await get_owned_video(db, user_id, video_id, for_update=True)
    container = await get_owned_container(db, user_id, container_id)

    video.assign_container(container.id)
    await db.flush()

    templates = await load_container_templates(db, container)
    created = await _insert_missing_variables(
        db, [video.id], expected_variable_keys(templates),
    )
    logger.info(
        "Attached video %s to container %s (%d variables seeded)",
        video.id,
        container.id,
        created,
    )
    return AttachResult(video=video, variables_created=created)


async def count_variables(db: AsyncSession, video_id: UUID) -> int:
    """Count a video's variable rows."""
    stmt = select(func.count()).select_from(VideoVariable).where(
        VideoVariable.video_id == video_id,
    )
    return (await db.execute(stmt)).scalar_one()


async def clear_video_assignment(db: AsyncSession, video: Video) -> DetachResult:
    """
    Detach a loaded video and delete all of its variables.

    Safe to repeat: detaching an unassigned video without variables is a no-op.
    """
    was_attached = video.detach_container()
    result = await db.execute(delete(VideoVariable).where(VideoVariable.video_id == video.id))
    await db.flush()
    return DetachResult(was_attached=was_attached, variables_cleared=result.rowcount or 0)


async def detach_video(db: AsyncSession, user_id: UUID, video_id: UUID) -> DetachResult:
    """
    Detach a video from its container, handing it back to manual control.

    Raises:
        VideoNotFoundError: If the video doesn't exist or isn't owned by the user.
    """
    video = await get_owned_video(db, user_id, video_id, for_update=True)
    result = await clear_video_assignment(db, video)
    logger.info(
        "Detached video %s (was_attached=%s, %d variables cleared)",
        video.id,
        result.was_attached,
        result.variables_cleared,
    )
    return result


async def get_video_variables(db: AsyncSession, video_id: UUID) -> list[VideoVariable]:
    """Get a video's variable rows in seeding order."""
    stmt = (
        select(VideoVariable)
        .where(VideoVariable.video_id == video_id)
        .order_by(VideoVariable.id)
    )
    return list((await db.execute(stmt)).scalars().all())


async def list_variables(
    db: AsyncSession, user_id: UUID, video_id: UUID,
) -> list[VideoVariable]:
    """
    List the variables of a video owned by the user.

    Raises:
        VideoNotFoundError: If the video doesn't exist or isn't owned by the user.
    """
    video = await get_owned_video(db, user_id, video_id)
    return await get_video_variables(db, video.id)


async def update_variables(
    db: AsyncSession,
    user_id: UUID,
    video_id: UUID,
    updates: Sequence[VariableUpdate],
) -> list[VideoVariable]:
    """
    Update variable values (and type hints) of a video in one batch.

    Only keys defined by the video's container can be written; the batch is
    validated as a whole before any row changes.

    Returns:
        All of the video's variables after the update.

    Raises:
        VideoNotFoundError: If the video doesn't exist or isn't owned by the user.
        VideoNotAssignedError: If the video has no container.
        InvalidVariableError: If a key is not defined by the container's templates.
    """
    video = await get_owned_video(db, user_id, video_id)
    if video.container_id is None:
        raise VideoNotAssignedError(video.id)

    rows = await get_video_variables(db, video.id)
    by_key = {(row.template_id, row.variable_name): row for row in rows}

    for update in updates:
        if (update.template_id, update.name) not in by_key:
            raise InvalidVariableError(update.template_id, update.name)

    for update in updates:
        row = by_key[(update.template_id, update.name)]
        row.variable_value = update.value
        if update.type is not None:
            row.variable_type = update.type

    await db.flush()
    return rows


async def sync_container_variables(db: AsyncSession, container: Container) -> SyncResult:
    """
    Reconcile the variables of every video attached to a container.

    Creates empty rows for newly referenced placeholders and deletes rows whose
    template left the container or whose placeholder left the template.
    Existing values for keys that are still present are untouched.
    """
    video_ids = list(
        (await db.execute(select(Video.id).where(Video.container_id == container.id))).scalars(),
    )
    if not video_ids:
        return SyncResult()

    templates = await load_container_templates(db, container)
    keys = expected_variable_keys(templates)
    created = await _insert_missing_variables(db, video_ids, keys)

    expected = set(keys)
    existing = await db.execute(
        select(VideoVariable.id, VideoVariable.template_id, VideoVariable.variable_name)
        .where(VideoVariable.video_id.in_(video_ids)),
    )
    stale_ids = [
        row_id
        for row_id, template_id, name in existing.all()
        if (template_id, name) not in expected
    ]
    removed = 0
    if stale_ids:
        result = await db.execute(delete(VideoVariable).where(VideoVariable.id.in_(stale_ids)))
        removed = result.rowcount or 0

    await db.flush()
    if created or removed:
        logger.info(
            "Reconciled variables for container %s: %d created, %d removed",
            container.id,
            created,
            removed,
        )
    return SyncResult(created=created, removed=removed)
