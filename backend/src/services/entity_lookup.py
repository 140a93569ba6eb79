"""
Ownership-scoped lookups shared by the composition services.

Every lookup is scoped to the requesting user; an entity owned by someone else
is reported exactly like a missing one.
"""
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.container import Container
from models.template import Template
from models.video import Video
from models.youtube_channel import YouTubeChannel
from services.exceptions import (
    ContainerNotFoundError,
    TemplateNotFoundError,
    VideoNotFoundError,
)


async def get_owned_template(db: AsyncSession, user_id: UUID, template_id: UUID) -> Template:
    """Get a template owned by the user or raise TemplateNotFoundError."""
    stmt = select(Template).where(Template.id == template_id, Template.user_id == user_id)
    template = (await db.execute(stmt)).scalar_one_or_none()
    if template is None:
        raise TemplateNotFoundError(template_id)
    return template


async def get_owned_container(
    db: AsyncSession, user_id: UUID, container_id: UUID,
) -> Container:
    """Get a container owned by the user or raise ContainerNotFoundError."""
    stmt = select(Container).where(
        Container.id == container_id, Container.user_id == user_id,
    )
    container = (await db.execute(stmt)).scalar_one_or_none()
    if container is None:
        raise ContainerNotFoundError(container_id)
    return container


async def get_owned_video(
    db: AsyncSession,
    user_id: UUID,
    video_id: UUID,
    for_update: bool = False,
) -> Video:
    """
    Get a video whose channel is owned by the user or raise VideoNotFoundError.

    Args:
        for_update: Lock the video row for the rest of the transaction.
    """
    stmt = (
        select(Video)
        .join(YouTubeChannel, Video.channel_id == YouTubeChannel.id)
        .where(Video.id == video_id, YouTubeChannel.user_id == user_id)
    )
    if for_update:
        stmt = stmt.with_for_update(of=Video)
    video = (await db.execute(stmt)).scalar_one_or_none()
    if video is None:
        raise VideoNotFoundError(video_id)
    return video


async def load_templates_in_order(
    db: AsyncSession,
    template_ids: Sequence[UUID],
    user_id: UUID | None = None,
) -> list[Template]:
    """
    Load templates and return them in the given order.

    Ids that no longer resolve (deleted templates, or templates of another
    user when ``user_id`` is given) are skipped.
    """
    if not template_ids:
        return []
    stmt = select(Template).where(Template.id.in_(list(template_ids)))
    if user_id is not None:
        stmt = stmt.where(Template.user_id == user_id)
    by_id = {template.id: template for template in (await db.execute(stmt)).scalars()}
    return [by_id[template_id] for template_id in template_ids if template_id in by_id]


async def load_container_templates(db: AsyncSession, container: Container) -> list[Template]:
    """Load a container's templates in composition order."""
    return await load_templates_in_order(db, container.template_ids, container.user_id)
