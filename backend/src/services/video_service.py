"""Read access to the videos of the user's channels."""
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.video import Video
from models.youtube_channel import YouTubeChannel
from services.entity_lookup import get_owned_video
from services.utils import escape_like


async def search_videos(
    db: AsyncSession,
    user_id: UUID,
    container_id: UUID | None = None,
    unassigned: bool = False,
    query: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[Video], int]:
    """
    List the user's videos, most recently published first.

    Args:
        db: Database session.
        user_id: Owner of the videos' channels.
        container_id: Only videos attached to this container.
        unassigned: Only videos without a container. Ignored when
            ``container_id`` is given.
        query: Case-insensitive match on title or platform video id.
        offset: Pagination offset.
        limit: Pagination limit.

    Returns:
        Tuple of (videos, total count).
    """
    stmt = (
        select(Video)
        .join(YouTubeChannel, Video.channel_id == YouTubeChannel.id)
        .where(YouTubeChannel.user_id == user_id)
    )
    if container_id is not None:
        stmt = stmt.where(Video.container_id == container_id)
    elif unassigned:
        stmt = stmt.where(Video.container_id.is_(None))
    if query:
        pattern = f"%{escape_like(query)}%"
        stmt = stmt.where(
            or_(
                Video.title.ilike(pattern, escape="\\"),
                Video.platform_video_id.ilike(pattern, escape="\\"),
            ),
        )

    total = (
        await db.execute(select(func.count()).select_from(stmt.subquery()))
    ).scalar_one()

    stmt = (
        stmt.order_by(Video.published_at.desc().nulls_last(), Video.id.desc())
        .offset(offset)
        .limit(limit)
    )
    return list((await db.execute(stmt)).scalars().all()), total


async def get_video(db: AsyncSession, user_id: UUID, video_id: UUID) -> Video:
    """Get a video whose channel is owned by the user."""
    return await get_owned_video(db, user_id, video_id)


async def get_owned_video_ids(
    db: AsyncSession, user_id: UUID, video_ids: list[UUID],
) -> list[UUID]:
    """Filter ids down to the user's videos, keeping the given order."""
    if not video_ids:
        return []
    stmt = (
        select(Video.id)
        .join(YouTubeChannel, Video.channel_id == YouTubeChannel.id)
        .where(Video.id.in_(video_ids), YouTubeChannel.user_id == user_id)
    )
    owned = set((await db.execute(stmt)).scalars())
    return [video_id for video_id in dict.fromkeys(video_ids) if video_id in owned]
