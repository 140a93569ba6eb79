"""
Change-impact resolution.

Answers "which videos must be regenerated?" for a template or container edit.
Results are computed from the current rows on every call; nothing is cached.
"""
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.container import Container
from models.video import Video
from services.entity_lookup import get_owned_container, get_owned_template


@dataclass
class AffectedContainer:
    """A container touched by a change, with its attached video count."""

    id: UUID
    name: str
    video_count: int


@dataclass
class ImpactResult:
    """Videos to regenerate and the containers they were reached through."""

    video_ids: list[UUID] = field(default_factory=list)
    containers: list[AffectedContainer] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """Whether the change affects no video at all."""
        return not self.video_ids


async def find_containers_using_template(
    db: AsyncSession, user_id: UUID, template_id: UUID,
) -> list[Container]:
    """
    Find the user's containers whose composition includes the template.

    The order list is filtered in Python so the lookup behaves the same on
    JSON and JSONB columns.
    """
    stmt = select(Container).where(Container.user_id == user_id).order_by(Container.created_at)
    containers = (await db.execute(stmt)).scalars().all()
    return [container for container in containers if container.references(template_id)]


async def _attached_video_ids(db: AsyncSession, container_ids: list[UUID]) -> dict[UUID, list[UUID]]:
    if not container_ids:
        return {}
    stmt = (
        select(Video.container_id, Video.id)
        .where(Video.container_id.in_(container_ids))
        .order_by(Video.id)
    )
    by_container: dict[UUID, list[UUID]] = {container_id: [] for container_id in container_ids}
    for container_id, video_id in (await db.execute(stmt)).all():
        by_container[container_id].append(video_id)
    return by_container


async def _resolve(db: AsyncSession, containers: list[Container]) -> ImpactResult:
    by_container = await _attached_video_ids(db, [c.id for c in containers])
    result = ImpactResult()
    for container in containers:
        video_ids = by_container.get(container.id, [])
        result.containers.append(
            AffectedContainer(id=container.id, name=container.name, video_count=len(video_ids)),
        )
        # A video has at most one container, so ids never repeat across containers
        result.video_ids.extend(video_ids)
    return result


async def impact_of_template_change(
    db: AsyncSession, user_id: UUID, template_id: UUID,
) -> ImpactResult:
    """
    Resolve the videos affected by a change to a template's content.

    Raises:
        TemplateNotFoundError: If the template doesn't exist or isn't owned by the user.
    """
    await get_owned_template(db, user_id, template_id)
    containers = await find_containers_using_template(db, user_id, template_id)
    return await _resolve(db, containers)


async def impact_of_container_change(
    db: AsyncSession, user_id: UUID, container_id: UUID,
) -> ImpactResult:
    """
    Resolve the videos affected by a change to a container's composition.

    Raises:
        ContainerNotFoundError: If the container doesn't exist or isn't owned by the user.
    """
    container = await get_owned_container(db, user_id, container_id)
    return await _resolve(db, [container])


async def count_videos_by_container(
    db: AsyncSession, container_ids: list[UUID],
) -> dict[UUID, int]:
    """Count attached videos per container (containers without videos map to 0)."""
    counts = dict.fromkeys(container_ids, 0)
    if not container_ids:
        return counts
    stmt = (
        select(Video.container_id, func.count())
        .where(Video.container_id.in_(container_ids))
        .group_by(Video.container_id)
    )
    for container_id, count in (await db.execute(stmt)).all():
        counts[container_id] = count
    return counts
