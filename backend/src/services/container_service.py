"""Container service with CRUD operations and change propagation."""
import logging
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import get_settings
from models.container import Container
from models.template import Template
from models.video import Video
from schemas.container import ContainerCreate, ContainerUpdate
from services.dispatch import DescriptionUpdateDispatcher
from services.entity_lookup import get_owned_container
from services.exceptions import InvalidTemplateOrderError
from services.propagation_service import on_container_composition_changed
from services.variable_service import clear_video_assignment

logger = logging.getLogger(__name__)


async def _validate_template_order(
    db: AsyncSession, user_id: UUID, template_ids: Sequence[UUID],
) -> list[str]:
    """
    Check a template order and return it in its stored form.

    Raises:
        InvalidTemplateOrderError: If a template repeats or is not one of the user's.
    """
    seen: set[UUID] = set()
    for template_id in template_ids:
        if template_id in seen:
            raise InvalidTemplateOrderError(
                f"Template {template_id} appears more than once in the container",
            )
        seen.add(template_id)

    if seen:
        stmt = select(Template.id).where(Template.id.in_(seen), Template.user_id == user_id)
        found = set((await db.execute(stmt)).scalars())
        unknown = [template_id for template_id in template_ids if template_id not in found]
        if unknown:
            raise InvalidTemplateOrderError(f"Template not found: {unknown[0]}")

    return [str(template_id) for template_id in template_ids]


class ContainerService:
    """Service for container CRUD operations."""

    async def create(self, db: AsyncSession, user_id: UUID, data: ContainerCreate) -> Container:
        """Create a container. A new container has no videos, so nothing cascades."""
        template_order = await _validate_template_order(db, user_id, data.template_ids)
        separator = data.separator if data.separator is not None else (
            get_settings().default_separator
        )
        container = Container(
            user_id=user_id,
            name=data.name,
            template_order=template_order,
            separator=separator,
        )
        db.add(container)
        await db.flush()
        await db.refresh(container)
        return container

    async def search(
        self,
        db: AsyncSession,
        user_id: UUID,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Container], int]:
        """
        List the user's containers, newest first.

        Returns:
            Tuple of (containers, total count).
        """
        count_stmt = select(func.count()).select_from(Container).where(
            Container.user_id == user_id,
        )
        total = (await db.execute(count_stmt)).scalar_one()

        stmt = (
            select(Container)
            .where(Container.user_id == user_id)
            .order_by(Container.created_at.desc(), Container.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list((await db.execute(stmt)).scalars().all()), total

    async def get(self, db: AsyncSession, user_id: UUID, container_id: UUID) -> Container:
        """Get a container owned by the user."""
        return await get_owned_container(db, user_id, container_id)

    async def update(
        self,
        db: AsyncSession,
        user_id: UUID,
        container_id: UUID,
        data: ContainerUpdate,
        dispatcher: DescriptionUpdateDispatcher,
    ) -> tuple[Container, list[UUID]]:
        """
        Update a container and regenerate its videos if the composition changed.

        Only a different template order or separator counts as a composition
        change.

        Returns:
            Tuple of (updated container, ids of the videos queued for regeneration).
        """
        container = await get_owned_container(db, user_id, container_id)
        composition_changed = False

        if data.name is not None:
            container.name = data.name

        if data.template_ids is not None:
            template_order = await _validate_template_order(db, user_id, data.template_ids)
            if template_order != [str(t) for t in container.template_order]:
                container.template_order = template_order
                composition_changed = True

        if data.separator is not None and data.separator != container.separator:
            container.separator = data.separator
            composition_changed = True

        await db.flush()

        affected: list[UUID] = []
        if composition_changed:
            affected = await on_container_composition_changed(
                db, user_id, container.id, dispatcher,
            )

        await db.refresh(container)
        return container, affected

    async def delete(self, db: AsyncSession, user_id: UUID, container_id: UUID) -> int:
        """
        Delete a container.

        Its videos are detached and their variables purged; their current
        descriptions stay as they are.

        Returns:
            Number of videos detached.
        """
        container = await get_owned_container(db, user_id, container_id)
        videos = (
            await db.execute(select(Video).where(Video.container_id == container.id))
        ).scalars().all()
        for video in videos:
            await clear_video_assignment(db, video)

        await db.delete(container)
        await db.flush()
        logger.info("Deleted container %s (%d video(s) detached)", container_id, len(videos))
        return len(videos)


container_service = ContainerService()
