"""Template service with CRUD operations and change propagation."""
import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.template import Template
from schemas.template import TemplateCreate, TemplateUpdate
from services.dispatch import DescriptionUpdateDispatcher
from services.entity_lookup import get_owned_template
from services.impact_service import find_containers_using_template, impact_of_template_change
from services.propagation_service import on_template_content_changed
from services.variable_service import sync_container_variables

logger = logging.getLogger(__name__)


@dataclass
class TemplateDeleteResult:
    """What a template deletion touched."""

    containers_updated: int = 0
    affected_video_ids: list[UUID] = field(default_factory=list)


class TemplateService:
    """Service for template CRUD operations."""

    async def create(self, db: AsyncSession, user_id: UUID, data: TemplateCreate) -> Template:
        """Create a template. A new template is in no container, so nothing cascades."""
        template = Template(user_id=user_id, name=data.name, content=data.content)
        db.add(template)
        await db.flush()
        await db.refresh(template)
        return template

    async def search(
        self,
        db: AsyncSession,
        user_id: UUID,
        offset: int = 0,
        limit: int = 50,
    ) -> tuple[list[Template], int]:
        """
        List the user's templates, newest first.

        Returns:
            Tuple of (templates, total count).
        """
        count_stmt = select(func.count()).select_from(Template).where(Template.user_id == user_id)
        total = (await db.execute(count_stmt)).scalar_one()

        stmt = (
            select(Template)
            .where(Template.user_id == user_id)
            .order_by(Template.created_at.desc(), Template.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list((await db.execute(stmt)).scalars().all()), total

    async def get(self, db: AsyncSession, user_id: UUID, template_id: UUID) -> Template:
        """Get a template owned by the user."""
        return await get_owned_template(db, user_id, template_id)

    async def update(
        self,
        db: AsyncSession,
        user_id: UUID,
        template_id: UUID,
        data: TemplateUpdate,
        dispatcher: DescriptionUpdateDispatcher,
    ) -> tuple[Template, list[UUID]]:
        """
        Update a template and regenerate dependent videos if its content changed.

        Returns:
            Tuple of (updated template, ids of the videos queued for regeneration).
        """
        template = await get_owned_template(db, user_id, template_id)
        updates = data.model_dump(exclude_unset=True, exclude_none=True)

        content_changed = "content" in updates and updates["content"] != template.content
        for key, value in updates.items():
            setattr(template, key, value)
        await db.flush()

        affected: list[UUID] = []
        if content_changed:
            affected = await on_template_content_changed(db, user_id, template.id, dispatcher)

        await db.refresh(template)
        return template, affected

    async def delete(
        self,
        db: AsyncSession,
        user_id: UUID,
        template_id: UUID,
        dispatcher: DescriptionUpdateDispatcher,
    ) -> TemplateDeleteResult:
        """
        Delete a template.

        The template is first removed from every container that uses it, so
        the videos of those containers lose its segment and its variables, and
        are regenerated.
        """
        template = await get_owned_template(db, user_id, template_id)
        impact = await impact_of_template_change(db, user_id, template.id)
        containers = await find_containers_using_template(db, user_id, template.id)

        for container in containers:
            container.template_order = [
                entry for entry in container.template_order if str(entry) != str(template.id)
            ]
        await db.delete(template)
        await db.flush()

        for container in containers:
            await sync_container_variables(db, container)

        if not impact.is_empty:
            await dispatcher.dispatch(impact.video_ids, user_id)
        logger.info(
            "Deleted template %s (removed from %d container(s), %d video(s) affected)",
            template_id,
            len(containers),
            len(impact.video_ids),
        )
        return TemplateDeleteResult(
            containers_updated=len(containers),
            affected_video_ids=impact.video_ids,
        )


template_service = TemplateService()
