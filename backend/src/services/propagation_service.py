"""
Propagation of description-affecting edits to the videos that depend on them.

Each handler reconciles variable rows where the edit changes which placeholders
exist, resolves the affected video ids, hands them to the dispatcher and returns
them. Handlers are called only for description-affecting edits; renames never
reach this module.
"""
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from services.dispatch import DescriptionUpdateDispatcher
from services.entity_lookup import get_owned_container, get_owned_video
from services.impact_service import (
    find_containers_using_template,
    impact_of_container_change,
    impact_of_template_change,
)
from services.variable_service import sync_container_variables

logger = logging.getLogger(__name__)


async def on_template_content_changed(
    db: AsyncSession,
    user_id: UUID,
    template_id: UUID,
    dispatcher: DescriptionUpdateDispatcher,
) -> list[UUID]:
    """
    Propagate a template content edit.

    Placeholders added to the template get empty variable rows on every attached
    video; removed placeholders lose their rows.

    Returns:
        Ids of the videos whose descriptions will be regenerated.
    """
    for container in await find_containers_using_template(db, user_id, template_id):
        await sync_container_variables(db, container)

    impact = await impact_of_template_change(db, user_id, template_id)
    if impact.is_empty:
        logger.info("Template %s change affects no videos", template_id)
        return []

    await dispatcher.dispatch(impact.video_ids, user_id)
    logger.info(
        "Template %s change cascades to %d video(s) in %d container(s)",
        template_id,
        len(impact.video_ids),
        len(impact.containers),
    )
    return impact.video_ids


async def on_container_composition_changed(
    db: AsyncSession,
    user_id: UUID,
    container_id: UUID,
    dispatcher: DescriptionUpdateDispatcher,
) -> list[UUID]:
    """
    Propagate a change to a container's template order or separator.

    Returns:
        Ids of the videos whose descriptions will be regenerated.
    """
    container = await get_owned_container(db, user_id, container_id)
    await sync_container_variables(db, container)

    impact = await impact_of_container_change(db, user_id, container_id)
    if impact.is_empty:
        logger.info("Container %s change affects no videos", container_id)
        return []

    await dispatcher.dispatch(impact.video_ids, user_id)
    logger.info(
        "Container %s change cascades to %d video(s)",
        container_id,
        len(impact.video_ids),
    )
    return impact.video_ids


async def on_variable_changed(
    db: AsyncSession,
    user_id: UUID,
    video_id: UUID,
    dispatcher: DescriptionUpdateDispatcher,
) -> list[UUID]:
    """
    Propagate a variable edit: only the video owning the variable is regenerated.

    Raises:
        VideoNotFoundError: If the video doesn't exist or isn't owned by the user.
    """
    video = await get_owned_video(db, user_id, video_id)
    await dispatcher.dispatch([video.id], user_id)
    return [video.id]
