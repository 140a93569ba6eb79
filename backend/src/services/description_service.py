"""Compose a video's description from its container, templates and variables."""
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from models.container import Container
from models.video import Video
from services.entity_lookup import get_owned_video, load_container_templates
from services.exceptions import VideoNotAssignedError
from services.template_renderer import find_missing_variables, render_description
from services.variable_service import get_video_variables


@dataclass
class ComposedDescription:
    """A rendered description and what went into it."""

    description: str
    container_id: UUID
    template_count: int
    missing_variables: list[str] = field(default_factory=list)

    @property
    def character_count(self) -> int:
        """Length of the rendered description."""
        return len(self.description)


def system_values(video: Video) -> dict[str, str]:
    """Values of the placeholders the system fills in for a video."""
    return {"video-id": video.platform_video_id}


async def get_template_values(db: AsyncSession, video_id: UUID) -> dict[UUID, dict[str, str]]:
    """
    Get a video's variable values grouped by template.

    Blank values are kept, so a seeded placeholder renders as empty text.
    """
    values: dict[UUID, dict[str, str]] = {}
    for variable in await get_video_variables(db, video_id):
        values.setdefault(variable.template_id, {})[variable.variable_name] = (
            variable.variable_value
        )
    return values


async def compose_description(
    db: AsyncSession, video: Video, container: Container,
) -> ComposedDescription:
    """
    Render the description a video gets from a container.

    Used by both the preview endpoint and the push pipeline, so a preview
    always shows exactly what would be published.
    """
    templates = await load_container_templates(db, container)
    template_values = await get_template_values(db, video.id)
    values = system_values(video)
    return ComposedDescription(
        description=render_description(
            templates, values, container.separator, template_values,
        ),
        container_id=container.id,
        template_count=len(templates),
        missing_variables=find_missing_variables(templates, values, template_values),
    )


async def preview_description(
    db: AsyncSession, user_id: UUID, video_id: UUID,
) -> ComposedDescription:
    """
    Preview the description of a video owned by the user.

    Raises:
        VideoNotFoundError: If the video doesn't exist or isn't owned by the user.
        VideoNotAssignedError: If the video has no container.
    """
    video = await get_owned_video(db, user_id, video_id)
    if video.container_id is None:
        raise VideoNotAssignedError(video.id)
    container = await db.get(Container, video.container_id)
    if container is None:
        raise VideoNotAssignedError(video.id)
    return await compose_description(db, video, container)
