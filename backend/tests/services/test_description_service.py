"""Tests for composing and previewing video descriptions."""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User
from schemas.variable import VariableUpdate
from services import variable_service
from services.description_service import (
    compose_description,
    get_template_values,
    preview_description,
)
from services.exceptions import VideoNotAssignedError, VideoNotFoundError


async def _attach_with_values(
    db_session: AsyncSession, user: User, video, container, values: dict,  # noqa: ANN001
) -> None:
    await variable_service.attach_video_to_container(db_session, user.id, video.id, container.id)
    await variable_service.update_variables(
        db_session,
        user.id,
        video.id,
        [
            VariableUpdate(template_id=template_id, name=name, value=value)
            for (template_id, name), value in values.items()
        ],
    )


class TestPreviewDescription:
    """Tests for preview_description."""

    async def test__preview__renders_templates_in_container_order(
        self, db_session: AsyncSession, user: User, make_template, make_container, make_video,
    ) -> None:
        """Test the two-template example through the database."""
        hello = await make_template("Hello {{name}}")
        bye = await make_template("Bye {{name}}")
        container = await make_container([hello, bye], separator=" | ")
        video = await make_video()
        await _attach_with_values(
            db_session, user, video, container,
            {(hello.id, "name"): "Sam", (bye.id, "name"): "Sam"},
        )

        preview = await preview_description(db_session, user.id, video.id)

        assert preview.description == "Hello Sam | Bye Sam"
        assert preview.character_count == len("Hello Sam | Bye Sam")
        assert preview.template_count == 2
        assert preview.container_id == container.id
        assert preview.missing_variables == []

    async def test__preview__fills_in_video_id(
        self, db_session: AsyncSession, user: User, make_template, make_container, make_video,
    ) -> None:
        """Test that the system placeholder needs no variable row."""
        template = await make_template("https://youtu.be/{{video-id}}")
        container = await make_container([template])
        video = await make_video()
        await variable_service.attach_video_to_container(
            db_session, user.id, video.id, container.id,
        )

        preview = await preview_description(db_session, user.id, video.id)

        assert preview.description == f"https://youtu.be/{video.platform_video_id}"
        assert preview.missing_variables == []

    async def test__preview__blank_values_render_empty_and_are_reported(
        self, db_session: AsyncSession, user: User, make_template, make_container, make_video,
    ) -> None:
        """Test that a seeded blank renders as empty text and is listed as missing."""
        template = await make_template("Use {{coupon}} for {{discount}}")
        container = await make_container([template])
        video = await make_video()
        await _attach_with_values(
            db_session, user, video, container, {(template.id, "discount"): "10%"},
        )

        preview = await preview_description(db_session, user.id, video.id)

        assert preview.description == "Use  for 10%"
        assert preview.missing_variables == ["coupon"]

    async def test__preview__same_name_in_two_templates_is_independent(
        self, db_session: AsyncSession, user: User, make_template, make_container, make_video,
    ) -> None:
        """Test that each template resolves its own row for a shared name."""
        first = await make_template("{{name}}")
        second = await make_template("{{name}}")
        container = await make_container([first, second], separator="/")
        video = await make_video()
        await _attach_with_values(
            db_session, user, video, container,
            {(first.id, "name"): "Ann", (second.id, "name"): "Bob"},
        )

        preview = await preview_description(db_session, user.id, video.id)

        assert preview.description == "Ann/Bob"

    async def test__preview__unattached_video_is_rejected(
        self, db_session: AsyncSession, user: User, make_video,
    ) -> None:
        """Test that a video under manual control has nothing to preview."""
        video = await make_video()
        with pytest.raises(VideoNotAssignedError):
            await preview_description(db_session, user.id, video.id)

    async def test__preview__video_of_another_user_is_not_found(
        self, db_session: AsyncSession, other_user: User, make_video,
    ) -> None:
        """Test ownership scoping."""
        video = await make_video()
        with pytest.raises(VideoNotFoundError):
            await preview_description(db_session, other_user.id, video.id)


class TestComposeDescription:
    """Tests for compose_description and its inputs."""

    async def test__compose__empty_container_renders_empty_string(
        self, db_session: AsyncSession, make_container, make_video,
    ) -> None:
        """Test a container with no templates."""
        container = await make_container([])
        video = await make_video()
        composed = await compose_description(db_session, video, container)
        assert composed.description == ""
        assert composed.template_count == 0

    async def test__get_template_values__keeps_blank_values(
        self, db_session: AsyncSession, user: User, make_template, make_container, make_video,
    ) -> None:
        """Test that seeded blanks are grouped by template alongside filled values."""
        template = await make_template("{{a}} {{b}}")
        container = await make_container([template])
        video = await make_video()
        await _attach_with_values(db_session, user, video, container, {(template.id, "a"): "1"})

        values = await get_template_values(db_session, video.id)

        assert values == {template.id: {"a": "1", "b": ""}}
