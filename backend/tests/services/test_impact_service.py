"""Tests for change-impact resolution and propagation handlers."""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from uuid6 import uuid7

from models.user import User
from schemas.container import ContainerUpdate
from schemas.template import TemplateUpdate
from services import variable_service
from services.container_service import container_service
from services.exceptions import ContainerNotFoundError, TemplateNotFoundError
from services.impact_service import (
    count_videos_by_container,
    impact_of_container_change,
    impact_of_template_change,
)
from services.propagation_service import (
    on_container_composition_changed,
    on_template_content_changed,
    on_variable_changed,
)
from services.template_service import template_service


@pytest.fixture
async def shared_template_setup(
    db_session: AsyncSession, user: User, make_template, make_container, make_video,
) -> dict:
    """
    Template X used by containers A and B; videos 1 and 2 in A, video 3 in B.

    Video 4 is attached to container C, which does not use X.
    """
    x = await make_template("Sponsored by {{sponsor}}", name="X")
    other = await make_template("Other {{thing}}", name="Other")
    a = await make_container([x], name="A")
    b = await make_container([other, x], name="B")
    c = await make_container([other], name="C")
    videos = [await make_video() for _ in range(4)]
    for video, container in zip(videos, [a, a, b, c], strict=True):
        await variable_service.attach_video_to_container(
            db_session, user.id, video.id, container.id,
        )
    return {"x": x, "other": other, "a": a, "b": b, "c": c, "videos": videos}


class TestImpactOfTemplateChange:
    """Tests for impact_of_template_change."""

    async def test__template_in_two_containers__affects_all_their_videos(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict,
    ) -> None:
        """Test the {1,2,3} example: every video of every container using X."""
        setup = shared_template_setup
        v1, v2, v3, _ = setup["videos"]

        impact = await impact_of_template_change(db_session, user.id, setup["x"].id)

        assert set(impact.video_ids) == {v1.id, v2.id, v3.id}
        assert len(impact.video_ids) == 3
        counts = {c.name: c.video_count for c in impact.containers}
        assert counts == {"A": 2, "B": 1}

    async def test__unused_template__affects_nothing(
        self, db_session: AsyncSession, user: User, make_template,
    ) -> None:
        """Test that a change hitting zero videos is a cheap no-op."""
        template = await make_template("{{a}}")
        impact = await impact_of_template_change(db_session, user.id, template.id)
        assert impact.is_empty
        assert impact.containers == []

    async def test__template_of_another_user__is_not_found(
        self, db_session: AsyncSession, other_user: User, shared_template_setup: dict,
    ) -> None:
        """Test ownership scoping."""
        with pytest.raises(TemplateNotFoundError):
            await impact_of_template_change(
                db_session, other_user.id, shared_template_setup["x"].id,
            )


class TestImpactOfContainerChange:
    """Tests for impact_of_container_change."""

    async def test__container__affects_its_videos_only(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict,
    ) -> None:
        """Test that only the container's own videos are affected."""
        setup = shared_template_setup
        v1, v2, _, _ = setup["videos"]
        impact = await impact_of_container_change(db_session, user.id, setup["a"].id)
        assert set(impact.video_ids) == {v1.id, v2.id}

    async def test__unknown_container__is_not_found(
        self, db_session: AsyncSession, user: User,
    ) -> None:
        """Test a container id that does not resolve."""
        with pytest.raises(ContainerNotFoundError):
            await impact_of_container_change(db_session, user.id, uuid7())

    async def test__count_videos_by_container(
        self, db_session: AsyncSession, shared_template_setup: dict, make_container,
    ) -> None:
        """Test per-container counts, including empty containers."""
        setup = shared_template_setup
        empty = await make_container([], name="Empty")
        counts = await count_videos_by_container(
            db_session, [setup["a"].id, setup["b"].id, empty.id],
        )
        assert counts == {setup["a"].id: 2, setup["b"].id: 1, empty.id: 0}


class TestPropagation:
    """Tests for the propagation handlers and the edits that call them."""

    async def test__content_edit__dispatches_affected_videos(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict, dispatcher,
    ) -> None:
        """Test that editing X's content regenerates videos 1, 2 and 3."""
        setup = shared_template_setup
        v1, v2, v3, _ = setup["videos"]

        _, affected = await template_service.update(
            db_session,
            user.id,
            setup["x"].id,
            TemplateUpdate(content="Thanks to {{sponsor}}!"),
            dispatcher,
        )

        assert set(affected) == {v1.id, v2.id, v3.id}
        assert set(dispatcher.video_ids) == {v1.id, v2.id, v3.id}
        assert dispatcher.calls[0][1] == user.id

    async def test__rename__dispatches_nothing(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict, dispatcher,
    ) -> None:
        """Test that renaming X (content untouched) yields the empty set."""
        template, affected = await template_service.update(
            db_session,
            user.id,
            shared_template_setup["x"].id,
            TemplateUpdate(name="Renamed X"),
            dispatcher,
        )
        assert template.name == "Renamed X"
        assert affected == []
        assert dispatcher.calls == []

    async def test__same_content__dispatches_nothing(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict, dispatcher,
    ) -> None:
        """Test that re-saving identical content is not a content change."""
        _, affected = await template_service.update(
            db_session,
            user.id,
            shared_template_setup["x"].id,
            TemplateUpdate(content="Sponsored by {{sponsor}}"),
            dispatcher,
        )
        assert affected == []
        assert dispatcher.calls == []

    async def test__content_edit__reconciles_variables(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict, dispatcher,
    ) -> None:
        """Test that a new placeholder gets rows on every affected video."""
        setup = shared_template_setup
        v3 = setup["videos"][2]
        await template_service.update(
            db_session,
            user.id,
            setup["x"].id,
            TemplateUpdate(content="{{sponsor}} - {{code}}"),
            dispatcher,
        )
        rows = await variable_service.get_video_variables(db_session, v3.id)
        assert {(r.template_id, r.variable_name) for r in rows} == {
            (setup["other"].id, "thing"),
            (setup["x"].id, "sponsor"),
            (setup["x"].id, "code"),
        }

    async def test__on_template_content_changed__unused_template(
        self, db_session: AsyncSession, user: User, make_template, dispatcher,
    ) -> None:
        """Test the zero-impact path of the handler."""
        template = await make_template("{{a}}")
        affected = await on_template_content_changed(db_session, user.id, template.id, dispatcher)
        assert affected == []
        assert dispatcher.calls == []

    async def test__container_reorder__dispatches_its_videos(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict, dispatcher,
    ) -> None:
        """Test that reordering a container regenerates its videos only."""
        setup = shared_template_setup
        v3 = setup["videos"][2]
        container, affected = await container_service.update(
            db_session,
            user.id,
            setup["b"].id,
            ContainerUpdate(template_ids=[setup["x"].id, setup["other"].id]),
            dispatcher,
        )
        assert container.template_ids == [setup["x"].id, setup["other"].id]
        assert affected == [v3.id]
        assert dispatcher.video_ids == [v3.id]

    async def test__container_separator_change__dispatches_its_videos(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict, dispatcher,
    ) -> None:
        """Test that a separator change is description-affecting."""
        setup = shared_template_setup
        v1, v2, _, _ = setup["videos"]
        _, affected = await container_service.update(
            db_session, user.id, setup["a"].id, ContainerUpdate(separator=" | "), dispatcher,
        )
        assert set(affected) == {v1.id, v2.id}

    async def test__container_rename__dispatches_nothing(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict, dispatcher,
    ) -> None:
        """Test that renaming a container is not description-affecting."""
        setup = shared_template_setup
        _, affected = await container_service.update(
            db_session,
            user.id,
            setup["a"].id,
            ContainerUpdate(name="Renamed", template_ids=[setup["x"].id]),
            dispatcher,
        )
        assert affected == []
        assert dispatcher.calls == []

    async def test__on_container_composition_changed__removes_dropped_template_rows(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict, dispatcher,
    ) -> None:
        """Test that dropping a template from the order purges its rows."""
        setup = shared_template_setup
        v3 = setup["videos"][2]
        setup["b"].template_order = [str(setup["other"].id)]
        await db_session.flush()

        affected = await on_container_composition_changed(
            db_session, user.id, setup["b"].id, dispatcher,
        )

        assert affected == [v3.id]
        rows = await variable_service.get_video_variables(db_session, v3.id)
        assert {r.template_id for r in rows} == {setup["other"].id}

    async def test__on_variable_changed__dispatches_only_that_video(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict, dispatcher,
    ) -> None:
        """Test that a variable edit recomputes only its own video."""
        v1 = shared_template_setup["videos"][0]
        affected = await on_variable_changed(db_session, user.id, v1.id, dispatcher)
        assert affected == [v1.id]
        assert dispatcher.calls == [([v1.id], user.id)]

    async def test__template_delete__removes_it_from_containers_and_dispatches(
        self, db_session: AsyncSession, user: User, shared_template_setup: dict, dispatcher,
    ) -> None:
        """Test that deleting X strips it from A and B and regenerates their videos."""
        setup = shared_template_setup
        v1, v2, v3, _ = setup["videos"]

        result = await template_service.delete(db_session, user.id, setup["x"].id, dispatcher)

        assert result.containers_updated == 2
        assert set(result.affected_video_ids) == {v1.id, v2.id, v3.id}
        assert setup["a"].template_order == []
        assert setup["b"].template_ids == [setup["other"].id]
        assert await variable_service.count_variables(db_session, v1.id) == 0
        rows = await variable_service.get_video_variables(db_session, v3.id)
        assert [(r.template_id, r.variable_name) for r in rows] == [
            (setup["other"].id, "thing"),
        ]
