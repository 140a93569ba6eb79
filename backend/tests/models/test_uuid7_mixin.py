"""Tests for UUIDv7Mixin and TimestampMixin on the composer models."""
import time

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid6 import uuid7

from models.base import UUIDv7Mixin
from models.template import Template
from models.user import User


class TestUUIDv7Mixin:
    """Tests for the UUIDv7Mixin class."""

    def test__uuid7_mixin__has_id_attribute(self) -> None:
        """Test that UUIDv7Mixin defines an id attribute."""
        assert hasattr(UUIDv7Mixin, "id")

    async def test__flush__assigns_id_and_timestamps(
        self, db_session: AsyncSession, user: User,
    ) -> None:
        """Test that ids and timestamps are available right after flush."""
        template = Template(user_id=user.id, name="Intro", content="Hi")
        db_session.add(template)
        await db_session.flush()

        assert template.id.version == 7
        assert template.created_at is not None
        assert template.updated_at is not None

    async def test__explicit_id__is_kept(self, db_session: AsyncSession, user: User) -> None:
        """Test that a provided id is used instead of a generated one."""
        custom = uuid7()
        db_session.add(Template(id=custom, user_id=user.id, name="Seeded", content=""))
        await db_session.flush()

        fetched = await db_session.get(Template, custom)
        assert fetched is not None
        assert fetched.name == "Seeded"

    async def test__ordering_by_id__follows_insertion_order(
        self, db_session: AsyncSession, user: User,
    ) -> None:
        """Test that ordering by id returns rows in the order they were created."""
        names = [f"T{i}" for i in range(5)]
        for name in names:
            db_session.add(Template(user_id=user.id, name=name, content=""))
            await db_session.flush()
            time.sleep(0.002)

        result = await db_session.execute(
            select(Template.name).where(Template.user_id == user.id).order_by(Template.id),
        )
        assert list(result.scalars()) == names
