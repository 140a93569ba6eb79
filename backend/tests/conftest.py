"""Pytest fixtures for testing."""
import os

# Must be set before any app import that triggers Settings validation
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
# Ensure tests run in dev mode (bypasses auth) regardless of local .env
os.environ["DEV_MODE"] = "true"

from collections.abc import AsyncGenerator, Awaitable, Callable, Sequence  # noqa: E402
from typing import Any  # noqa: E402
from uuid import UUID  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from core.auth import get_or_create_dev_user  # noqa: E402
from models.base import Base  # noqa: E402
from models.container import Container  # noqa: E402
from models.template import Template  # noqa: E402
from models.user import User  # noqa: E402
from models.video import Video  # noqa: E402
from models.youtube_channel import YouTubeChannel  # noqa: E402
from services.dispatch import DispatchError  # noqa: E402


class RecordingDispatcher:
    """Dispatcher that records requests instead of running the push pipeline."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[UUID], UUID | None]] = []

    async def dispatch(self, video_ids: Sequence[UUID], actor_id: UUID | None) -> None:
        if video_ids:
            self.calls.append((list(video_ids), actor_id))

    @property
    def video_ids(self) -> list[UUID]:
        """All video ids requested so far, in order."""
        return [video_id for ids, _ in self.calls for video_id in ids]


class FailingDispatcher:
    """Dispatcher whose requests are always refused."""

    async def dispatch(self, video_ids: Sequence[UUID], actor_id: UUID | None) -> None:
        raise DispatchError("queue unavailable")


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """
    Create a fresh in-memory SQLite database for each test.

    pysqlite's own transaction handling breaks SAVEPOINT, so the driver is put
    in autocommit mode and SQLAlchemy emits BEGIN itself.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create an async session on the per-test database."""
    session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    """The DEV_MODE user, which is also the user API requests run as."""
    return await get_or_create_dev_user(db_session)


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    """A second user, for ownership checks."""
    other = User(auth_subject="auth|other-user", email="other@example.com")
    db_session.add(other)
    await db_session.flush()
    return other


@pytest.fixture
async def channel(db_session: AsyncSession, user: User) -> YouTubeChannel:
    """A channel owned by the dev user."""
    channel = YouTubeChannel(
        user_id=user.id, platform_channel_id="UC-main-channel", title="Main Channel",
    )
    db_session.add(channel)
    await db_session.flush()
    return channel


@pytest.fixture
def make_template(
    db_session: AsyncSession, user: User,
) -> Callable[..., Awaitable[Template]]:
    """Factory for templates (owned by the dev user unless ``owner`` is given)."""
    async def _make(
        content: str, name: str = "Template", owner: User | None = None,
    ) -> Template:
        template = Template(user_id=(owner or user).id, name=name, content=content)
        db_session.add(template)
        await db_session.flush()
        return template

    return _make


@pytest.fixture
def make_container(
    db_session: AsyncSession, user: User,
) -> Callable[..., Awaitable[Container]]:
    """Factory for containers over existing templates."""
    async def _make(
        templates: Sequence[Template] = (),
        separator: str = "\n\n",
        name: str = "Container",
        owner: User | None = None,
    ) -> Container:
        container = Container(
            user_id=(owner or user).id,
            name=name,
            template_order=[str(t.id) for t in templates],
            separator=separator,
        )
        db_session.add(container)
        await db_session.flush()
        return container

    return _make


@pytest.fixture
def make_video(
    db_session: AsyncSession, channel: YouTubeChannel,
) -> Callable[..., Awaitable[Video]]:
    """Factory for videos on the dev user's channel."""
    counter = {"n": 0}

    async def _make(
        current_description: str | None = None,
        title: str | None = None,
        channel_id: UUID | None = None,
    ) -> Video:
        counter["n"] += 1
        video = Video(
            channel_id=channel_id or channel.id,
            platform_video_id=f"vid{counter['n']:08d}",
            title=title or f"Video {counter['n']}",
            current_description=current_description,
        )
        db_session.add(video)
        await db_session.flush()
        return video

    return _make


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    """A dispatcher that records what would have been pushed."""
    return RecordingDispatcher()


@pytest.fixture
def failing_dispatcher() -> FailingDispatcher:
    """A dispatcher that refuses every request."""
    return FailingDispatcher()


@pytest.fixture
async def client(
    db_session: AsyncSession,
    dispatcher: RecordingDispatcher,
) -> AsyncGenerator[AsyncClient]:
    """Create a test client with database session and dispatcher overrides."""
    # Clear the settings cache so it picks up DATABASE_URL from environment
    from core.config import get_settings

    get_settings.cache_clear()

    from api.dependencies import get_dispatcher
    from api.main import app
    from db.session import get_async_session

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
