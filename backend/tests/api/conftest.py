"""Shared fixtures for API tests."""
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import jwt
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_dispatcher
from api.main import app
from core.config import Settings, get_settings
from db.session import get_async_session
from models.user import User
from services import variable_service

JWT_SECRET = "api-test-secret-with-enough-length-for-hs256"

# Constant for non-existent entity ID
FAKE_UUID = "00000000-0000-0000-0000-000000000000"


def make_token(auth_subject: str, email: str | None = None) -> str:
    """Sign a bearer token the way the identity provider would."""
    claims = {"sub": auth_subject, "exp": int(time.time()) + 300}
    if email:
        claims["email"] = email
    return jwt.encode(claims, JWT_SECRET, algorithm="HS256")


@asynccontextmanager
async def create_authenticated_client(
    db_session: AsyncSession,
    token: str | None,
) -> AsyncGenerator[AsyncClient]:
    """
    Create an AsyncClient that goes through bearer authentication.

    Overrides settings to disable DEV_MODE and yields a client sending the
    given token (or none). Cleans up dependency overrides on exit.
    """
    get_settings.cache_clear()

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    def override_get_settings() -> Settings:
        return Settings(
            _env_file=None,
            database_url="postgresql://test",
            dev_mode=False,
            jwt_secret=JWT_SECRET,
        )

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_settings] = override_get_settings
    app.dependency_overrides[get_dispatcher] = lambda: None

    headers = {"Authorization": f"Bearer {token}"} if token else {}
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            headers=headers,
        ) as auth_client:
            yield auth_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
async def attached_video(
    db_session: AsyncSession, user: User, make_template, make_container, make_video,
) -> dict:
    """A video attached to a container of two templates sharing a placeholder."""
    hello = await make_template("Hello {{name}}", name="Hello")
    bye = await make_template("Bye {{name}}", name="Bye")
    container = await make_container([hello, bye], separator=" | ", name="Main")
    video = await make_video(current_description="original")
    await variable_service.attach_video_to_container(db_session, user.id, video.id, container.id)
    return {"video": video, "container": container, "hello": hello, "bye": bye}
