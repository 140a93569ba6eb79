"""FastAPI dependencies for injection."""
from fastapi import BackgroundTasks

from core.auth import get_current_user
from core.config import get_settings
from db.session import get_async_session
from services.dispatch import BackgroundTaskDispatcher, DescriptionUpdateDispatcher


def get_dispatcher(background_tasks: BackgroundTasks) -> DescriptionUpdateDispatcher:
    """Dispatcher that runs description updates after the response is sent."""
    return BackgroundTaskDispatcher(background_tasks)


__all__ = [
    "get_async_session",
    "get_current_user",
    "get_dispatcher",
    "get_settings",
]
