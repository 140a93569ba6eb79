"""
Seam between the composition engine and the description push pipeline.

Services only ask for "recompute and push these videos"; how and when that
happens is up to the dispatcher. Requests are fire-and-forget: the caller never
waits for the platform.
"""
import logging
from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from fastapi import BackgroundTasks

from tasks.update_descriptions import run_description_updates

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    """Raised when a recompute request could not be handed off."""


class DescriptionUpdateDispatcher(Protocol):
    """Requests description recomputation and push for a set of videos."""

    async def dispatch(self, video_ids: Sequence[UUID], actor_id: UUID | None) -> None:
        """
        Request recomputation for the given videos.

        Raises:
            DispatchError: If the request could not be accepted.
        """
        ...


class BackgroundTaskDispatcher:
    """
    Runs the push pipeline after the response is sent.

    The route must commit its unit of work before returning, so the background
    job reads the committed rows.
    """

    def __init__(self, background_tasks: BackgroundTasks) -> None:
        self.background_tasks = background_tasks

    async def dispatch(self, video_ids: Sequence[UUID], actor_id: UUID | None) -> None:
        """Schedule ``run_description_updates`` for the videos."""
        if not video_ids:
            return
        try:
            self.background_tasks.add_task(
                run_description_updates, list(video_ids), actor_id,
            )
        except Exception as e:
            raise DispatchError(f"Could not schedule description update: {e}") from e
        logger.info("Scheduled description update for %d video(s)", len(video_ids))
