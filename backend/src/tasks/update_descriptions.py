"""
Description push pipeline.

Recomputes the description of each requested video, pushes it to YouTube when
it changed and records it in the video's history after YouTube accepted it.
Scheduled by ``services.dispatch.BackgroundTaskDispatcher`` after template,
container, variable and rollback changes; can also be run by hand.

Usage:
    python -m tasks.update_descriptions VIDEO_ID [VIDEO_ID ...]

Per video:
1. Attached videos get their container's rendered description; a container
   without templates is skipped. Detached videos with an unconfirmed
   description (after a rollback) get that description.
2. Nothing is pushed when the description equals the confirmed one.
3. The push is retried with exponential backoff on transient errors.
4. Success marks the video ``synced`` and appends a history version (unless
   the newest version already holds the text). Failure marks it ``failed``
   and writes no history.
"""
import argparse
import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from core.config import Settings, get_settings
from db.session import async_session_factory
from models.container import Container
from models.description_history import HistorySource
from models.video import DescriptionSyncStatus, Video
from services.description_service import compose_description
from services.history_service import history_service
from services.youtube_client import DescriptionPublisher, PlatformPushError, YouTubeClient

logger = logging.getLogger(__name__)


class UpdateOutcome(StrEnum):
    """What happened to one video."""

    PUSHED = "pushed"
    SKIPPED = "skipped"
    FAILED = "failed"
    MISSING = "missing"


@dataclass
class UpdateStats:
    """Statistics from a push run."""

    pushed: int = 0
    skipped: int = 0
    failed: int = 0
    missing: int = 0

    def record(self, outcome: UpdateOutcome) -> None:
        """Count one video's outcome."""
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)

    def to_dict(self) -> dict[str, int]:
        """Convert to simple dict for logging/return."""
        return {
            "pushed": self.pushed,
            "skipped": self.skipped,
            "failed": self.failed,
            "missing": self.missing,
        }


async def _target_description(
    db: AsyncSession, video: Video,
) -> tuple[str | None, str | None]:
    """
    Decide what a video's description should be.

    Returns:
        Tuple of (description, reason it is None).
    """
    if video.container_id is not None:
        container = await db.get(Container, video.container_id)
        if container is None:
            return None, "container no longer exists"
        composed = await compose_description(db, video, container)
        if composed.template_count == 0:
            return None, "container has no templates"
        return composed.description, None

    if video.sync_status == DescriptionSyncStatus.SYNCED.value:
        return None, "not attached to a container"
    if video.current_description is None:
        return None, "no description to push"
    return video.current_description, None


async def _push_with_retry(
    publisher: DescriptionPublisher,
    video: Video,
    description: str,
    settings: Settings,
) -> None:
    """
    Push a description, retrying transient failures with exponential backoff.

    Raises:
        PlatformPushError: The last error once attempts are exhausted, or the
            first non-retryable one.
    """
    for attempt in range(1, settings.push_max_attempts + 1):
        try:
            await publisher.update_description(video.platform_video_id, description)
            return
        except PlatformPushError as e:
            if not e.retryable or attempt == settings.push_max_attempts:
                raise
            delay = settings.push_backoff_seconds * 2 ** (attempt - 1)
            logger.warning(
                "Push of video %s failed (attempt %d/%d), retrying in %.1fs: %s",
                video.id,
                attempt,
                settings.push_max_attempts,
                delay,
                e,
            )
            await asyncio.sleep(delay)


async def update_video_description(
    db: AsyncSession,
    video_id: UUID,
    actor_id: UUID | None,
    publisher: DescriptionPublisher,
    settings: Settings,
) -> UpdateOutcome:
    """Recompute, push and record one video's description, then commit."""
    video = await db.get(Video, video_id)
    if video is None:
        logger.warning("Video %s no longer exists, skipping", video_id)
        return UpdateOutcome.MISSING

    description, reason = await _target_description(db, video)
    if description is None:
        logger.info("Skipping video %s: %s", video.id, reason)
        return UpdateOutcome.SKIPPED

    if (
        description == video.current_description
        and video.sync_status == DescriptionSyncStatus.SYNCED.value
    ):
        logger.info("Skipping video %s: description unchanged", video.id)
        return UpdateOutcome.SKIPPED

    if len(description) > settings.max_description_length:
        video.sync_status = DescriptionSyncStatus.FAILED.value
        video.sync_error = (
            f"Description is {len(description)} characters; "
            f"YouTube allows {settings.max_description_length}"
        )
        await db.commit()
        logger.warning("Not pushing video %s: %s", video.id, video.sync_error)
        return UpdateOutcome.FAILED

    try:
        await _push_with_retry(publisher, video, description, settings)
    except PlatformPushError as e:
        video.sync_status = DescriptionSyncStatus.FAILED.value
        video.sync_error = str(e)[:1000]
        await db.commit()
        logger.error("Push of video %s failed: %s", video.id, e)
        return UpdateOutcome.FAILED

    latest = await history_service.get_latest(db, video.id)
    if latest is None or latest.description != description:
        await history_service.append(db, video.id, description, actor_id, HistorySource.PUSH)
    else:
        video.current_description = description
    video.sync_status = DescriptionSyncStatus.SYNCED.value
    video.sync_error = None
    await db.commit()
    return UpdateOutcome.PUSHED


async def run_description_updates(
    video_ids: Sequence[UUID],
    actor_id: UUID | None = None,
    db: AsyncSession | None = None,
    publisher: DescriptionPublisher | None = None,
) -> UpdateStats:
    """
    Recompute and push the descriptions of the given videos.

    Each video is committed on its own, so one failure never undoes another
    video's push.

    Args:
        video_ids: Videos to update. Duplicates are processed once.
        actor_id: User who caused the update, recorded on history entries.
        db: Database session. If None, creates one from async_session_factory.
        publisher: Description publisher. Defaults to a YouTubeClient built
            from settings.

    Returns:
        UpdateStats with per-outcome counts.
    """
    settings = get_settings()
    publisher = publisher or YouTubeClient.from_settings(settings)
    unique_ids = list(dict.fromkeys(video_ids))
    logger.info("Starting description update for %d video(s)", len(unique_ids))

    async def _run(session: AsyncSession) -> UpdateStats:
        stats = UpdateStats()
        for video_id in unique_ids:
            try:
                outcome = await update_video_description(
                    session, video_id, actor_id, publisher, settings,
                )
            except Exception:
                logger.exception("Unexpected error updating video %s", video_id)
                await session.rollback()
                outcome = UpdateOutcome.FAILED
            stats.record(outcome)
        return stats

    if db is not None:
        stats = await _run(db)
    else:
        async with async_session_factory() as session:
            stats = await _run(session)

    logger.info("Description update complete: %s", stats.to_dict())
    return stats


def main() -> None:
    """Entry point for running the push pipeline as a script."""
    parser = argparse.ArgumentParser(description="Recompute and push video descriptions.")
    parser.add_argument("video_ids", nargs="+", type=UUID, help="Video ids to update")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    asyncio.run(run_description_updates(args.video_ids))


if __name__ == "__main__":
    main()
