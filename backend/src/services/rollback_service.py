"""
Rollback of a video's description to a version from its history.

Rolling back hands the video back to manual control: it is detached from its
container and its variables are purged, otherwise the next template edit would
overwrite the restored text.
"""
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from models.description_history import DescriptionHistory, HistorySource
from models.video import DescriptionSyncStatus, Video
from services.dispatch import DescriptionUpdateDispatcher, DispatchError
from services.entity_lookup import get_owned_video
from services.exceptions import (
    HistoryEntryMismatchError,
    HistoryEntryNotFoundError,
    PushRequestError,
    VideoNotFoundError,
)
from services.history_service import history_service
from services.variable_service import clear_video_assignment

logger = logging.getLogger(__name__)


@dataclass
class RollbackResult:
    """Outcome of a rollback."""

    video_id: UUID
    history_id: UUID
    restored_description: str
    restored_from_version: int
    version: int
    delinked_container: bool
    variables_cleared: int


async def _get_entry_for_video(
    db: AsyncSession, user_id: UUID, video: Video, history_id: UUID,
) -> DescriptionHistory:
    """
    Get a history entry and check it belongs to the video.

    An entry of another of the user's videos is a precondition failure; an
    entry the user cannot see at all is reported as not found.
    """
    entry = await history_service.get_entry(db, history_id)
    if entry is None:
        raise HistoryEntryNotFoundError(history_id)
    if entry.video_id == video.id:
        return entry

    try:
        await get_owned_video(db, user_id, entry.video_id)
    except VideoNotFoundError:
        raise HistoryEntryNotFoundError(history_id) from None
    raise HistoryEntryMismatchError(video.id, history_id)


async def rollback_video(
    db: AsyncSession,
    user_id: UUID,
    video_id: UUID,
    history_id: UUID,
    dispatcher: DescriptionUpdateDispatcher,
) -> RollbackResult:
    """
    Restore a historical description and request that it be pushed.

    Runs as one unit inside a savepoint: detach the video, delete its
    variables, append the restored text as a new history version (which also
    sets ``current_description``), mark the video ``pending`` and request the
    push. If the push cannot be requested, every step is undone.

    Args:
        db: Database session.
        user_id: Owner of the video.
        video_id: ID of the video to roll back.
        history_id: ID of the history entry to restore.
        dispatcher: Dispatcher asked to push the restored description.

    Returns:
        RollbackResult describing what was restored and cleared.

    Raises:
        VideoNotFoundError: If the video doesn't exist or isn't owned by the user.
        HistoryEntryNotFoundError: If the entry doesn't exist for any of the user's videos.
        HistoryEntryMismatchError: If the entry belongs to a different video.
        PushRequestError: If the push could not be requested; nothing was changed.
    """
    video = await get_owned_video(db, user_id, video_id, for_update=True)
    entry = await _get_entry_for_video(db, user_id, video, history_id)

    try:
        async with db.begin_nested():
            detached = await clear_video_assignment(db, video)
            restored = await history_service.append(
                db,
                video.id,
                entry.description,
                user_id,
                HistorySource.ROLLBACK,
            )
            video.sync_status = DescriptionSyncStatus.PENDING.value
            video.sync_error = None
            await db.flush()
            await dispatcher.dispatch([video.id], user_id)
    except DispatchError as e:
        logger.warning("Rollback of video %s undone: push request failed: %s", video_id, e)
        raise PushRequestError(
            "Could not request a push of the restored description; nothing was changed",
        ) from e

    logger.info(
        "Rolled back video %s to version %d as version %d "
        "(delinked=%s, %d variables cleared)",
        video.id,
        entry.version_number,
        restored.version_number,
        detached.was_attached,
        detached.variables_cleared,
    )
    return RollbackResult(
        video_id=video.id,
        history_id=restored.id,
        restored_description=restored.description,
        restored_from_version=entry.version_number,
        version=restored.version_number,
        delinked_container=detached.was_attached,
        variables_cleared=detached.variables_cleared,
    )
