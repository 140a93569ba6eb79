"""Service layer for the per-video description history ledger."""
import logging
from dataclasses import dataclass
from uuid import UUID

from diff_match_patch import diff_match_patch
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.description_history import DescriptionHistory, HistorySource
from models.video import Video
from services.exceptions import VideoNotFoundError

logger = logging.getLogger(__name__)

# Attempts at allocating a version number before giving up on a conflict
MAX_VERSION_RETRIES = 3


@dataclass
class DiffResult:
    """Result of version diff computation."""

    found: bool
    version: int | None = None
    before_description: str | None = None
    after_description: str | None = None
    patch: str | None = None


def _is_version_conflict(error: IntegrityError) -> bool:
    """Whether an IntegrityError came from the (video_id, version_number) key."""
    message = str(error)
    return (
        "uq_description_history_version" in message
        # SQLite reports the columns instead of the constraint name
        or "description_history.version_number" in message
    )


class HistoryService:
    """Service for appending to and reading the description history."""

    def __init__(self) -> None:
        """Initialize the history service with diff-match-patch."""
        self.dmp = diff_match_patch()

    async def append(
        self,
        db: AsyncSession,
        video_id: UUID,
        description: str,
        actor_id: UUID | None,
        source: HistorySource | str = HistorySource.PUSH,
    ) -> DescriptionHistory:
        """
        Append a description to a video's history.

        The next version is one greater than the current maximum (1 for the
        first entry). The video row is locked while the version is allocated,
        and the unique constraint on (video_id, version_number) is the backstop:
        a conflicting insert rolls back only its savepoint and is retried with a
        fresh version number.

        The video's ``current_description`` is updated in the same transaction,
        so the materialized value never diverges from the newest entry.

        Args:
            db: Database session.
            video_id: ID of the video.
            description: Full rendered description to record.
            actor_id: User who caused the change (None for system jobs).
            source: What wrote the entry (push pipeline or rollback).

        Returns:
            The created DescriptionHistory record.

        Raises:
            VideoNotFoundError: If the video does not exist.
            IntegrityError: If max retries exceeded on version collision.
        """
        source_value = source.value if isinstance(source, HistorySource) else source

        for attempt in range(MAX_VERSION_RETRIES):
            try:
                async with db.begin_nested():  # Creates savepoint
                    return await self._append_impl(
                        db, video_id, description, actor_id, source_value,
                    )
            except IntegrityError as e:
                # Only retry on version uniqueness violations
                if not _is_version_conflict(e):
                    raise
                if attempt == MAX_VERSION_RETRIES - 1:
                    logger.error(
                        "Giving up allocating a history version for video %s "
                        "after %d attempts",
                        video_id,
                        MAX_VERSION_RETRIES,
                    )
                    raise
                logger.warning(
                    "History version conflict for video %s (attempt %d), retrying",
                    video_id,
                    attempt + 1,
                )

        raise RuntimeError("Unexpected state in append")

    async def _append_impl(
        self,
        db: AsyncSession,
        video_id: UUID,
        description: str,
        actor_id: UUID | None,
        source: str,
    ) -> DescriptionHistory:
        """Internal implementation of append."""
        # Per-video serialization point (no-op on SQLite, which locks the database)
        video = (
            await db.execute(select(Video).where(Video.id == video_id).with_for_update())
        ).scalar_one_or_none()
        if video is None:
            raise VideoNotFoundError(video_id)

        version = await self._get_next_version(db, video_id)
        entry = DescriptionHistory(
            video_id=video_id,
            description=description,
            version_number=version,
            source=source,
            created_by=actor_id,
        )
        db.add(entry)
        video.current_description = description
        await db.flush()
        return entry

    async def _get_next_version(self, db: AsyncSession, video_id: UUID) -> int:
        """Get the next version number for a video."""
        stmt = select(func.coalesce(func.max(DescriptionHistory.version_number), 0)).where(
            DescriptionHistory.video_id == video_id,
        )
        current_max = (await db.execute(stmt)).scalar_one()
        return current_max + 1

    async def list_history(
        self,
        db: AsyncSession,
        video_id: UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[DescriptionHistory], int]:
        """
        Get a video's history, newest version first.

        Returns:
            Tuple of (history records, total count).
        """
        count_stmt = (
            select(func.count())
            .select_from(DescriptionHistory)
            .where(DescriptionHistory.video_id == video_id)
        )
        total = (await db.execute(count_stmt)).scalar_one()

        stmt = (
            select(DescriptionHistory)
            .where(DescriptionHistory.video_id == video_id)
            .order_by(DescriptionHistory.version_number.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await db.execute(stmt)
        return list(result.scalars().all()), total

    async def get_entry(self, db: AsyncSession, history_id: UUID) -> DescriptionHistory | None:
        """Get a history record by id, regardless of video."""
        return await db.get(DescriptionHistory, history_id)

    async def get_latest(self, db: AsyncSession, video_id: UUID) -> DescriptionHistory | None:
        """Get the highest-versioned record: the video's committed description."""
        stmt = (
            select(DescriptionHistory)
            .where(DescriptionHistory.video_id == video_id)
            .order_by(DescriptionHistory.version_number.desc())
            .limit(1)
        )
        return (await db.execute(stmt)).scalar_one_or_none()

    async def get_version(
        self, db: AsyncSession, video_id: UUID, version: int,
    ) -> DescriptionHistory | None:
        """Get the record for a specific version of a video."""
        stmt = select(DescriptionHistory).where(
            DescriptionHistory.video_id == video_id,
            DescriptionHistory.version_number == version,
        )
        return (await db.execute(stmt)).scalar_one_or_none()

    async def get_version_diff(
        self, db: AsyncSession, video_id: UUID, version: int,
    ) -> DiffResult:
        """
        Diff a version against its predecessor.

        Version 1 is diffed against an empty description. The patch is in
        diff-match-patch text format and turns the previous description into
        this version's.
        """
        entry = await self.get_version(db, video_id, version)
        if entry is None:
            return DiffResult(found=False)

        previous = await self.get_version(db, video_id, version - 1) if version > 1 else None
        before = previous.description if previous is not None else ""
        patches = self.dmp.patch_make(before, entry.description)
        return DiffResult(
            found=True,
            version=version,
            before_description=before,
            after_description=entry.description,
            patch=self.dmp.patch_toText(patches),
        )


history_service = HistoryService()
