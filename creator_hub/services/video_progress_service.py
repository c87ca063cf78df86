"""
Video progress service.

Read-through cache over ``user_video_progress`` for one creator, with
derived completion percentages and course-level counts. Store failures are
recorded on ``error`` and never raised from the public methods.
"""

import math
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from creator_hub.db.rest import SupabaseRestClient, eq
from creator_hub.errors import CreatorHubError
from creator_hub.infrastructure.observability.logging import get_logger
from creator_hub.models.domain.progress_domain import (
    CourseProgress,
    CourseVideo,
    DerivedProgress,
    ProgressRecord,
)

logger = get_logger(__name__)

PROGRESS_TABLE = "user_video_progress"
PROGRESS_CONFLICT_TARGET = "creator_handle,video_id"


def progress_percentage(watched_seconds: int, duration_seconds: int | None) -> int:
    """Share of the video watched, 0-100; 0 when the duration is unknown."""
    if not duration_seconds or duration_seconds <= 0:
        return 0
    # Half-up rounding, not banker's rounding
    return min(100, math.floor(watched_seconds / duration_seconds * 100 + 0.5))


def derive_progress(
    records: Iterable[ProgressRecord], durations: dict[str, int | None]
) -> list[DerivedProgress]:
    return [
        DerivedProgress(
            video_id=record.video_id,
            completed=record.completed,
            watched_seconds=record.watched_seconds,
            progress_percentage=progress_percentage(
                record.watched_seconds, durations.get(record.video_id)
            ),
        )
        for record in records
    ]


class VideoProgressTracker:
    """
    Watch progress for a single creator handle.

    ``load``/``refetch`` replace the cache wholesale. ``mark_watched`` updates
    the cache first and then upserts remotely; a failed upsert is recorded but
    not rolled back unless ``reconcile_on_failure`` is set, in which case the
    cache is re-fetched from the store.
    """

    def __init__(self, store: SupabaseRestClient, reconcile_on_failure: bool = False):
        self._store = store
        self.reconcile_on_failure = reconcile_on_failure
        self.creator_handle: str | None = None
        self._durations: dict[str, int | None] = {}
        self._records: list[ProgressRecord] = []
        self.loading = False
        self.error: str | None = None

    @property
    def video_progress(self) -> list[DerivedProgress]:
        return derive_progress(self._records, self._durations)

    async def load(
        self, creator_handle: str, course_videos: Sequence[CourseVideo] | None = None
    ) -> list[DerivedProgress]:
        """
        Fetch progress rows for ``creator_handle`` and derive percentages.

        Returns:
            Derived progress in store order. On failure the previous cache is
            kept and ``error`` is set.
        """
        self.creator_handle = creator_handle
        if course_videos is not None:
            self._durations = {video.id: video.duration_seconds for video in course_videos}
        return await self.refetch()

    async def refetch(self) -> list[DerivedProgress]:
        if not self.creator_handle:
            logger.info("No creator handle provided, skipping progress fetch")
            return self.video_progress

        self.loading = True
        self.error = None
        try:
            logger.info("Fetching video progress", creator_handle=self.creator_handle)
            rows = await self._store.select(
                PROGRESS_TABLE, {"creator_handle": eq(self.creator_handle)}
            )
            self._records = [ProgressRecord.from_row(row) for row in rows]
            logger.info(
                "Video progress fetched",
                creator_handle=self.creator_handle,
                record_count=len(self._records),
            )
        except CreatorHubError as e:
            logger.error(
                "Error fetching video progress", creator_handle=self.creator_handle, error=e.message
            )
            self.error = e.message
        finally:
            self.loading = False

        return self.video_progress

    def _find(self, video_id: str) -> ProgressRecord | None:
        return next((r for r in self._records if r.video_id == video_id), None)

    def get_video_progress(self, video_id: str) -> DerivedProgress | None:
        record = self._find(video_id)
        if record is None:
            return None
        return derive_progress([record], self._durations)[0]

    def is_watched(self, video_id: str) -> bool:
        record = self._find(video_id)
        return bool(record and record.completed)

    def course_progress(self, video_ids: Iterable[str]) -> CourseProgress:
        ids = list(video_ids)
        watched = sum(1 for video_id in ids if self.is_watched(video_id))
        return CourseProgress(completed=watched, total=len(ids))

    def _mark_locally(self, video_id: str) -> ProgressRecord:
        existing = self._find(video_id)
        if existing is not None:
            updated = existing.model_copy(update={"completed": True})
            self._records = [updated if r.video_id == video_id else r for r in self._records]
            return updated

        record = ProgressRecord(
            video_id=video_id,
            creator_handle=self.creator_handle or "",
            completed=True,
            watched_seconds=0,
        )
        self._records = [*self._records, record]
        return record

    async def mark_watched(self, video_id: str) -> None:
        if not self.creator_handle:
            logger.error("Cannot mark video as watched: no creator handle", video_id=video_id)
            self.error = "No creator handle"
            return

        record = self._mark_locally(video_id)
        now = datetime.now(UTC).isoformat()

        try:
            await self._store.upsert(
                PROGRESS_TABLE,
                {
                    "creator_handle": self.creator_handle,
                    "video_id": video_id,
                    "completed": True,
                    "watched_seconds": record.watched_seconds,
                    "completed_at": now,
                    "last_watched_at": now,
                },
                on_conflict=PROGRESS_CONFLICT_TARGET,
            )
            logger.info(
                "Video marked as watched", creator_handle=self.creator_handle, video_id=video_id
            )
        except CreatorHubError as e:
            logger.error(
                "Error marking video as watched",
                creator_handle=self.creator_handle,
                video_id=video_id,
                error=e.message,
            )
            if self.reconcile_on_failure:
                await self.refetch()
            self.error = e.message
