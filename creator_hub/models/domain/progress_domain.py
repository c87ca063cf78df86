"""
Video progress domain models.

Raw ``user_video_progress`` rows and the per-video values derived from them.
Derived values are recomputed on every fetch and never written back.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from creator_hub.errors import StoreError


class ProgressRecord(BaseModel):
    """One ``user_video_progress`` row, unique per (creator_handle, video_id)."""

    video_id: str
    creator_handle: str = ""
    completed: bool = False
    watched_seconds: int = 0

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ProgressRecord":
        """
        Map a store row onto a record.

        Raises:
            StoreError: row is not a mapping or a column has the wrong type
        """
        try:
            return cls(
                video_id=str(row.get("video_id")),
                creator_handle=row.get("creator_handle") or "",
                completed=bool(row.get("completed") or False),
                watched_seconds=int(row.get("watched_seconds") or 0),
            )
        except (PydanticValidationError, ValueError, TypeError, AttributeError) as e:
            raise StoreError(
                f"Invalid user_video_progress row: {e}", operation="parse"
            ) from e


class CourseVideo(BaseModel):
    """Duration metadata for a video, supplied by the course catalogue."""

    id: str
    duration_seconds: int | None = None


class DerivedProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    video_id: str
    completed: bool
    watched_seconds: int
    progress_percentage: int


class CourseProgress(BaseModel):
    model_config = ConfigDict(frozen=True)

    completed: int = 0
    total: int = 0
