"""
Flyer Domain Models
Request, result and state shapes for the battle flyer generation job.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_IMAGE_NAME = "photo.jpg"
DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"

JobStatus = Literal["idle", "loading", "success", "error"]


class FlyerImage(BaseModel):
    """Face photo attached to a flyer request."""

    uri: str = ""
    name: str | None = None
    mime_type: str | None = None
    content: bytes | None = None  # raw bytes; read from ``uri`` when absent

    def filename(self) -> str:
        return self.name or DEFAULT_IMAGE_NAME

    def content_type(self) -> str:
        return self.mime_type or DEFAULT_IMAGE_MIME_TYPE


class FlyerRequest(BaseModel):
    """Inputs for one battle flyer generation."""

    title: str = ""
    creator_name: str = ""
    opponent_name: str = ""
    battle_date: str = ""
    image: FlyerImage = Field(default_factory=FlyerImage)

    def form_fields(self) -> dict[str, str]:
        """Multipart text fields, keyed by the edge function's field names."""
        return {
            "title": self.title,
            "creatorName": self.creator_name,
            "opponentName": self.opponent_name,
            "battleDate": self.battle_date,
        }


class FlyerResult(BaseModel):
    """Generated flyer artifact returned by the edge function."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    url: str
    storage_path: str = Field(default="", alias="path")
    width: int = 0
    height: int = 0
    duration_ms: int = 0


class FlyerJobState(BaseModel):
    """Tagged job state; ``data`` only in success, ``error`` only in error."""

    model_config = ConfigDict(frozen=True)

    status: JobStatus = "idle"
    data: FlyerResult | None = None
    error: str | None = None

    @classmethod
    def idle(cls) -> "FlyerJobState":
        return cls(status="idle")

    @classmethod
    def loading(cls) -> "FlyerJobState":
        return cls(status="loading")

    @classmethod
    def success(cls, result: FlyerResult) -> "FlyerJobState":
        return cls(status="success", data=result)

    @classmethod
    def failure(cls, message: str) -> "FlyerJobState":
        return cls(status="error", error=message)
