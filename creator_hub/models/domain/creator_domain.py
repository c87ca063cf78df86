"""
Creator Domain Models
Raw creator counters, the statistics derived from them, and the profile
shape assembled from the creators, users and managers tables.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from creator_hub.errors import StoreError

ROW_ERRORS = (PydanticValidationError, ValueError, TypeError, AttributeError)


class CreatorCounters(BaseModel):
    """Raw counters from a ``creators`` row. Targets and status may be unset."""

    total_diamonds: int = 0
    monthly_diamonds: int = 0
    diamonds_today: int = 0
    live_days: int = 0
    live_seconds: int = 0
    silver_target: int | None = None
    gold_target: int | None = None
    status: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CreatorCounters":
        """
        Map store column names onto counters; null counters read as 0.

        Raises:
            StoreError: a counter column holds a non-integer value
        """
        try:
            return cls(
                total_diamonds=row.get("total_diamonds") or 0,
                monthly_diamonds=row.get("diamonds_monthly") or 0,
                diamonds_today=row.get("diamonds_30d") or 0,
                live_days=row.get("live_days_30d") or 0,
                live_seconds=row.get("live_duration_seconds_30d") or 0,
                silver_target=row.get("silver_target"),
                gold_target=row.get("gold_target"),
                status=row.get("graduation_status"),
            )
        except ROW_ERRORS as e:
            raise StoreError(f"Invalid creator counters: {e}", operation="parse") from e


class CreatorStats(BaseModel):
    """Tier progress derived on demand from the latest counters."""

    model_config = ConfigDict(frozen=True)

    next_tier: str
    target_amount: int
    remaining: int
    progress_percentage: float
    live_hours: int
    current_status: str

    # Display counters carried through unchanged
    monthly_diamonds: int = 0
    total_diamonds: int = 0
    live_days: int = 0
    diamonds_today: int = 0
    streak: int = 0


class ManagerContact(BaseModel):
    """Assigned manager, merged from ``managers`` and its linked ``users`` row."""

    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    username: str | None = None
    whatsapp: str | None = None
    role: str | None = None
    manager_avatar_url: str | None = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ManagerContact":
        """Build from a ``managers`` row with its embedded ``users`` row."""
        try:
            user = record["users"]
            return cls(
                id=str(user.get("id")),
                first_name=user.get("first_name"),
                last_name=user.get("last_name"),
                email=user.get("email"),
                avatar_url=user.get("avatar_url"),
                username=user.get("username"),
                whatsapp=record.get("whatsapp"),
                role=user.get("role"),
                manager_avatar_url=record.get("avatar_url"),
            )
        except (*ROW_ERRORS, KeyError) as e:
            raise StoreError(f"Invalid manager row: {e}", operation="parse") from e

    def display_name(self) -> str:
        return " ".join(p for p in (self.first_name, self.last_name) if p)


class CreatorProfile(BaseModel):
    """
    Creator identity plus counters, manager and the viewer's role.

    Columns without a declared field are kept as extras, so the whole
    ``creators`` row stays available to callers.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    creator_handle: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    avatar_url: str | None = None
    profile_picture_url: str | None = None
    region: str | None = None
    language: str | None = None
    assigned_manager_id: str | None = None
    is_active: bool = True

    counters: CreatorCounters
    manager: ManagerContact | None = None
    user_role: str | None = None
    auth_user_id: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CreatorProfile":
        """
        Raises:
            StoreError: the row does not map onto a profile
        """
        counters = CreatorCounters.from_row(row)
        extras = {k: v for k, v in row.items() if k not in cls.model_fields}
        try:
            return cls(
                **extras,
                id=str(row.get("id")),
                creator_handle=row.get("creator_handle") or "",
                first_name=row.get("first_name"),
                last_name=row.get("last_name"),
                email=row.get("email"),
                avatar_url=row.get("avatar_url"),
                profile_picture_url=row.get("profile_picture_url"),
                region=row.get("region"),
                language=row.get("language"),
                assigned_manager_id=row.get("assigned_manager_id"),
                is_active=bool(row.get("is_active", True)),
                counters=counters,
            )
        except ROW_ERRORS as e:
            raise StoreError(f"Invalid creators row: {e}", operation="parse") from e
