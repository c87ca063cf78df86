from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

AuthEvent = Literal["SIGNED_IN", "SIGNED_OUT", "TOKEN_REFRESHED"]


class Session(BaseModel):
    """Supabase auth session as returned by the GoTrue token endpoint."""

    model_config = ConfigDict(frozen=True)

    access_token: str
    refresh_token: str | None = None
    expires_at: datetime | None = None
    user_id: str | None = None
    email: str | None = None

    @classmethod
    def from_token_response(cls, data: dict[str, Any]) -> "Session":
        user = data.get("user") or {}

        expires_at = None
        if data.get("expires_at"):
            expires_at = datetime.fromtimestamp(int(data["expires_at"]), tz=UTC)
        elif data.get("expires_in"):
            expires_at = datetime.fromtimestamp(
                datetime.now(UTC).timestamp() + int(data["expires_in"]), tz=UTC
            )

        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_at=expires_at,
            user_id=user.get("id"),
            email=user.get("email"),
        )

    def seconds_until_expiry(self, now: datetime | None = None) -> float | None:
        if self.expires_at is None:
            return None
        now = now or datetime.now(UTC)
        return (self.expires_at - now).total_seconds()
