"""
Creator data service.
Loads a creator's row, the viewer's role and the assigned manager, and
derives tier statistics from the raw counters on demand.
"""

from creator_hub.auth.session import SessionProvider
from creator_hub.auth.tokens import token_subject
from creator_hub.config import settings
from creator_hub.db.rest import SupabaseRestClient, eq
from creator_hub.errors import CreatorHubError
from creator_hub.infrastructure.observability.logging import get_logger
from creator_hub.models.domain.creator_domain import (
    CreatorCounters,
    CreatorProfile,
    CreatorStats,
    ManagerContact,
)

logger = get_logger(__name__)

DEFAULT_STATUS = "Rookie (New)"

MANAGER_COLUMNS = (
    "id,whatsapp,avatar_url,"
    "users:user_id(id,first_name,last_name,email,avatar_url,username,role)"
)


def derive_creator_stats(
    counters: CreatorCounters | None,
    default_silver_target: int | None = None,
    default_gold_target: int | None = None,
) -> CreatorStats | None:
    """
    Derive tier progress from raw counters.

    None when no counters are loaded yet. Targets fall back to the defaults
    only when unset. Progress is not capped: it can exceed 100 after a tier
    is passed and before counters refresh.
    """
    if counters is None:
        return None

    if default_silver_target is None:
        default_silver_target = settings.DEFAULT_SILVER_TARGET
    if default_gold_target is None:
        default_gold_target = settings.DEFAULT_GOLD_TARGET

    silver_target = (
        counters.silver_target if counters.silver_target is not None else default_silver_target
    )
    gold_target = counters.gold_target if counters.gold_target is not None else default_gold_target

    total = counters.total_diamonds
    if total >= silver_target:
        next_tier, target_amount = "Gold", gold_target
    else:
        next_tier, target_amount = "Silver", silver_target

    progress = (total / target_amount) * 100 if target_amount > 0 else 0.0

    return CreatorStats(
        next_tier=next_tier,
        target_amount=target_amount,
        remaining=max(0, target_amount - total),
        progress_percentage=progress,
        live_hours=counters.live_seconds // 3600,
        current_status=counters.status if counters.status is not None else DEFAULT_STATUS,
        monthly_diamonds=counters.monthly_diamonds,
        total_diamonds=total,
        live_days=counters.live_days,
        diamonds_today=counters.diamonds_today,
        streak=counters.live_days,
    )


class CreatorDataLoader:
    """
    Read-through cache of one creator's profile and counters.

    Failures are recorded on ``error``; ``stats`` stays None until a creator
    row has been loaded.
    """

    def __init__(self, store: SupabaseRestClient, session: SessionProvider):
        self._store = store
        self._session = session
        self.creator_handle: str | None = None
        self.creator: CreatorProfile | None = None
        self.loading = False
        self.error: str | None = None

    @property
    def stats(self) -> CreatorStats | None:
        if self.creator is None:
            return None
        return derive_creator_stats(self.creator.counters)

    async def load(self, creator_handle: str) -> CreatorProfile | None:
        self.creator_handle = creator_handle
        return await self.refetch()

    async def refetch(self) -> CreatorProfile | None:
        handle = self.creator_handle
        logger.info("Fetching creator data", creator_handle=handle)
        self.loading = True
        self.error = None

        try:
            token = await self._session.get_token()
            auth_user_id = token_subject(token) if token else None
            if not auth_user_id:
                logger.warning("No authenticated user", creator_handle=handle)
                self.error = "Not authenticated"
                self.creator = None
                return None

            row = await self._store.select_one(
                "creators", {"is_active": eq(True), "creator_handle": eq(handle)}
            )
            if row is None:
                logger.warning("No creator data found", creator_handle=handle)
                self.error = f"No creator data found for @{handle}"
                self.creator = None
                return None

            profile = CreatorProfile.from_row(row)
            profile.auth_user_id = auth_user_id
            profile.user_role = await self._fetch_user_role(auth_user_id)
            if profile.assigned_manager_id:
                profile.manager = await self._fetch_manager(profile.assigned_manager_id)

            self.creator = profile
            logger.info(
                "Creator data loaded",
                creator_handle=profile.creator_handle,
                total_diamonds=profile.counters.total_diamonds,
                monthly_diamonds=profile.counters.monthly_diamonds,
                live_days=profile.counters.live_days,
                has_manager=profile.manager is not None,
                user_role=profile.user_role,
            )
            return profile

        except CreatorHubError as e:
            logger.error("Creator fetch error", creator_handle=handle, error=e.message)
            self.error = e.message
            self.creator = None
            return None
        finally:
            self.loading = False

    async def _fetch_user_role(self, auth_user_id: str) -> str | None:
        """Viewer role; a missing users row is not an error."""
        try:
            row = await self._store.select_one(
                "users", {"auth_user_id": eq(auth_user_id)}, columns="id,role"
            )
        except CreatorHubError as e:
            logger.warning("User role fetch error", auth_user_id=auth_user_id, error=e.message)
            return None
        return row.get("role") if row else None

    async def _fetch_manager(self, manager_id: str) -> ManagerContact | None:
        try:
            record = await self._store.select_one(
                "managers", {"id": eq(manager_id)}, columns=MANAGER_COLUMNS
            )
        except CreatorHubError as e:
            logger.warning("Manager fetch error", manager_id=manager_id, error=e.message)
            return None

        if not record or not record.get("users"):
            return None

        try:
            return ManagerContact.from_record(record)
        except CreatorHubError as e:
            logger.warning("Manager row unreadable", manager_id=manager_id, error=e.message)
            return None
