"""
Composition root for host applications.
Wires one session provider into the flyer job, the aggregators and storage.
"""

from dataclasses import dataclass

from creator_hub.auth.session import SessionProvider, SupabaseSessionProvider
from creator_hub.config import settings
from creator_hub.db.rest import SupabaseRestClient
from creator_hub.infrastructure.observability.logging import get_logger, setup_logging
from creator_hub.services.creator_service import CreatorDataLoader
from creator_hub.services.flyer import FlyerClient, FlyerGenerationJob
from creator_hub.services.storage_service import StorageService
from creator_hub.services.video_progress_service import VideoProgressTracker

logger = get_logger(__name__)


@dataclass
class CreatorHub:
    session: SessionProvider
    store: SupabaseRestClient
    flyer_client: FlyerClient
    storage: StorageService

    def flyer_job(self) -> FlyerGenerationJob:
        return FlyerGenerationJob(self.flyer_client)

    def video_progress(self, reconcile_on_failure: bool = False) -> VideoProgressTracker:
        return VideoProgressTracker(self.store, reconcile_on_failure=reconcile_on_failure)

    def creator_data(self) -> CreatorDataLoader:
        return CreatorDataLoader(self.store, self.session)

    async def aclose(self) -> None:
        await self.store.close()
        await self.flyer_client.close()
        await self.storage.close()
        close = getattr(self.session, "close", None)
        if close is not None:
            await close()


def create_hub(session: SessionProvider | None = None, configure_logging: bool = True) -> CreatorHub:
    if configure_logging:
        setup_logging(settings.LOG_LEVEL)

    session = session or SupabaseSessionProvider()
    hub = CreatorHub(
        session=session,
        store=SupabaseRestClient(session),
        flyer_client=FlyerClient(session),
        storage=StorageService(session),
    )
    logger.info(
        "Creator hub initialised", environment=settings.environment, supabase_url=settings.SUPABASE_URL
    )
    return hub
