"""
Flyer generation job state machine.

idle -> loading -> success | error, back to idle on reset. At most one
remote call is in flight per job; concurrent submits join it.
"""

import asyncio
from collections.abc import Callable

from creator_hub.errors import CreatorHubError
from creator_hub.infrastructure.observability.logging import get_logger, log_job_transition
from creator_hub.models.domain.flyer_domain import FlyerJobState, FlyerRequest, FlyerResult
from creator_hub.services.flyer.client import FlyerClient
from creator_hub.services.flyer.validation import validate_flyer_request

logger = get_logger(__name__)

StateListener = Callable[[FlyerJobState], None]

UNKNOWN_ERROR_MESSAGE = "Unknown error occurred"


class FlyerGenerationJob:
    """
    Owns the state of one flyer generation workflow.

    Transitions are sequential on the event loop. A submit observed while
    loading awaits the in-flight call instead of starting another one. A
    reset while loading drops that call's eventual outcome.
    """

    def __init__(self, client: FlyerClient, name: str = "battle_flyer"):
        self._client = client
        self.name = name
        self._state = FlyerJobState.idle()
        self._inflight: asyncio.Task | None = None
        self._generation = 0
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> FlyerJobState:
        return self._state

    @property
    def loading(self) -> bool:
        return self._state.status == "loading"

    @property
    def data(self) -> FlyerResult | None:
        return self._state.data

    @property
    def error(self) -> str | None:
        return self._state.error

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _transition(self, new_state: FlyerJobState) -> None:
        previous = self._state
        self._state = new_state
        log_job_transition(self.name, previous.status, new_state.status, error=new_state.error)

        for listener in list(self._listeners):
            try:
                listener(new_state)
            except Exception as e:
                # An observer that went away must not break the job
                logger.warning("Job state listener failed", job=self.name, error=str(e))

    async def submit(self, request: FlyerRequest) -> FlyerResult | None:
        """
        Validate and submit a flyer request.

        Returns:
            FlyerResult on success, None when the job ended in error
        """
        if self.loading and self._inflight is not None and not self._inflight.done():
            logger.info("Flyer submission already in flight, joining", job=self.name)
            return await asyncio.shield(self._inflight)

        reason = validate_flyer_request(request)
        if reason is not None:
            logger.info("Flyer request rejected", job=self.name, reason=reason)
            self._transition(FlyerJobState.failure(reason))
            return None

        self._generation += 1
        self._transition(FlyerJobState.loading())
        self._inflight = asyncio.create_task(self._run(request, self._generation))
        return await asyncio.shield(self._inflight)

    async def _run(self, request: FlyerRequest, generation: int) -> FlyerResult | None:
        try:
            result = await self._client.generate(request)
            state = FlyerJobState.success(result)
        except CreatorHubError as e:
            self._finish(generation, self._failure_state(e.message))
            return None
        except Exception as e:
            logger.error("Unexpected error generating flyer", job=self.name, error=str(e))
            self._finish(generation, self._failure_state(str(e)))
            return None

        self._finish(generation, state)
        return result

    @staticmethod
    def _failure_state(message: object) -> FlyerJobState:
        # error state must always be constructible
        if not isinstance(message, str) or not message:
            message = UNKNOWN_ERROR_MESSAGE
        return FlyerJobState.failure(message)

    def _finish(self, generation: int, state: FlyerJobState) -> None:
        if generation != self._generation:
            logger.info("Discarding outcome of reset flyer job", job=self.name, status=state.status)
            return
        self._transition(state)

    def reset(self) -> None:
        """Return to idle from any state, dropping any held result or error."""
        self._generation += 1
        self._transition(FlyerJobState.idle())
