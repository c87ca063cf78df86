"""
Battle flyer edge function client: one request per call, no retries.
"""

import asyncio
import time
from pathlib import Path
from urllib.parse import unquote, urlparse

import httpx
from pydantic import ValidationError as PydanticValidationError

from creator_hub.auth.session import SessionProvider
from creator_hub.config import settings
from creator_hub.errors import AuthError, ProtocolError, ServiceError, ValidationError
from creator_hub.infrastructure.observability.logging import get_logger
from creator_hub.models.domain.flyer_domain import FlyerImage, FlyerRequest, FlyerResult

logger = get_logger(__name__)

DEFAULT_FAILURE_MESSAGE = "Failed to generate flyer"


def service_message(data: dict, *keys: str) -> str | None:
    """First non-empty string among ``keys``; structured values are skipped."""
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


async def read_image_bytes(image: FlyerImage) -> bytes:
    """Image bytes from ``content`` or from a local path / file:// URI."""
    if image.content is not None:
        return image.content

    parsed = urlparse(image.uri)
    if parsed.scheme not in ("", "file"):
        raise ValidationError(f"Unsupported photo location: {parsed.scheme}://")
    path = Path(unquote(parsed.path) if parsed.scheme == "file" else image.uri)

    try:
        return await asyncio.to_thread(path.read_bytes)
    except OSError as e:
        raise ValidationError(f"Face photo could not be read: {e}") from e


class FlyerClient:
    """
    Client for the flyer generation edge function.

    The session token is resolved on every call; sessions can expire or
    rotate between submissions.
    """

    def __init__(self, session: SessionProvider, client: httpx.AsyncClient | None = None):
        self._session = session
        self._client = client or self._create_client()
        self._owns_client = client is None

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=httpx.Timeout(settings.FLYER_REQUEST_TIMEOUT))

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _get_auth_headers(self, access_token: str) -> dict:
        # Content-Type is left to httpx so the multipart boundary is set
        return {
            "Authorization": f"Bearer {access_token}",
            "apikey": settings.SUPABASE_ANON_KEY,
            "Accept": "application/json",
        }

    def _map_flyer_error(self, status_code: int, message: str | None) -> str:
        """Map edge function failures to user-facing messages."""
        if message and "GEMINI_API_KEY" in message:
            return (
                "The AI service is not configured. "
                "Please contact support to set up the GEMINI_API_KEY."
            )
        if status_code == 404:
            return (
                "The AI service is not available. The Edge Function may not be deployed. "
                "Please contact support."
            )
        return message or DEFAULT_FAILURE_MESSAGE

    def _handle_api_response(self, response: httpx.Response) -> FlyerResult:
        """
        Validate the edge function response.

        Raises:
            AuthError: 401/403 from the function
            ServiceError: function reported a failure
            ProtocolError: empty or malformed success body
        """
        logger.debug(
            "Flyer function response",
            status_code=response.status_code,
            response_size=len(response.content),
        )

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = None
            if response.is_success:
                raise ProtocolError(
                    "Invalid response: body is not JSON", status_code=response.status_code
                ) from None

        if not response.is_success:
            error_data = data if isinstance(data, dict) else {}
            raw_message = service_message(error_data, "message", "error", "details")
            logger.error(
                "Flyer function failed",
                status_code=response.status_code,
                error_message=raw_message,
            )
            if response.status_code in (401, 403):
                raise AuthError(
                    "Authentication failed. Your session may have expired. "
                    "Please log out and log back in.",
                    status_code=response.status_code,
                    response_data=error_data,
                )
            raise ServiceError(
                self._map_flyer_error(response.status_code, raw_message),
                status_code=response.status_code,
                response_data=error_data,
            )

        if data is None:
            raise ProtocolError(
                "Empty response: no data returned from the flyer service.",
                status_code=response.status_code,
            )
        if not isinstance(data, dict):
            raise ProtocolError("Invalid response: expected a JSON object")

        if not data.get("url"):
            if data.get("error") or data.get("message"):
                raise ServiceError(
                    service_message(data, "message", "error") or DEFAULT_FAILURE_MESSAGE,
                    response_data=data,
                )
            raise ProtocolError("Invalid response: No image URL returned", response_data=data)

        try:
            return FlyerResult.model_validate(data)
        except PydanticValidationError as e:
            raise ProtocolError(f"Invalid response: {e}", response_data=data) from e

    async def generate(self, request: FlyerRequest) -> FlyerResult:
        """
        Submit one flyer generation request.

        Args:
            request: Validated flyer request

        Returns:
            FlyerResult produced by the edge function

        Raises:
            AuthError, ValidationError, ServiceError, ProtocolError
        """
        token = await self._session.get_token()
        if not token:
            logger.warning("Flyer generation without session")
            raise AuthError("Not authenticated. Please log in again.")

        image = request.image
        content = await read_image_bytes(image)
        files = {"image": (image.filename(), content, image.content_type())}

        logger.info(
            "Calling flyer function",
            function=settings.FLYER_FUNCTION_NAME,
            title=request.title,
            image_name=image.filename(),
            image_type=image.content_type(),
            image_bytes=len(content),
        )

        started = time.monotonic()
        try:
            response = await self._client.post(
                settings.flyer_function_url(),
                data=request.form_fields(),
                files=files,
                headers=self._get_auth_headers(token),
            )
        except httpx.TimeoutException as e:
            logger.error("Flyer function timed out", error=str(e))
            raise ServiceError(
                "Request timed out. The AI is taking too long to respond. Please try again."
            ) from e
        except httpx.RequestError as e:
            logger.error("Flyer function network error", error=str(e))
            raise ServiceError(
                "Network error. Please check your internet connection and try again."
            ) from e

        elapsed_ms = int((time.monotonic() - started) * 1000)
        result = self._handle_api_response(response)

        logger.info(
            "Flyer generated",
            url=result.url,
            storage_path=result.storage_path,
            width=result.width,
            height=result.height,
            generation_ms=result.duration_ms,
            request_ms=elapsed_ms,
        )
        return result
