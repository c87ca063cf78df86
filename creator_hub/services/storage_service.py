"""
Supabase Storage helpers for profile and flyer images.
Compresses images locally with Pillow before upload.
"""

import asyncio
import io
import secrets
import time
from urllib.parse import urlparse

import httpx
from PIL import Image, UnidentifiedImageError

from creator_hub.auth.session import SessionProvider
from creator_hub.config import settings
from creator_hub.errors import AuthError, StoreError, ValidationError
from creator_hub.infrastructure.observability.logging import get_logger
from creator_hub.models.domain.storage_domain import ImageUploadResult

logger = get_logger(__name__)


def compress_image(data: bytes, max_width: int = 800, max_height: int = 800, quality: int = 80) -> bytes:
    """Downscale to fit ``max_width`` x ``max_height`` and re-encode as JPEG."""
    try:
        with Image.open(io.BytesIO(data)) as source:
            image = source.convert("RGB")
    except UnidentifiedImageError as e:
        raise ValidationError(f"Unsupported image data: {e}") from e

    image.thumbnail((max_width, max_height))
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def unique_image_name() -> str:
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}.jpg"


def extract_storage_path_from_url(public_url: str, bucket: str | None = None) -> str | None:
    """
    Bucket-relative path from a public storage URL.

    Returns None when the URL is malformed or does not reference ``bucket``.
    """
    bucket = bucket or settings.DEFAULT_STORAGE_BUCKET
    try:
        parsed = urlparse(public_url)
    except ValueError as e:
        logger.warning("Error extracting path from URL", error=str(e))
        return None

    if not parsed.scheme or not parsed.netloc:
        return None

    parts = parsed.path.split("/")
    if bucket not in parts:
        return None
    return "/".join(parts[parts.index(bucket) + 1 :])


class StorageService:
    """Upload, delete and address objects in Supabase Storage buckets."""

    def __init__(self, session: SessionProvider, client: httpx.AsyncClient | None = None):
        self._session = session
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(settings.REQUEST_TIMEOUT))
        self._owns_client = client is None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_auth_headers(self) -> dict:
        token = await self._session.get_token()
        if not token:
            raise AuthError("Not authenticated. Please log in again.")
        return {"Authorization": f"Bearer {token}", "apikey": settings.SUPABASE_ANON_KEY}

    def public_url(self, path: str, bucket: str | None = None) -> str:
        bucket = bucket or settings.DEFAULT_STORAGE_BUCKET
        return f"{settings.storage_url()}/object/public/{bucket}/{path}"

    async def upload_image(
        self,
        data: bytes,
        bucket: str | None = None,
        folder: str | None = None,
        max_width: int = 800,
        max_height: int = 800,
        quality: int = 80,
    ) -> ImageUploadResult:
        """
        Compress and upload an image.

        Args:
            data: Raw image bytes in any format Pillow can read
            bucket: Storage bucket (defaults to DEFAULT_STORAGE_BUCKET)
            folder: Optional folder inside the bucket
            max_width: Maximum width after compression
            max_height: Maximum height after compression
            quality: JPEG quality, 1-95

        Returns:
            ImageUploadResult with the public URL and storage path

        Raises:
            ValidationError: image data unreadable
            AuthError: no session
            StoreError: upload rejected or failed
        """
        bucket = bucket or settings.DEFAULT_STORAGE_BUCKET
        compressed = await asyncio.to_thread(compress_image, data, max_width, max_height, quality)
        file_name = unique_image_name()
        path = f"{folder}/{file_name}" if folder else file_name

        headers = await self._get_auth_headers()
        headers.update({"Content-Type": "image/jpeg", "x-upsert": "false"})

        logger.info("Uploading image", bucket=bucket, path=path, size_bytes=len(compressed))
        try:
            response = await self._client.post(
                f"{settings.storage_url()}/object/{bucket}/{path}",
                content=compressed,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error("Image upload request error", bucket=bucket, path=path, error=str(e))
            raise StoreError(f"Upload failed: {e}", operation="upload") from e

        if not response.is_success:
            logger.error("Image upload failed", status_code=response.status_code, path=path)
            raise StoreError(
                f"Upload failed: HTTP {response.status_code}",
                operation="upload",
                status_code=response.status_code,
            )

        result = ImageUploadResult(public_url=self.public_url(path, bucket), path=path)
        logger.info("Image uploaded", public_url=result.public_url)
        return result

    async def delete_image(self, path: str, bucket: str | None = None) -> None:
        bucket = bucket or settings.DEFAULT_STORAGE_BUCKET
        headers = await self._get_auth_headers()

        logger.info("Deleting image", bucket=bucket, path=path)
        try:
            response = await self._client.request(
                "DELETE",
                f"{settings.storage_url()}/object/{bucket}",
                json={"prefixes": [path]},
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise StoreError(f"Delete failed: {e}", operation="delete") from e

        if not response.is_success:
            logger.error("Image delete failed", status_code=response.status_code, path=path)
            raise StoreError(
                f"Delete failed: HTTP {response.status_code}",
                operation="delete",
                status_code=response.status_code,
            )
