import io

import pytest
from PIL import Image

from creator_hub.errors import ValidationError
from creator_hub.services.storage_service import (
    compress_image,
    extract_storage_path_from_url,
    unique_image_name,
)


def test_extract_storage_path_from_public_url():
    url = "https://abc.supabase.co/storage/v1/object/public/avatars/users/42/photo.jpg"
    assert extract_storage_path_from_url(url, "avatars") == "users/42/photo.jpg"


def test_extract_storage_path_other_bucket_is_none():
    url = "https://abc.supabase.co/storage/v1/object/public/flyers/photo.jpg"
    assert extract_storage_path_from_url(url, "avatars") is None


def test_extract_storage_path_invalid_url_is_none():
    assert extract_storage_path_from_url("not a url", "avatars") is None


def test_unique_image_name_is_jpg():
    first, second = unique_image_name(), unique_image_name()
    assert first.endswith(".jpg")
    assert first != second


def test_compress_image_downscales_to_jpeg():
    buffer = io.BytesIO()
    Image.new("RGBA", (1600, 1200), (255, 0, 0, 255)).save(buffer, format="PNG")

    compressed = compress_image(buffer.getvalue(), max_width=800, max_height=800)

    with Image.open(io.BytesIO(compressed)) as image:
        assert image.format == "JPEG"
        assert image.size == (800, 600)


def test_compress_image_rejects_non_images():
    with pytest.raises(ValidationError):
        compress_image(b"definitely not an image")
