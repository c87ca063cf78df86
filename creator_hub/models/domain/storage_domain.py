from pydantic import BaseModel, ConfigDict


class ImageUploadResult(BaseModel):
    """Public URL and bucket-relative path of an uploaded image."""

    model_config = ConfigDict(frozen=True)

    public_url: str
    path: str
