from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Supabase settings
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_ANON_KEY: str = ""

    # Edge function that renders battle flyers
    FLYER_FUNCTION_NAME: str = "generate-battle-flyer"

    # =================================================================
    # HTTP SETTINGS
    # =================================================================
    REQUEST_TIMEOUT: float = 10.0
    FLYER_REQUEST_TIMEOUT: float = 120.0  # image generation is slow

    # Refresh the access token when it expires within this window
    TOKEN_REFRESH_MARGIN_SECONDS: int = 300

    # Tier thresholds used when a creator row has no explicit targets
    DEFAULT_SILVER_TARGET: int = 200000
    DEFAULT_GOLD_TARGET: int = 500000

    DEFAULT_STORAGE_BUCKET: str = "avatars"

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def _base_url(self) -> str:
        return self.SUPABASE_URL.rstrip("/")

    def rest_url(self) -> str:
        """PostgREST endpoint, e.g. https://<ref>.supabase.co/rest/v1"""
        return f"{self._base_url()}/rest/v1"

    def auth_url(self) -> str:
        return f"{self._base_url()}/auth/v1"

    def functions_url(self) -> str:
        return f"{self._base_url()}/functions/v1"

    def storage_url(self) -> str:
        return f"{self._base_url()}/storage/v1"

    def flyer_function_url(self) -> str:
        return f"{self.functions_url()}/{self.FLYER_FUNCTION_NAME}"


settings = Settings()
