"""Process configuration loaded from the environment."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Immutable service settings.

    ``API_KEY`` is required; everything else has a default. Values are read
    from the environment and, when present, a ``.env`` file.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", frozen=True)

    api_key: str = Field(..., min_length=1, description="Shared secret expected in X-API-Key.")
    yt_api_key: str = Field(default="", description="Optional YouTube Data API v3 key.")

    host: str = "0.0.0.0"
    port: int = Field(default=8080, ge=1, le=65535)
    log_level: str = "info"

    fetch_timeout: float = Field(default=10.0, gt=0, description="Timeout for the target page fetch (s).")
    provider_timeout: float = Field(default=5.0, gt=0, description="Timeout for oEmbed / Data API calls (s).")
    block_private_addresses: bool = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
