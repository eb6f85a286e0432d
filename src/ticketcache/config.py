"""Application configuration."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS


class Settings(BaseSettings):
    """ticketcache settings, read from TICKETCACHE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TICKETCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Cache database
    db_path: str = "ticketcache.db"

    # Logging
    log_dir: str = "logs"
    log_level: str = "INFO"

    # Freshness thresholds
    sync_stale_after_minutes: int = Field(default=360, gt=0)
    attention_stale_after_hours: int = Field(default=24, gt=0)

    # Mutation guard
    csrf_protection_enabled: bool = False
    canonical_origin: str = "http://localhost:8000"
    mutation_limit: int = Field(default=30, gt=0)
    mutation_window_ms: int = Field(default=60_000, gt=0)

    # Forge
    forge_api_url: str = "https://api.github.com"
    forge_token: SecretStr | None = None

    @property
    def sync_stale_after_ms(self) -> int:
        """Sync staleness threshold in milliseconds."""
        return self.sync_stale_after_minutes * MINUTE_MS

    @property
    def attention_stale_after_ms(self) -> int:
        """Threshold after which an in-progress ticket's cache entry counts as stale."""
        return self.attention_stale_after_hours * HOUR_MS


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
