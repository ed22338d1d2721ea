"""Application settings powered by Pydantic BaseSettings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="", case_sensitive=False, env_file=".env", env_file_encoding="utf-8"
    )

    matching_config_path: Path | None = Field(
        default=None, validation_alias="MATCHING_CONFIG_PATH"
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    source_timeout_ms: int = Field(
        default=3000, ge=0, validation_alias="SOURCE_TIMEOUT_MS"
    )
    source_concurrency: int = Field(
        default=5, ge=1, validation_alias="SOURCE_CONCURRENCY"
    )
    source_cache_ttl_ms: int = Field(
        default=60000, ge=0, validation_alias="SOURCE_CACHE_TTL_MS"
    )

    @property
    def source_timeout_seconds(self) -> float | None:
        """Per-source fetch timeout in seconds, None when disabled."""
        if self.source_timeout_ms <= 0:
            return None
        return self.source_timeout_ms / 1000


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()
