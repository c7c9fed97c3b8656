"""Centralized configuration using Pydantic BaseSettings."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Server binding
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Denylist produced by the build pipeline, read once at startup
    hosts_file: str = "hosts"

    # Upstream resolution, must stay below the platform invocation deadline
    resolver_timeout: float = 2.5

    # Client IP logging behind a proxy or function URL
    trust_forwarded_for: bool = True

    # Sentry configuration (optional)
    sentry_dsn: Optional[str] = None
    sentry_environment: str = "production"
    sentry_traces_sample_rate: float = 1.0

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value):
        """Accept level names in any case."""
        return value.upper() if isinstance(value, str) else value

    @property
    def use_sentry(self) -> bool:
        """Check if Sentry is configured."""
        return bool(self.sentry_dsn)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
