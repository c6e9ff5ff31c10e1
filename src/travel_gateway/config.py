"""Configuration module using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Amadeus credentials
    amadeus_api_key: str | None = None
    amadeus_api_secret: str | None = None
    amadeus_hostname: str = "test"  # "test" or "production"

    # Cache
    cache_ttl_minutes: float = Field(default=5, gt=0)
    cache_backend: str = "memory"  # "memory" or "redis"
    cache_max_size: int | None = Field(default=None, gt=0)
    cache_cleanup_interval_seconds: int = Field(default=60, gt=0)
    redis_url: str | None = None  # e.g. redis://localhost:6379/0
    redis_prefix: str = "travel-gateway:"

    # Concurrency
    rate_limit_requests: int = Field(default=5, ge=1)

    # Retry
    max_retries: int = Field(default=3, ge=0)
    retry_base_delay_seconds: float = Field(default=1.0, ge=0)
    retry_backoff_factor: float = Field(default=2.0, ge=1)
    retry_max_delay_seconds: float = Field(default=10.0, ge=0)
    retry_domain_errors: bool = True

    # Per-attempt deadline for producers (0 disables it)
    producer_timeout_seconds: float | None = Field(default=30.0, ge=0)

    # Logging
    log_level: str = "INFO"

    @property
    def cache_ttl_seconds(self) -> float:
        """Cache TTL expressed in seconds."""
        return self.cache_ttl_minutes * 60


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience alias for quick access
settings = get_settings()
