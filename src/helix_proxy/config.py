"""Configuration module using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Twitch credentials (validated per request, not at startup)
    twitch_client_id: str | None = None
    twitch_client_secret: str | None = None  # Enables the app-token flow
    twitch_oauth: str | None = None  # Legacy static bearer token

    # Upstream endpoints
    twitch_api_base: str = "https://api.twitch.tv/helix/"
    twitch_token_url: str = "https://id.twitch.tv/oauth2/token"

    # HTTP Client
    http_timeout_connect: float = 5.0
    http_timeout_read: float = 10.0

    # Request budget
    rate_limit_window_seconds: int = 60
    rate_limit_max_requests: int = 120

    # Redis (enables the distributed cache, limiter and token store)
    redis_url: str | None = None
    redis_prefix: str = "twitch:"

    # Logging
    log_level: str = "INFO"

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    @property
    def distributed(self) -> bool:
        """Whether the Redis-backed backends should be used."""
        return bool(self.redis_url)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
