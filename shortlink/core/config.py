"""Application configuration settings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "shortlink.db"

    # Application
    app_title: str = "Shortlink"
    app_version: str = "1.0"
    app_description: str = "URL shortening service with click analytics"
    environment: str = "production"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 3000

    # Take the client IP from X-Forwarded-For
    trust_proxy: bool = True

    # Public base for generated short URLs; falls back to the request URL
    base_url: Optional[str] = None

    # Short codes
    default_short_code_length: int = 6
    max_short_code_length: int = 8
    code_generation_attempts: int = 3

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    @property
    def is_development(self) -> bool:
        """Whether internal error detail may be exposed to clients."""
        return self.environment.lower() == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
