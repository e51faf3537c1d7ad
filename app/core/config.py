"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # PostgreSQL (the hosted relational store)
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "internship_user"
    postgres_password: str = "password"
    postgres_db: str = "internship_db"

    # Full URL wins over the parts above when set
    database_url: Optional[str] = None

    # Hosted identity provider - tokens are verified, never issued here
    auth_jwt_secret: str = "change-this-secret"
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # Read-through query cache
    cache_ttl_seconds: float = 60.0
    cache_single_flight: bool = False

    # External timeout applied around live fetches by callers
    fetch_timeout_seconds: float = 10.0

    # App
    log_level: str = "INFO"
    debug: bool = False

    @property
    def postgres_url(self) -> str:
        """Construct PostgreSQL connection URL"""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
