"""
Quill — Configuration Module
============================
All configuration is loaded from environment variables (prefix ``QUILL_``)
and an optional ``.env`` file.
"""

import socket
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="QUILL_",
        extra="ignore",
    )

    # App
    app_name: str = "Quill Content Lifecycle"
    app_env: str = "development"
    app_debug: bool = False
    app_port: int = 8000

    # Database
    database_url_override: str = ""
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "quill_db"
    postgres_user: str = "quill"
    postgres_password: str = "quill"
    db_pool_size: int = 10
    db_max_overflow: int = 5

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def database_url_sync(self) -> str:
        if self.database_url_override:
            return self.database_url_override.replace("+asyncpg", "").replace("+aiosqlite", "")
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str = ""
    redis_db: int = 0
    redis_queue_db: int = 1

    @property
    def redis_url(self) -> str:
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @property
    def redis_queue_url(self) -> str:
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_queue_db}"

    # Autosave
    autosave_debounce_seconds: float = Field(5.0, gt=0)
    local_draft_key_prefix: str = "quill:draft:local"
    local_draft_device_id: str = Field(default_factory=socket.gethostname)
    local_draft_ttl_days: int = 30

    # Scheduled publishing (deployment cadence of the external trigger)
    scheduled_publish_interval_seconds: int = Field(60, ge=5)
    scheduled_publish_in_process: bool = False
    scheduled_publish_actor: str = "system:scheduled-publish"

    # Queue / Workers
    queue_default_name: str = "quill_default"
    queue_lifecycle_name: str = "quill_lifecycle"

    # Content defaults
    words_per_minute: int = Field(200, ge=50)
    max_bulk_items: int = Field(200, ge=1)

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
