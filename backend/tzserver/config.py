"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache) — single instance per process
    - Every setting has a default: the service starts against ./data with no env

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - TZSERVER_ env prefix: keeps unrelated DATABASE_URL-style variables out
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tzserver.core.domain_types import DataSourceKind


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="TZSERVER_", case_sensitive=False,
    )

    # Definition source
    data_source: DataSourceKind = DataSourceKind.FILE
    data_dir: str = "data"
    # Directory the database loader pulls from on forced update (optional)
    primary_data_dir: str | None = None

    # Database (used when data_source == "database")
    database_url: str = "sqlite+aiosqlite:///tzserver.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 5
    database_max_overflow: int = 5

    # Cache lifecycle
    store_name: str = "tzdata"
    refresh_interval_seconds: float | None = None
    expansion_cache_max_entries: int | None = 10_000
    update_timeout_seconds: float = 60.0

    # API
    cors_origins: list[str] = ["*"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
