"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults work out of the box: JSON file under ./data, generation off without a key
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from craftsync.core.domain_types import PersistenceBackend


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Persistence
    persistence_backend: PersistenceBackend = PersistenceBackend.JSON
    data_file: str = "data/combinations.json"
    database_url: str = "sqlite+aiosqlite:///./craftsync.db"
    persistence_timeout_seconds: float = 5.0
    seed_default_combinations: bool = True

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    # Broadcasting
    subscriber_queue_size: int = 100
    sse_keepalive_seconds: float = 15.0

    # Generation (Anthropic)
    generation_enabled: bool = True
    anthropic_api_key: str | None = None
    anthropic_model: str = "claude-3-5-haiku-latest"
    anthropic_max_retries: int = 2
    anthropic_timeout_seconds: int = 30

    # API
    cors_origins: list[str] = ["*"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
