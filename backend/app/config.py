"""Settings — every tunable read from the environment (or .env) through pydantic-settings.

Invariants:
    - Credentials only ever arrive through DATABASE_URL, never as literals in code
    - get_settings() is lru_cached: one Settings per process
    - store_max_attempts bounds every optimistic retry loop
    - default_page_size <= max_page_size

Design Decisions:
    - Defaults target the docker-compose stack, so a bare checkout starts without a .env
    - postgresql:// URLs are rewritten to the asyncpg driver at load time
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Activity store
    database_url: str = "postgresql+asyncpg://rally:rally@db:5432/rally"
    database_pool_size: int = 20
    database_max_overflow: int = 10
    store_timeout_seconds: float = 5.0

    # Optimistic retry (capacity enforcer)
    store_max_attempts: int = 5
    store_base_delay_ms: int = 20
    store_max_delay_ms: int = 250

    # Notification fan-out
    notification_timeout_seconds: float = 2.0

    # Paging
    default_page_size: int = 20
    max_page_size: int = 100

    # HTTP / logs
    cors_origins: list[str] = ["http://localhost:5173"]
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("database_url", mode="before")
    @classmethod
    def use_asyncpg_driver(cls, v: str) -> str:
        if isinstance(v, str) and v.startswith("postgresql://"):
            return "postgresql+asyncpg://" + v.removeprefix("postgresql://")
        return v

    @model_validator(mode="after")
    def check_page_sizes(self) -> "Settings":
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size cannot exceed max_page_size")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()
