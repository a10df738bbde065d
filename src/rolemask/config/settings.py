from __future__ import annotations

from functools import lru_cache
from typing import Set

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ROLEMASK_",
        env_file=".env",
        extra="ignore",
    )

    # Runtime
    LOG_LEVEL: str = Field(default="INFO", description="Log level used by the CLI")

    # Database
    DATABASE_URL: str = Field(default="sqlite:///rolemask_dev.db")
    SCHEMA_MODE: str = Field(
        default="create_all",
        description="create_all: auto-create tables (dev), migrations: use Alembic only (prod)",
    )

    # Audit
    AUDIT_ENABLED: bool = Field(
        default=True, description="Persist audit entries to the audit_logs table"
    )

    # Roles
    DEFAULT_ROLE_NAME: str = Field(
        default="Administrator",
        description="Name of the system role created when no role exists",
    )
    ROLE_CACHE_TTL_SECONDS: int = Field(
        default=600, description="Seconds before the role cache reloads from storage"
    )
    NECESSARY_RESOURCE_IDS: str = Field(
        default="",
        description="Comma-separated resource ids that some role must fully manage",
    )

    def necessary_resource_ids(self) -> Set[int]:
        ids: Set[int] = set()
        for raw in (self.NECESSARY_RESOURCE_IDS or "").split(","):
            raw = raw.strip()
            if raw.isdigit():
                ids.add(int(raw))
        return ids


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
