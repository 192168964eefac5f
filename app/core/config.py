"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app and the maintenance
scripts share a consistent configuration surface.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class CookieSlotPolicy(str, Enum):
    """How many pages a single browser may hold edit tokens for."""

    SINGLE = "single"
    MULTI = "multi"


class StorageBackend(str, Enum):
    MEMORY = "memory"
    SQLITE = "sqlite"
    DYNAMODB = "dynamodb"


class AccessSettings(BaseSettings):
    """Creator token and edit cookie configuration."""

    model_config = SettingsConfigDict(populate_by_name=True)

    page_lifetime_seconds: int = Field(
        86400,
        alias="PAGE_LIFETIME_SECONDS",
        gt=0,
        description="Lifetime granted at creation and again on every rotation.",
    )
    token_length: int = Field(32, alias="EDIT_TOKEN_LENGTH", gt=0)
    cookie_name: str = Field("edit_page_access_token", alias="EDIT_COOKIE_NAME")
    cookie_slot_policy: CookieSlotPolicy = Field(
        CookieSlotPolicy.SINGLE,
        alias="EDIT_COOKIE_SLOT_POLICY",
        description=(
            "'single' keeps one page per browser, 'multi' keeps a keyed list."
        ),
    )
    cookie_max_entries: int = Field(10, alias="EDIT_COOKIE_MAX_ENTRIES", gt=0)
    allow_unprotected_access: bool = Field(
        True,
        alias="ALLOW_UNPROTECTED_ACCESS",
        description=(
            "Grant access without a token to pages stored without a creator "
            "token. Pages with a token always require it."
        ),
    )
    sweep_on_request: bool = Field(
        True,
        alias="SWEEP_ON_REQUEST",
        description="Run the expired page sweep after each edit page visit.",
    )

    @property
    def page_lifetime_ms(self) -> int:
        return self.page_lifetime_seconds * 1000


class StorageSettings(BaseSettings):
    """Settings for the page document store."""

    model_config = SettingsConfigDict(populate_by_name=True)

    backend: StorageBackend = Field(StorageBackend.SQLITE, alias="STORAGE_BACKEND")
    sqlite_db_path: str = Field("data/pages.db", alias="SQLITE_DB_PATH")
    pages_collection: str = Field("birthdayPages", alias="PAGES_COLLECTION")
    timeout_seconds: float = Field(
        10.0,
        alias="STORAGE_TIMEOUT_SECONDS",
        gt=0,
        description="Upper bound for a single document store call.",
    )
    region_name: str = Field("us-east-1", alias="AWS_REGION")
    dynamodb_table_name: Optional[str] = Field(None, alias="DYNAMODB_TABLE_NAME")

    @field_validator("backend", mode="before")
    @classmethod
    def _normalize_backend(cls, value):
        """Accept backend names in any case."""
        if isinstance(value, str):
            return value.strip().lower()
        return value


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    public_base_url: Optional[HttpUrl] = Field(
        None,
        alias="PUBLIC_BASE_URL",
        description="Optional origin used to build absolute edit links.",
    )
    access: AccessSettings = Field(default_factory=AccessSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AccessSettings",
    "AppSettings",
    "CookieSlotPolicy",
    "StorageBackend",
    "StorageSettings",
    "get_settings",
]
