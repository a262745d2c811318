from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from trade_journal.types import PAGE_SIZES


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Storage
    store_backend: Literal["sql", "postgrest"] = Field(default="sql", validation_alias="STORE_BACKEND")
    database_url: str = Field(
        default="sqlite+aiosqlite:///trade_journal.db",
        validation_alias="DATABASE_URL",
    )

    # Supabase (PostgREST)
    supabase_url: str = Field(default="", validation_alias="SUPABASE_URL")
    supabase_key: str = Field(default="", validation_alias="SUPABASE_KEY")
    supabase_table: str = Field(default="trades", validation_alias="SUPABASE_TABLE")
    http_timeout_seconds: float = Field(default=10.0, gt=0, validation_alias="HTTP_TIMEOUT_SECONDS")

    # View
    default_page_size: int = Field(default=5, validation_alias="DEFAULT_PAGE_SIZE")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("default_page_size")
    @classmethod
    def _check_page_size(cls, value: int) -> int:
        if value not in PAGE_SIZES:
            raise ValueError(f"DEFAULT_PAGE_SIZE must be one of {PAGE_SIZES}")
        return value

    def postgrest_configured(self) -> bool:
        return bool(self.supabase_url.strip() and self.supabase_key.strip())
