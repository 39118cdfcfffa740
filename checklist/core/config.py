from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict  # type: ignore[import-not-found]


BASE_DIR = Path(__file__).resolve().parent.parent.parent
DEFAULT_DB_URL = "sqlite:///./data/data.db"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    app_name: str = Field(default="Onboarding Checklist", alias="APP_NAME")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=3000, alias="PORT")
    db_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "DB_URL", "db_url"),
    )
    database_ssl: bool = Field(default=True, alias="DATABASE_SSL")
    store_backend: Literal["sql", "memory"] = Field(default="sql", alias="STORE_BACKEND")
    static_dir: Path = Field(default=BASE_DIR / "public", alias="STATIC_DIR")
    admin_reset_enabled: bool = Field(default=False, alias="ADMIN_RESET_ENABLED")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("db_url", mode="before")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @field_validator("store_backend", "log_level", mode="before")
    @classmethod
    def _normalise_choice(cls, value: str, info) -> str:
        value = str(value).strip()
        return value.upper() if info.field_name == "log_level" else value.lower()


@lru_cache()
def get_settings() -> Settings:
    return Settings()
