from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "BondStore"
    APP_ENV: str = "dev"

    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")
    STORES_DIR: Path | None = None
    BACKUPS_DIR: Path | None = None
    ACTIVE_STORE: str = "default"

    # Explicit database URL; when empty the active store file under STORES_DIR is used.
    DB_URL: str = Field(default="", validation_alias=AliasChoices("DB_URL", "DATABASE_URL"))

    API_KEY: str = Field(default="", validation_alias=AliasChoices("API_KEY", "API_TOKEN"))

    # Markup charged to regular crew on top of the item price. Representatives pay the plain price.
    CREW_MARKUP: Decimal = Decimal("0.10")

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    HOST: str = "0.0.0.0"
    PORT: int = 8089

    @field_validator("CREW_MARKUP")
    @classmethod
    def check_markup(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("CREW_MARKUP must not be negative")
        return value

    @property
    def stores_dir(self) -> Path:
        return self.STORES_DIR if self.STORES_DIR is not None else self.DATA_DIR / "stores"

    @property
    def backups_dir(self) -> Path:
        return self.BACKUPS_DIR if self.BACKUPS_DIR is not None else self.DATA_DIR / "backups"

    def store_path(self, name: str) -> Path:
        return self.stores_dir / f"{name}.db"

    @property
    def database_url(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        return f"sqlite:///{self.store_path(self.ACTIVE_STORE)}"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    settings.stores_dir.mkdir(parents=True, exist_ok=True)
    settings.backups_dir.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
