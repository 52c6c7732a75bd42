import json
import secrets
from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]
ASYNC_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "postgresql": "postgresql+asyncpg",
    "sqlite": "sqlite+aiosqlite",
}


def split_origins(raw: str | None) -> List[str]:
    """Accepts a JSON list or a comma separated string."""
    text = (raw or "").strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            values = json.loads(text)
        except json.JSONDecodeError:
            values = text.strip("[]").split(",")
    else:
        values = text.split(",")
    return [str(value).strip().strip("\"'") for value in values if str(value).strip().strip("\"'")]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Auction Draft"
    api_prefix: str = "/api"
    secret_key: str = Field(default_factory=lambda: secrets.token_urlsafe(32))
    access_token_expire_minutes: int = 60 * 24 * 7
    database_url: str = "sqlite+aiosqlite:///./auction_draft.db"
    cors_origins_raw: str | None = Field(default=None, alias="CORS_ORIGINS")

    # Shared secrets; an unset value turns the matching login path off.
    admin_code: str | None = None
    cron_secret: str | None = None

    # Fallback timer policy for drafts that never saved their own settings.
    default_nomination_seconds: int = 12 * 3600
    default_bid_seconds: int = 12 * 3600
    default_quiet_timezone: str = "America/New_York"

    background_sweep_enabled: bool = True
    sweep_interval_seconds: float = 15.0

    db_init_max_retries: int = 5
    db_init_retry_interval_seconds: float = 2.0

    @field_validator("database_url")
    @classmethod
    def ensure_async_driver(cls, value: str) -> str:
        """
        Hosted databases hand out plain postgres:// or sqlite:// URLs;
        swap in the async driver the engine needs.
        """
        scheme, separator, rest = value.partition("://")
        if not separator or "+" in scheme:
            return value
        driver = ASYNC_DRIVERS.get(scheme)
        return f"{driver}://{rest}" if driver else value

    @property
    def cors_origins(self) -> List[str]:
        return split_origins(self.cors_origins_raw) or DEFAULT_CORS_ORIGINS


@lru_cache
def get_settings() -> Settings:
    return Settings()
