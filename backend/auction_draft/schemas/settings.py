from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from ..engine.quiet_hours import resolve_timezone


class DraftSettingsUpdate(BaseModel):
    nomination_seconds: int = Field(ge=1, le=60 * 60 * 24 * 30)
    bid_seconds: int = Field(ge=0, le=60 * 60 * 24 * 30)
    quiet_hours_enabled: bool = False
    # Omitted quiet-window fields keep the stored values.
    quiet_start_minute: int | None = Field(default=None, ge=0, le=1439)
    quiet_end_minute: int | None = Field(default=None, ge=0, le=1439)
    quiet_timezone: str | None = Field(default=None, max_length=64)

    @field_validator("quiet_timezone")
    @classmethod
    def ensure_known_timezone(cls, value: str | None) -> str | None:
        if value is None:
            return value
        stripped = value.strip()
        if not stripped:
            return None
        resolve_timezone(stripped)
        return stripped


class DraftSettingsPublic(BaseModel):
    draft_id: str
    nomination_seconds: int
    bid_seconds: int
    quiet_hours_enabled: bool
    quiet_start_minute: int
    quiet_end_minute: int
    quiet_timezone: str
    in_quiet_window: bool
    is_default: bool = False
    updated_at: datetime | None = None
