from datetime import datetime

from sqlmodel import Field, SQLModel

from ..engine.clock import utcnow
from ..engine.policy import DEFAULT_QUIET_END_MINUTE, DEFAULT_QUIET_START_MINUTE


class DraftSettings(SQLModel, table=True):
    __tablename__ = "draft_settings"

    draft_id: str = Field(primary_key=True)
    nomination_seconds: int = Field(ge=1)
    bid_seconds: int = Field(ge=0)
    quiet_hours_enabled: bool = Field(default=False)
    quiet_start_minute: int = Field(default=DEFAULT_QUIET_START_MINUTE, ge=0, le=1439)
    quiet_end_minute: int = Field(default=DEFAULT_QUIET_END_MINUTE, ge=0, le=1439)
    quiet_timezone: str = Field(default="America/New_York", max_length=64)
    updated_at: datetime = Field(default_factory=utcnow)
