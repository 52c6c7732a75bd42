from datetime import datetime
from uuid import uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from ..engine.clock import utcnow
from ..enums import EventType


class DraftEvent(SQLModel, table=True):
    """Append-only audit record. Never read back into decision logic."""

    __tablename__ = "draft_events"

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    draft_id: str = Field(index=True)
    event_type: EventType = Field(index=True)
    payload: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow, index=True)
