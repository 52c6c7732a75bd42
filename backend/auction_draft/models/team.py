from datetime import datetime
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ..engine.clock import utcnow


class Team(SQLModel, table=True):
    __tablename__ = "teams"
    __table_args__ = (
        UniqueConstraint("draft_id", "name", name="uq_teams_draft_name"),
        UniqueConstraint("draft_id", "join_code", name="uq_teams_draft_join_code"),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    draft_id: str = Field(index=True)
    name: str
    join_code: str
    budget_total: int = Field(default=0, ge=0)
    budget_remaining: int = Field(default=0, ge=0)
    roster_spots_total: int = Field(default=0, ge=0)
    roster_spots_remaining: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
