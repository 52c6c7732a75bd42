from datetime import datetime
from uuid import uuid4

from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel

from ..engine.clock import utcnow


class Auction(SQLModel, table=True):
    __tablename__ = "auctions"
    __table_args__ = (
        # At most one open auction per player, enforced by the database.
        Index(
            "uq_auctions_open_player",
            "player_id",
            unique=True,
            sqlite_where=text("closed_at IS NULL"),
            postgresql_where=text("closed_at IS NULL"),
        ),
    )

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    draft_id: str = Field(index=True)
    player_id: str = Field(foreign_key="players.id")
    high_bid: int = Field(default=0, ge=0)
    high_team_id: str | None = Field(default=None, foreign_key="teams.id", index=True)
    ends_at: datetime
    last_bid_at: datetime | None = Field(default=None)
    paused: bool = Field(default=False)
    paused_at: datetime | None = Field(default=None)
    paused_remaining_seconds: float | None = Field(default=None)
    closed_at: datetime | None = Field(default=None, index=True)
    version: int = Field(default=0)
    created_at: datetime = Field(default_factory=utcnow)
