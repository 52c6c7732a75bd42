from datetime import datetime
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ..engine.clock import utcnow
from ..engine.positions import PositionEligibility
from ..enums import PrimaryPosition, SecondaryPosition


class Player(SQLModel, table=True):
    __tablename__ = "players"
    __table_args__ = (UniqueConstraint("draft_id", "name", name="uq_players_draft_name"),)

    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    draft_id: str = Field(index=True)
    name: str
    position_primary: PrimaryPosition
    position_secondary: SecondaryPosition | None = Field(default=None)
    drafted_by_team_id: str | None = Field(default=None, foreign_key="teams.id", index=True)
    winning_bid: int | None = Field(default=None)
    drafted_at: datetime | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)

    @property
    def eligibility(self) -> PositionEligibility:
        return PositionEligibility(primary=self.position_primary, secondary=self.position_secondary)
