from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from ..engine.clock import AuctionClock
from ..enums import AuctionState, FinalizeStatus, PrimaryPosition, SecondaryPosition
from ..models import Auction, Player
from .settings import DraftSettingsPublic


class TeamPublic(BaseModel):
    id: str
    draft_id: str
    name: str
    budget_total: int
    budget_remaining: int
    roster_spots_total: int
    roster_spots_remaining: int

    class Config:
        from_attributes = True


class PlayerPublic(BaseModel):
    id: str
    draft_id: str
    name: str
    position_primary: PrimaryPosition
    position_secondary: SecondaryPosition | None
    eligible_slots: List[str] = Field(default_factory=list)
    is_pitcher: bool = False
    drafted_by_team_id: str | None
    winning_bid: int | None
    drafted_at: datetime | None

    @classmethod
    def from_player(cls, player: Player) -> "PlayerPublic":
        return cls(
            id=player.id,
            draft_id=player.draft_id,
            name=player.name,
            position_primary=player.position_primary,
            position_secondary=player.position_secondary,
            eligible_slots=sorted(player.eligibility.slots),
            is_pitcher=player.eligibility.is_pitcher,
            drafted_by_team_id=player.drafted_by_team_id,
            winning_bid=player.winning_bid,
            drafted_at=player.drafted_at,
        )


class AuctionPublic(BaseModel):
    id: str
    draft_id: str
    player_id: str
    high_bid: int
    high_team_id: str | None
    ends_at: datetime
    last_bid_at: datetime | None
    paused: bool
    closed_at: datetime | None
    remaining_seconds: float
    state: AuctionState

    @classmethod
    def from_auction(cls, auction: Auction, now: datetime) -> "AuctionPublic":
        clock = AuctionClock.from_auction(auction)
        if auction.closed_at is not None:
            state = AuctionState.CLOSED
        elif auction.paused:
            state = AuctionState.PAUSED
        elif clock.is_expired(now):
            state = AuctionState.EXPIRED
        else:
            state = AuctionState.OPEN
        return cls(
            id=auction.id,
            draft_id=auction.draft_id,
            player_id=auction.player_id,
            high_bid=auction.high_bid,
            high_team_id=auction.high_team_id,
            ends_at=auction.ends_at,
            last_bid_at=auction.last_bid_at,
            paused=auction.paused,
            closed_at=auction.closed_at,
            remaining_seconds=0.0 if auction.closed_at else clock.remaining_seconds(now),
            state=state,
        )


class NominationRequest(BaseModel):
    player_id: str = Field(min_length=1)


class BidRequest(BaseModel):
    amount: int = Field(gt=0)


class BidResponse(BaseModel):
    ok: bool = True
    auction: AuctionPublic
    available_budget: int


class FinalizeRequest(BaseModel):
    force: bool = False


class FinalizeResponse(BaseModel):
    ok: bool = True
    auction_id: str
    status: FinalizeStatus
    player_id: str | None = None
    team_id: str | None = None
    amount: int | None = None


class SweepResponse(BaseModel):
    finalized: int
    errors: List[str] = Field(default_factory=list)


class QuietHoursResponse(BaseModel):
    ok: bool = True
    in_quiet_window: bool
    paused: int
    resumed: int


class BudgetResponse(BaseModel):
    team_id: str
    budget_remaining: int
    committed: int
    available_budget: int


class DraftStateResponse(BaseModel):
    draft_id: str
    server_time: datetime
    settings: DraftSettingsPublic
    teams: List[TeamPublic]
    players: List[PlayerPublic]
    auctions: List[AuctionPublic]
