import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession

from ..engine.clock import AuctionClock
from ..engine.ledger import BudgetLedger
from ..engine.policy import TimerPolicy
from ..enums import EventType
from ..errors import (
    AuctionClosed,
    AuctionEnded,
    BidConflict,
    BidTooLow,
    InsufficientBudget,
    InvalidInput,
    NoRosterSpace,
    NotFound,
)
from ..models import Auction, Team
from .event_log import EventLog
from .settings_service import SettingsService

logger = logging.getLogger(__name__)

MIN_INCREMENT = 1
MAX_ATTEMPTS = 2


@dataclass
class BidOutcome:
    auction: Auction
    team_id: str
    amount: int
    available_before: int


class BidService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.ledger = BudgetLedger(session)

    async def _load_auction(self, draft_id: str, auction_id: str) -> Auction:
        auction = await self.session.get(Auction, auction_id, populate_existing=True)
        if auction is None or auction.draft_id != draft_id:
            raise NotFound("Auction not found in this draft.")
        return auction

    async def _load_team(self, draft_id: str, team_id: str) -> Team:
        team = await self.session.get(Team, team_id, populate_existing=True)
        if team is None or team.draft_id != draft_id:
            raise NotFound("Team not found in this draft.")
        return team

    async def _check(self, auction: Auction, team: Team, amount: int, now: datetime) -> tuple[AuctionClock, int]:
        if auction.closed_at is not None:
            raise AuctionClosed("Auction already closed.")
        clock = AuctionClock.from_auction(auction)
        if not clock.accepts_bid(now):
            raise AuctionEnded("Auction has ended.")
        if team.roster_spots_remaining <= 0:
            raise NoRosterSpace("No roster spots remaining.")
        required = auction.high_bid + MIN_INCREMENT
        if amount < required:
            raise BidTooLow(f"Bid must be at least {required}.")
        available = await self.ledger.available_budget(team, excluding_auction=auction)
        if amount > available:
            raise InsufficientBudget(f"Bid exceeds available budget ({available}).")
        return clock, available

    async def place_bid(
        self,
        draft_id: str,
        auction_id: str,
        team: Team,
        amount: int,
        now: datetime,
        policy: TimerPolicy | None = None,
    ) -> BidOutcome:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidInput("Invalid bid amount.")

        team_id = team.id
        if policy is None:
            policy = await SettingsService(self.session).get_policy(draft_id)

        for attempt in range(1, MAX_ATTEMPTS + 1):
            auction = await self._load_auction(draft_id, auction_id)
            current_team = await self._load_team(draft_id, team_id)
            clock, available = await self._check(auction, current_team, amount, now)
            next_clock = clock.on_bid(now, policy)
            observed_version = auction.version

            result = await self.session.execute(
                sa_update(Auction)
                .where(Auction.id == auction_id)
                .where(Auction.closed_at.is_(None))
                .where(Auction.version == observed_version)
                .values(
                    high_bid=amount,
                    high_team_id=team_id,
                    last_bid_at=now,
                    version=observed_version + 1,
                    **next_clock.as_values(),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                await self.session.rollback()
                logger.warning(
                    "Bid on auction %s lost a concurrent update (attempt %s/%s)",
                    auction_id,
                    attempt,
                    MAX_ATTEMPTS,
                )
                continue

            EventLog(self.session).append(
                draft_id,
                EventType.BID,
                {
                    "auction_id": auction_id,
                    "player_id": auction.player_id,
                    "team_id": team_id,
                    "amount": amount,
                    "ends_at": next_clock.ends_at,
                },
            )
            await self.session.commit()
            auction = await self._load_auction(draft_id, auction_id)
            logger.info("Team %s bid %s on auction %s", team_id, amount, auction_id)
            return BidOutcome(auction=auction, team_id=team_id, amount=amount, available_before=available)

        raise BidConflict("Auction changed while bidding; refresh and try again.")
