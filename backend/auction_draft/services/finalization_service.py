"""Closing auctions exactly once.

Every trigger (background sweep, admin force, admin manual finalize, public
auto-finalize) funnels through ``FinalizationService.finalize``. The guard is
a compare-and-set on the auction row: only the caller whose UPDATE flips
``closed_at`` from NULL gets to charge the winner, and it does so inside the
same transaction, so a concurrent or repeated call can only ever observe the
auction as already closed.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from sqlalchemy import update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..engine.clock import AuctionClock
from ..enums import EventType, FinalizeStatus
from ..errors import (
    BudgetOverdraw,
    DraftError,
    InvariantViolation,
    NotExpiredYet,
    NotFound,
    RosterOverflow,
    StateConflict,
)
from ..models import Auction, Player, Team
from .event_log import EventLog

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


@dataclass
class FinalizeOutcome:
    auction_id: str
    status: FinalizeStatus
    player_id: str | None = None
    team_id: str | None = None
    amount: int | None = None
    forced: bool = False


@dataclass
class SweepResult:
    finalized: int = 0
    outcomes: list[FinalizeOutcome] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _Observed:
    auction_id: str
    draft_id: str
    player_id: str
    high_bid: int
    high_team_id: str | None
    version: int


async def open_draft_ids(session: AsyncSession) -> Sequence[str]:
    statement = select(Auction.draft_id).where(Auction.closed_at.is_(None)).distinct()
    return (await session.execute(statement)).scalars().all()


class FinalizationService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _load(self, draft_id: str, auction_id: str) -> Auction:
        auction = await self.session.get(Auction, auction_id, populate_existing=True)
        if auction is None or auction.draft_id != draft_id:
            raise NotFound("Auction not found in this draft.")
        return auction

    async def finalize(
        self,
        draft_id: str,
        auction_id: str,
        now: datetime,
        *,
        force: bool = False,
    ) -> FinalizeOutcome:
        for attempt in range(1, MAX_ATTEMPTS + 1):
            auction = await self._load(draft_id, auction_id)
            if auction.closed_at is not None:
                return FinalizeOutcome(
                    auction_id=auction.id,
                    status=FinalizeStatus.ALREADY_CLOSED,
                    player_id=auction.player_id,
                )
            if not force and not AuctionClock.from_auction(auction).is_expired(now):
                raise NotExpiredYet("Auction has not expired yet.")

            observed = _Observed(
                auction_id=auction.id,
                draft_id=auction.draft_id,
                player_id=auction.player_id,
                high_bid=auction.high_bid,
                high_team_id=auction.high_team_id,
                version=auction.version,
            )
            try:
                outcome = await self._close(observed, now, force=force)
            except InvariantViolation as exc:
                await self.session.rollback()
                logger.error(
                    "Finalization of auction %s in draft %s aborted, auction left open: %s",
                    auction_id,
                    draft_id,
                    exc,
                )
                raise
            except Exception:
                await self.session.rollback()
                raise

            if outcome is not None:
                return outcome

            await self.session.rollback()
            logger.warning(
                "Auction %s changed before it could be closed (attempt %s/%s)",
                auction_id,
                attempt,
                MAX_ATTEMPTS,
            )

        raise StateConflict("Auction kept changing during finalization; try again.")

    async def _close(self, observed: _Observed, now: datetime, *, force: bool) -> FinalizeOutcome | None:
        closed = await self.session.execute(
            sa_update(Auction)
            .where(Auction.id == observed.auction_id)
            .where(Auction.closed_at.is_(None))
            .where(Auction.version == observed.version)
            .values(
                closed_at=now,
                paused=False,
                paused_at=None,
                paused_remaining_seconds=None,
                version=observed.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if closed.rowcount != 1:
            return None

        events = EventLog(self.session)
        if observed.high_team_id is None:
            events.append(
                observed.draft_id,
                EventType.FINALIZE,
                {
                    "auction_id": observed.auction_id,
                    "player_id": observed.player_id,
                    "status": FinalizeStatus.NO_BIDS.value,
                    "forced": force,
                },
            )
            await self.session.commit()
            logger.info("Closed auction %s without bids", observed.auction_id)
            return FinalizeOutcome(
                auction_id=observed.auction_id,
                status=FinalizeStatus.NO_BIDS,
                player_id=observed.player_id,
                forced=force,
            )

        await self._charge_winner(observed)
        await self._assign_player(observed, now)
        events.append(
            observed.draft_id,
            EventType.FINALIZE,
            {
                "auction_id": observed.auction_id,
                "player_id": observed.player_id,
                "team_id": observed.high_team_id,
                "amount": observed.high_bid,
                "status": FinalizeStatus.AWARDED.value,
                "forced": force,
            },
        )
        await self.session.commit()
        logger.info(
            "Awarded player %s to team %s for %s (auction %s)",
            observed.player_id,
            observed.high_team_id,
            observed.high_bid,
            observed.auction_id,
        )
        return FinalizeOutcome(
            auction_id=observed.auction_id,
            status=FinalizeStatus.AWARDED,
            player_id=observed.player_id,
            team_id=observed.high_team_id,
            amount=observed.high_bid,
            forced=force,
        )

    async def _charge_winner(self, observed: _Observed) -> None:
        charged = await self.session.execute(
            sa_update(Team)
            .where(Team.id == observed.high_team_id)
            .where(Team.roster_spots_remaining > 0)
            .where(Team.budget_remaining >= observed.high_bid)
            .values(
                budget_remaining=Team.budget_remaining - observed.high_bid,
                roster_spots_remaining=Team.roster_spots_remaining - 1,
            )
            .execution_options(synchronize_session=False)
        )
        if charged.rowcount == 1:
            return

        team = await self.session.get(Team, observed.high_team_id, populate_existing=True)
        if team is None:
            raise InvariantViolation(f"Winning team {observed.high_team_id} no longer exists.")
        if team.roster_spots_remaining <= 0:
            raise RosterOverflow(f"{team.name} has no roster spots remaining.")
        raise BudgetOverdraw(
            f"{team.name} cannot cover {observed.high_bid} with {team.budget_remaining} remaining."
        )

    async def _assign_player(self, observed: _Observed, now: datetime) -> None:
        assigned = await self.session.execute(
            sa_update(Player)
            .where(Player.id == observed.player_id)
            .where(Player.drafted_by_team_id.is_(None))
            .values(
                drafted_by_team_id=observed.high_team_id,
                winning_bid=observed.high_bid,
                drafted_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if assigned.rowcount != 1:
            raise InvariantViolation(f"Player {observed.player_id} is missing or already drafted.")

    async def expired_auction_ids(self, draft_id: str, now: datetime) -> Sequence[str]:
        statement = (
            select(Auction.id)
            .where(Auction.draft_id == draft_id)
            .where(Auction.closed_at.is_(None))
            .where(Auction.paused.is_(False))
            .where(Auction.ends_at <= now)
            .order_by(Auction.ends_at)
        )
        return (await self.session.execute(statement)).scalars().all()

    async def sweep_expired(self, draft_id: str, now: datetime) -> SweepResult:
        result = SweepResult()
        for auction_id in await self.expired_auction_ids(draft_id, now):
            try:
                outcome = await self.finalize(draft_id, auction_id, now)
            except (DraftError, SQLAlchemyError) as exc:
                logger.warning("Sweep could not finalize auction %s: %s", auction_id, exc)
                result.errors.append(f"{auction_id}: {exc}")
                continue
            result.outcomes.append(outcome)
            if outcome.status in (FinalizeStatus.AWARDED, FinalizeStatus.NO_BIDS):
                result.finalized += 1
        if result.finalized:
            logger.info("Sweep finalized %s auctions in draft %s", result.finalized, draft_id)
        return result
