from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Auction, Team


def compute_available(budget_remaining: int, committed: int, credit: int = 0) -> int:
    """Spendable budget once the team's other winning bids are set aside."""
    return max(0, budget_remaining - (committed - credit))


class BudgetLedger:
    """Read-only view over a team's commitments in open auctions.

    Nothing here is cached: another auction's high bid can change between two
    calls, so every answer is recomputed from the live open auctions.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def committed(self, team: Team) -> int:
        statement = (
            select(func.coalesce(func.sum(Auction.high_bid), 0))
            .where(Auction.draft_id == team.draft_id)
            .where(Auction.high_team_id == team.id)
            .where(Auction.closed_at.is_(None))
        )
        return int((await self.session.execute(statement)).scalar_one())

    async def available_budget(self, team: Team, excluding_auction: Auction | None = None) -> int:
        committed = await self.committed(team)
        credit = 0
        if (
            excluding_auction is not None
            and excluding_auction.closed_at is None
            and excluding_auction.high_team_id == team.id
        ):
            credit = excluding_auction.high_bid
        return compute_available(team.budget_remaining, committed, credit)
