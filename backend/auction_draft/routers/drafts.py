from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..database import get_session
from ..dependencies import get_current_team
from ..engine.clock import utcnow
from ..engine.ledger import BudgetLedger
from ..enums import FinalizeStatus
from ..events.manager import manager
from ..events.payloads import auction_closed_payload
from ..models import Auction, Player, Team
from ..schemas.draft import (
    AuctionPublic,
    BidRequest,
    BidResponse,
    BudgetResponse,
    DraftStateResponse,
    PlayerPublic,
    SweepResponse,
    TeamPublic,
)
from ..services.bid_service import BidService
from ..services.finalization_service import FinalizationService
from ..services.settings_service import SettingsService

router = APIRouter(prefix="/drafts", tags=["drafts"])


@router.get("/{draft_id}/state", response_model=DraftStateResponse)
async def read_draft_state(draft_id: str, session: AsyncSession = Depends(get_session)):
    now = utcnow()
    teams = (
        await session.execute(select(Team).where(Team.draft_id == draft_id).order_by(Team.name))
    ).scalars().all()
    players = (
        await session.execute(select(Player).where(Player.draft_id == draft_id).order_by(Player.name))
    ).scalars().all()
    auctions = (
        await session.execute(
            select(Auction)
            .where(Auction.draft_id == draft_id)
            .where(Auction.closed_at.is_(None))
            .order_by(Auction.ends_at)
        )
    ).scalars().all()
    return DraftStateResponse(
        draft_id=draft_id,
        server_time=now,
        settings=await SettingsService(session).describe(draft_id),
        teams=[TeamPublic.model_validate(team) for team in teams],
        players=[PlayerPublic.from_player(player) for player in players],
        auctions=[AuctionPublic.from_auction(auction, now) for auction in auctions],
    )


@router.get("/{draft_id}/teams/{team_id}/budget", response_model=BudgetResponse)
async def read_team_budget(draft_id: str, team_id: str, session: AsyncSession = Depends(get_session)):
    team = await session.get(Team, team_id)
    if not team or team.draft_id != draft_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found.")
    ledger = BudgetLedger(session)
    return BudgetResponse(
        team_id=team.id,
        budget_remaining=team.budget_remaining,
        committed=await ledger.committed(team),
        available_budget=await ledger.available_budget(team),
    )


@router.post("/{draft_id}/auctions/{auction_id}/bids", response_model=BidResponse)
async def place_bid(
    draft_id: str,
    auction_id: str,
    payload: BidRequest,
    team: Team = Depends(get_current_team),
    session: AsyncSession = Depends(get_session),
):
    now = utcnow()
    outcome = await BidService(session).place_bid(draft_id, auction_id, team, payload.amount, now)
    auction_public = AuctionPublic.from_auction(outcome.auction, now)
    available = await BudgetLedger(session).available_budget(team)

    await manager.broadcast_draft(
        draft_id,
        {
            "type": "bid_placed",
            "auction_id": auction_id,
            "team_id": outcome.team_id,
            "amount": outcome.amount,
            "ends_at": auction_public.ends_at.isoformat(),
        },
    )
    return BidResponse(auction=auction_public, available_budget=available)


@router.post("/{draft_id}/auto-finalize", response_model=SweepResponse)
async def auto_finalize(draft_id: str, session: AsyncSession = Depends(get_session)):
    result = await FinalizationService(session).sweep_expired(draft_id, utcnow())
    for outcome in result.outcomes:
        if outcome.status != FinalizeStatus.ALREADY_CLOSED:
            await manager.broadcast_draft(draft_id, auction_closed_payload(outcome))
    return SweepResponse(finalized=result.finalized, errors=result.errors)
