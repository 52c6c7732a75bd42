from typing import Sequence

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..dependencies import require_admin
from ..engine.clock import utcnow
from ..enums import EventType, FinalizeStatus
from ..events.manager import manager
from ..events.payloads import auction_closed_payload, quiet_hours_payload
from ..schemas.admin import CsvImportRequest, DraftEventPublic, ImportResponse, RemovedResponse, ResetSummary
from ..schemas.draft import AuctionPublic, FinalizeRequest, FinalizeResponse, NominationRequest, QuietHoursResponse
from ..schemas.settings import DraftSettingsPublic, DraftSettingsUpdate
from ..services.event_log import EventLog
from ..services.finalization_service import FinalizationService
from ..services.import_service import ImportSummary, RosterImportService
from ..services.nomination_service import NominationService
from ..services.quiet_hours_service import QuietHoursService
from ..services.settings_service import SettingsService

router = APIRouter(
    prefix="/admin/drafts/{draft_id}",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def _import_response(summary: ImportSummary) -> ImportResponse:
    return ImportResponse(count=summary.count, created=summary.created, updated=summary.updated)


@router.post("/nominations", response_model=AuctionPublic, status_code=status.HTTP_201_CREATED)
async def nominate_player(
    draft_id: str,
    payload: NominationRequest,
    session: AsyncSession = Depends(get_session),
) -> AuctionPublic:
    now = utcnow()
    auction = await NominationService(session).nominate(draft_id, payload.player_id, now)
    auction_public = AuctionPublic.from_auction(auction, now)
    await manager.broadcast_draft(
        draft_id,
        {
            "type": "auction_opened",
            "auction_id": auction_public.id,
            "player_id": auction_public.player_id,
            "ends_at": auction_public.ends_at.isoformat(),
            "paused": auction_public.paused,
        },
    )
    return auction_public


@router.post("/auctions/{auction_id}/finalize", response_model=FinalizeResponse)
async def finalize_auction(
    draft_id: str,
    auction_id: str,
    payload: FinalizeRequest | None = None,
    session: AsyncSession = Depends(get_session),
) -> FinalizeResponse:
    force = bool(payload and payload.force)
    outcome = await FinalizationService(session).finalize(draft_id, auction_id, utcnow(), force=force)
    if outcome.status != FinalizeStatus.ALREADY_CLOSED:
        await manager.broadcast_draft(draft_id, auction_closed_payload(outcome))
    return FinalizeResponse(
        auction_id=outcome.auction_id,
        status=outcome.status,
        player_id=outcome.player_id,
        team_id=outcome.team_id,
        amount=outcome.amount,
    )


@router.post("/quiet-hours/tick", response_model=QuietHoursResponse)
async def tick_quiet_hours(draft_id: str, session: AsyncSession = Depends(get_session)) -> QuietHoursResponse:
    result = await QuietHoursService(session).apply(draft_id, utcnow())
    if result.changed:
        await manager.broadcast_draft(draft_id, quiet_hours_payload(result))
    return QuietHoursResponse(
        in_quiet_window=result.in_quiet_window,
        paused=len(result.paused),
        resumed=len(result.resumed),
    )


@router.get("/settings", response_model=DraftSettingsPublic)
async def read_settings(draft_id: str, session: AsyncSession = Depends(get_session)) -> DraftSettingsPublic:
    return await SettingsService(session).describe(draft_id)


@router.put("/settings", response_model=DraftSettingsPublic)
async def update_settings(
    draft_id: str,
    payload: DraftSettingsUpdate,
    session: AsyncSession = Depends(get_session),
) -> DraftSettingsPublic:
    service = SettingsService(session)
    await service.save(draft_id, payload)
    # Apply the new window right away instead of waiting for the next sweep.
    result = await QuietHoursService(session).apply(draft_id, utcnow())
    if result.changed:
        await manager.broadcast_draft(draft_id, quiet_hours_payload(result))
    await manager.broadcast_draft(draft_id, {"type": "settings_updated"})
    return await service.describe(draft_id)


@router.post("/teams/import", response_model=ImportResponse)
async def import_teams(
    draft_id: str,
    payload: CsvImportRequest,
    session: AsyncSession = Depends(get_session),
) -> ImportResponse:
    summary = await RosterImportService(session).import_teams(draft_id, payload.csv)
    await manager.broadcast_draft(draft_id, {"type": "teams_updated"})
    return _import_response(summary)


@router.post("/teams/replace", response_model=ImportResponse)
async def replace_teams(
    draft_id: str,
    payload: CsvImportRequest,
    session: AsyncSession = Depends(get_session),
) -> ImportResponse:
    summary = await RosterImportService(session).replace_teams(draft_id, payload.csv)
    await manager.broadcast_draft(draft_id, {"type": "teams_updated"})
    return _import_response(summary)


@router.post("/players/import", response_model=ImportResponse)
async def import_players(
    draft_id: str,
    payload: CsvImportRequest,
    session: AsyncSession = Depends(get_session),
) -> ImportResponse:
    summary = await RosterImportService(session).import_players(draft_id, payload.csv)
    await manager.broadcast_draft(draft_id, {"type": "players_updated"})
    return _import_response(summary)


@router.delete("/players/undrafted", response_model=RemovedResponse)
async def clear_undrafted_players(draft_id: str, session: AsyncSession = Depends(get_session)) -> RemovedResponse:
    removed = await RosterImportService(session).clear_undrafted_players(draft_id)
    await manager.broadcast_draft(draft_id, {"type": "players_updated"})
    return RemovedResponse(removed=removed)


@router.post("/reset", response_model=ResetSummary)
async def reset_draft(draft_id: str, session: AsyncSession = Depends(get_session)) -> ResetSummary:
    summary = await RosterImportService(session).reset_draft(draft_id)
    await manager.broadcast_draft(draft_id, {"type": "draft_reset"})
    return ResetSummary(reset=summary)


@router.get("/events", response_model=list[DraftEventPublic])
async def list_events(
    draft_id: str,
    event_type: EventType | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    session: AsyncSession = Depends(get_session),
) -> Sequence[DraftEventPublic]:
    events = await EventLog(session).list_events(draft_id, event_type=event_type, limit=limit)
    return [DraftEventPublic.model_validate(event) for event in events]
