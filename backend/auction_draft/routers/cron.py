from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..database import get_session
from ..engine.clock import utcnow
from ..events.manager import manager
from ..events.payloads import quiet_hours_payload
from ..schemas.draft import QuietHoursResponse
from ..security import verify_cron_secret
from ..services.quiet_hours_service import QuietHoursService

router = APIRouter(prefix="/cron", tags=["cron"])
settings = get_settings()


@router.get("/quiet-hours", response_model=QuietHoursResponse)
async def quiet_hours_cron(
    draft_id: str = Query(min_length=1),
    secret: str = Query(default=""),
    session: AsyncSession = Depends(get_session),
):
    if not settings.cron_secret:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Missing CRON_SECRET env var.")
    if not verify_cron_secret(secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized.")

    result = await QuietHoursService(session).apply(draft_id, utcnow())
    if result.changed:
        await manager.broadcast_draft(draft_id, quiet_hours_payload(result))
    return QuietHoursResponse(
        in_quiet_window=result.in_quiet_window,
        paused=len(result.paused),
        resumed=len(result.resumed),
    )
