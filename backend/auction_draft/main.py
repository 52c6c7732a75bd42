import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from datetime import datetime
from typing import AsyncGenerator

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .database import async_session_factory, init_db
from .engine.clock import utcnow
from .enums import FinalizeStatus
from .errors import DraftError, InvariantViolation
from .events.manager import manager
from .events.payloads import auction_closed_payload, quiet_hours_payload
from .routers import admin, auth, cron, drafts
from .services.finalization_service import FinalizationService, open_draft_ids
from .services.quiet_hours_service import QuietHoursService

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    await init_db()
    coordination_task = None
    if settings.background_sweep_enabled:
        coordination_task = asyncio.create_task(_draft_coordination_loop())
    yield
    if coordination_task is not None:
        coordination_task.cancel()
        with suppress(asyncio.CancelledError):
            await coordination_task


def create_app() -> FastAPI:
    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.cors_origins],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router, prefix=settings.api_prefix)
    app.include_router(drafts.router, prefix=settings.api_prefix)
    app.include_router(admin.router, prefix=settings.api_prefix)
    app.include_router(cron.router, prefix=settings.api_prefix)

    @app.exception_handler(DraftError)
    async def draft_error_handler(request: Request, exc: DraftError):
        if isinstance(exc, InvariantViolation):
            logger.error("Invariant violation on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})

    @app.get("/healthz")
    async def healthcheck():
        return {"status": "ok", "watchers": manager.watcher_count}

    @app.websocket("/ws/drafts/{draft_id}")
    async def draft_socket(websocket: WebSocket, draft_id: str):
        await manager.connect_draft(draft_id, websocket)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            manager.disconnect_draft(draft_id, websocket)

    return app


async def run_coordination_pass(now: datetime | None = None) -> int:
    """Expiry sweep followed by a quiet-hours tick for every draft with open auctions.

    Sweeping first closes auctions whose deadline already passed before the
    quiet window could freeze them.
    """
    async with async_session_factory() as session:
        draft_ids = list(await open_draft_ids(session))

    finalized = 0
    for draft_id in draft_ids:
        try:
            async with async_session_factory() as session:
                sweep = await FinalizationService(session).sweep_expired(draft_id, now or utcnow())
            for outcome in sweep.outcomes:
                if outcome.status != FinalizeStatus.ALREADY_CLOSED:
                    await manager.broadcast_draft(draft_id, auction_closed_payload(outcome))
            finalized += sweep.finalized

            async with async_session_factory() as session:
                quiet = await QuietHoursService(session).apply(draft_id, now or utcnow())
            if quiet.changed:
                await manager.broadcast_draft(draft_id, quiet_hours_payload(quiet))
        except Exception:  # noqa: BLE001
            logger.exception("Coordination pass failed for draft %s", draft_id)
    return finalized


async def _draft_coordination_loop() -> None:
    interval = max(1.0, settings.sweep_interval_seconds)
    try:
        while True:
            await asyncio.sleep(interval)
            try:
                finalized = await run_coordination_pass()
                if finalized:
                    logger.info("Background sweep finalized %s auctions", finalized)
            except Exception:  # noqa: BLE001
                logger.exception("Draft coordination loop failed")
    except asyncio.CancelledError:
        logger.debug("Draft coordination loop cancelled")
        raise


app = create_app()
