import logging

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..engine.clock import utcnow
from ..engine.policy import TimerPolicy
from ..engine.quiet_hours import in_quiet_window
from ..enums import EventType
from ..models import DraftSettings
from ..schemas.settings import DraftSettingsPublic, DraftSettingsUpdate
from .event_log import EventLog

settings = get_settings()
logger = logging.getLogger(__name__)


def default_policy() -> TimerPolicy:
    return TimerPolicy(
        nomination_seconds=settings.default_nomination_seconds,
        bid_seconds=settings.default_bid_seconds,
        quiet_timezone=settings.default_quiet_timezone,
    )


class SettingsService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_row(self, draft_id: str) -> DraftSettings | None:
        return await self.session.get(DraftSettings, draft_id, populate_existing=True)

    async def get_policy(self, draft_id: str) -> TimerPolicy:
        row = await self.get_row(draft_id)
        if row is None:
            return default_policy()
        return TimerPolicy.from_settings_row(row)

    async def describe(self, draft_id: str) -> DraftSettingsPublic:
        row = await self.get_row(draft_id)
        policy = default_policy() if row is None else TimerPolicy.from_settings_row(row)
        return DraftSettingsPublic(
            draft_id=draft_id,
            nomination_seconds=policy.nomination_seconds,
            bid_seconds=policy.bid_seconds,
            quiet_hours_enabled=policy.quiet_hours_enabled,
            quiet_start_minute=policy.quiet_start_minute,
            quiet_end_minute=policy.quiet_end_minute,
            quiet_timezone=policy.quiet_timezone,
            in_quiet_window=in_quiet_window(policy, utcnow()),
            is_default=row is None,
            updated_at=row.updated_at if row else None,
        )

    async def save(self, draft_id: str, payload: DraftSettingsUpdate) -> TimerPolicy:
        row = await self.get_row(draft_id)
        values = payload.model_dump(exclude_none=True)
        if row is None:
            values.setdefault("quiet_timezone", settings.default_quiet_timezone)
            row = DraftSettings(draft_id=draft_id, **values)
        else:
            for key, value in values.items():
                setattr(row, key, value)
            row.updated_at = utcnow()
        self.session.add(row)

        EventLog(self.session).append(
            draft_id,
            EventType.SETTINGS,
            row.model_dump(exclude={"draft_id", "updated_at"}),
        )
        await self.session.commit()
        await self.session.refresh(row)
        logger.info(
            "Saved settings for draft %s (nomination=%ss, bid=%ss, quiet=%s)",
            draft_id,
            row.nomination_seconds,
            row.bid_seconds,
            row.quiet_hours_enabled,
        )
        return TimerPolicy.from_settings_row(row)
