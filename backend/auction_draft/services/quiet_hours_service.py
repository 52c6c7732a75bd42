import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..engine.clock import AuctionClock
from ..engine.policy import TimerPolicy
from ..engine.quiet_hours import in_quiet_window
from ..enums import EventType
from ..models import Auction
from .event_log import EventLog
from .settings_service import SettingsService

logger = logging.getLogger(__name__)


@dataclass
class QuietHoursResult:
    in_quiet_window: bool
    paused: list[str] = field(default_factory=list)
    resumed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.paused or self.resumed)


class QuietHoursService:
    """Freezes every open auction of a draft during its quiet window.

    Safe to call on any schedule: an auction already in the target state is
    left alone, and a row that changed underneath us is skipped until the
    next tick.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def apply(self, draft_id: str, now: datetime, policy: TimerPolicy | None = None) -> QuietHoursResult:
        if policy is None:
            policy = await SettingsService(self.session).get_policy(draft_id)
        quiet = in_quiet_window(policy, now)
        result = QuietHoursResult(in_quiet_window=quiet)

        statement = (
            select(Auction)
            .where(Auction.draft_id == draft_id)
            .where(Auction.closed_at.is_(None))
            .where(Auction.paused.is_(not quiet))
            .execution_options(populate_existing=True)
        )
        if quiet:
            # Already past its deadline: the sweep closes it instead.
            statement = statement.where(Auction.ends_at > now)
        auctions = (await self.session.execute(statement)).scalars().all()

        for auction in auctions:
            clock = AuctionClock.from_auction(auction)
            next_clock = clock.pause(now) if quiet else clock.resume(now)
            updated = await self.session.execute(
                sa_update(Auction)
                .where(Auction.id == auction.id)
                .where(Auction.closed_at.is_(None))
                .where(Auction.version == auction.version)
                .values(version=auction.version + 1, **next_clock.as_values())
                .execution_options(synchronize_session=False)
            )
            if updated.rowcount != 1:
                logger.debug("Auction %s changed during quiet-hours tick; skipping", auction.id)
                continue
            (result.paused if quiet else result.resumed).append(auction.id)

        if result.changed:
            EventLog(self.session).append(
                draft_id,
                EventType.QUIET_PAUSE if quiet else EventType.QUIET_RESUME,
                {"auction_ids": result.paused or result.resumed},
            )
            logger.info(
                "Quiet hours %s %s auctions in draft %s",
                "paused" if quiet else "resumed",
                len(result.paused or result.resumed),
                draft_id,
            )
        await self.session.commit()
        return result
