import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..engine.clock import AuctionClock
from ..engine.quiet_hours import in_quiet_window
from ..enums import EventType
from ..errors import AlreadyDrafted, DuplicateAuction, NotFound
from ..models import Auction, Player
from .event_log import EventLog
from .settings_service import SettingsService

logger = logging.getLogger(__name__)


class NominationService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _get_player(self, draft_id: str, player_id: str) -> Player:
        player = await self.session.get(Player, player_id, populate_existing=True)
        if player is None or player.draft_id != draft_id:
            raise NotFound("Player not found in this draft.")
        return player

    async def find_open_auction(self, player_id: str) -> Auction | None:
        statement = (
            select(Auction)
            .where(Auction.player_id == player_id)
            .where(Auction.closed_at.is_(None))
        )
        return (await self.session.execute(statement)).scalars().first()

    async def nominate(self, draft_id: str, player_id: str, now: datetime) -> Auction:
        player = await self._get_player(draft_id, player_id)
        if player.drafted_by_team_id is not None:
            raise AlreadyDrafted(f"{player.name} is already drafted.")
        if await self.find_open_auction(player.id) is not None:
            raise DuplicateAuction(f"An open auction already exists for {player.name}.")

        player_name = player.name
        policy = await SettingsService(self.session).get_policy(draft_id)
        clock = AuctionClock.on_nominate(now, policy)
        if in_quiet_window(policy, now):
            clock = clock.pause(now)

        auction = Auction(draft_id=draft_id, player_id=player.id, **clock.as_values())
        self.session.add(auction)
        EventLog(self.session).append(
            draft_id,
            EventType.NOMINATE,
            {
                "auction_id": auction.id,
                "player_id": player.id,
                "ends_at": auction.ends_at,
                "paused": auction.paused,
            },
        )
        try:
            await self.session.commit()
        except IntegrityError:
            # A simultaneous nomination won the partial unique index.
            await self.session.rollback()
            raise DuplicateAuction(f"An open auction already exists for {player_name}.") from None

        await self.session.refresh(auction)
        logger.info("Nominated %s in draft %s (auction %s)", player_name, draft_id, auction.id)
        return auction
