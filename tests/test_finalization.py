import asyncio
from datetime import datetime, timedelta

import pytest
from sqlmodel import select

from auction_draft.enums import EventType, FinalizeStatus, PrimaryPosition
from auction_draft.errors import BudgetOverdraw, NotExpiredYet, NotFound, RosterOverflow
from auction_draft.models import Auction, DraftEvent, Player, Team
from auction_draft.services.bid_service import BidService
from auction_draft.services.finalization_service import FinalizationService, open_draft_ids
from auction_draft.services.nomination_service import NominationService

T0 = datetime(2026, 3, 2, 12, 0, 0)
AFTER_DEADLINE = T0 + timedelta(seconds=601)


async def open_with_bid(session, team, player, amount=30) -> str:
    auction = await NominationService(session).nominate("draft-1", player.id, T0)
    if amount:
        await BidService(session).place_bid("draft-1", auction.id, team, amount, T0 + timedelta(seconds=10))
    return auction.id


async def reload(session, model, key):
    return await session.get(model, key, populate_existing=True)


class TestFinalize:
    async def test_awards_player_and_charges_team(self, session, seed):
        teams, players = await seed()
        team_id, player_id = teams[0].id, players[0].id
        auction_id = await open_with_bid(session, teams[0], players[0])

        outcome = await FinalizationService(session).finalize("draft-1", auction_id, AFTER_DEADLINE)

        assert outcome.status is FinalizeStatus.AWARDED
        assert outcome.team_id == team_id
        assert outcome.amount == 30

        team = await reload(session, Team, team_id)
        player = await reload(session, Player, player_id)
        auction = await reload(session, Auction, auction_id)
        assert team.budget_remaining == 70
        assert team.roster_spots_remaining == 2
        assert player.drafted_by_team_id == team_id
        assert player.winning_bid == 30
        assert player.drafted_at == AFTER_DEADLINE
        assert auction.closed_at == AFTER_DEADLINE

    async def test_second_call_is_already_closed(self, session, seed):
        teams, players = await seed()
        team_id = teams[0].id
        auction_id = await open_with_bid(session, teams[0], players[0])
        service = FinalizationService(session)

        first = await service.finalize("draft-1", auction_id, AFTER_DEADLINE)
        second = await service.finalize("draft-1", auction_id, AFTER_DEADLINE + timedelta(seconds=1))
        forced = await service.finalize("draft-1", auction_id, AFTER_DEADLINE, force=True)

        assert first.status is FinalizeStatus.AWARDED
        assert second.status is FinalizeStatus.ALREADY_CLOSED
        assert forced.status is FinalizeStatus.ALREADY_CLOSED
        team = await reload(session, Team, team_id)
        assert team.budget_remaining == 70

        events = (
            await session.execute(select(DraftEvent).where(DraftEvent.event_type == EventType.FINALIZE))
        ).scalars().all()
        assert len(events) == 1

    async def test_no_bids_closes_without_award(self, session, seed):
        teams, players = await seed()
        team_id, player_id = teams[0].id, players[0].id
        auction_id = await open_with_bid(session, teams[0], players[0], amount=0)

        outcome = await FinalizationService(session).finalize("draft-1", auction_id, AFTER_DEADLINE)

        assert outcome.status is FinalizeStatus.NO_BIDS
        assert (await reload(session, Auction, auction_id)).closed_at == AFTER_DEADLINE
        assert (await reload(session, Player, player_id)).drafted_by_team_id is None
        assert (await reload(session, Team, team_id)).budget_remaining == 100

    async def test_not_expired_without_force(self, session, seed):
        teams, players = await seed()
        auction_id = await open_with_bid(session, teams[0], players[0])
        with pytest.raises(NotExpiredYet):
            await FinalizationService(session).finalize("draft-1", auction_id, T0 + timedelta(seconds=60))

    async def test_paused_auction_needs_force(self, session, seed):
        teams, players = await seed()
        auction_id = await open_with_bid(session, teams[0], players[0])
        auction = await reload(session, Auction, auction_id)
        auction.paused = True
        auction.paused_at = T0 + timedelta(seconds=20)
        auction.paused_remaining_seconds = 580
        session.add(auction)
        await session.commit()

        service = FinalizationService(session)
        with pytest.raises(NotExpiredYet):
            await service.finalize("draft-1", auction_id, T0 + timedelta(days=1))

        outcome = await service.finalize("draft-1", auction_id, T0 + timedelta(days=1), force=True)
        assert outcome.status is FinalizeStatus.AWARDED
        assert outcome.forced
        auction = await reload(session, Auction, auction_id)
        assert not auction.paused
        assert auction.paused_remaining_seconds is None

    async def test_force_before_deadline(self, session, seed):
        teams, players = await seed()
        auction_id = await open_with_bid(session, teams[0], players[0])
        outcome = await FinalizationService(session).finalize(
            "draft-1", auction_id, T0 + timedelta(seconds=60), force=True
        )
        assert outcome.status is FinalizeStatus.AWARDED

    async def test_unknown_auction(self, session, seed):
        await seed()
        with pytest.raises(NotFound):
            await FinalizationService(session).finalize("draft-1", "missing", AFTER_DEADLINE)


class TestInvariantViolations:
    """A race that slipped past the bid checks leaves the auction open."""

    async def test_roster_overflow_rolls_back(self, session_factory, session, seed):
        teams, players = await seed()
        team_id, player_id = teams[0].id, players[0].id
        auction_id = await open_with_bid(session, teams[0], players[0])
        team = await reload(session, Team, team_id)
        team.roster_spots_remaining = 0
        session.add(team)
        await session.commit()

        async with session_factory() as other:
            with pytest.raises(RosterOverflow):
                await FinalizationService(other).finalize("draft-1", auction_id, AFTER_DEADLINE)

        auction = await reload(session, Auction, auction_id)
        assert auction.closed_at is None
        assert auction.version == 1
        assert (await reload(session, Player, player_id)).drafted_by_team_id is None
        assert (await reload(session, Team, team_id)).budget_remaining == 100

    async def test_budget_overdraw_rolls_back(self, session_factory, session, seed):
        teams, players = await seed()
        team_id = teams[0].id
        auction_id = await open_with_bid(session, teams[0], players[0], amount=30)
        team = await reload(session, Team, team_id)
        team.budget_remaining = 10
        session.add(team)
        await session.commit()

        async with session_factory() as other:
            with pytest.raises(BudgetOverdraw):
                await FinalizationService(other).finalize("draft-1", auction_id, AFTER_DEADLINE)

        assert (await reload(session, Auction, auction_id)).closed_at is None
        assert (await reload(session, Team, team_id)).budget_remaining == 10


async def test_concurrent_finalizations_award_once(session_factory, session, seed):
    teams, players = await seed()
    team_id = teams[0].id
    auction_id = await open_with_bid(session, teams[0], players[0], amount=45)

    async def finalize(force: bool):
        async with session_factory() as trigger_session:
            return await FinalizationService(trigger_session).finalize(
                "draft-1", auction_id, AFTER_DEADLINE, force=force
            )

    outcomes = await asyncio.gather(*(finalize(force=index % 2 == 0) for index in range(6)))
    statuses = [outcome.status for outcome in outcomes]

    assert statuses.count(FinalizeStatus.AWARDED) == 1
    assert statuses.count(FinalizeStatus.ALREADY_CLOSED) == 5
    team = await reload(session, Team, team_id)
    assert team.budget_remaining == 55
    assert team.roster_spots_remaining == 2


class TestSweep:
    async def test_sweeps_only_expired_unpaused(self, session, seed):
        teams, players = await seed(
            players=[(f"Player {index}", PrimaryPosition.SECOND_BASE) for index in range(4)],
        )
        team_id = teams[0].id
        bid_on = await open_with_bid(session, teams[0], players[0], amount=25)
        no_bid = await open_with_bid(session, teams[0], players[1], amount=0)
        paused = await open_with_bid(session, teams[0], players[2], amount=0)
        fresh = await NominationService(session).nominate("draft-1", players[3].id, T0 + timedelta(seconds=500))

        paused_row = await reload(session, Auction, paused)
        paused_row.paused = True
        paused_row.paused_remaining_seconds = 100
        session.add(paused_row)
        await session.commit()

        service = FinalizationService(session)
        assert set(await service.expired_auction_ids("draft-1", AFTER_DEADLINE)) == {bid_on, no_bid}

        result = await service.sweep_expired("draft-1", AFTER_DEADLINE)
        assert result.finalized == 2
        assert result.errors == []
        assert {outcome.auction_id for outcome in result.outcomes} == {bid_on, no_bid}

        assert (await reload(session, Auction, fresh.id)).closed_at is None
        assert (await reload(session, Auction, paused)).closed_at is None
        assert (await reload(session, Team, team_id)).budget_remaining == 75

        again = await service.sweep_expired("draft-1", AFTER_DEADLINE)
        assert again.finalized == 0

    async def test_sweep_reports_invariant_failures_and_continues(self, session, seed):
        teams, players = await seed(
            teams=(("Aces", 100, 1),),
            players=(("Player A", PrimaryPosition.CATCHER), ("Player B", PrimaryPosition.CATCHER)),
        )
        team_id = teams[0].id
        first = await open_with_bid(session, teams[0], players[0], amount=10)
        second = await open_with_bid(session, teams[0], players[1], amount=10)

        result = await FinalizationService(session).sweep_expired("draft-1", AFTER_DEADLINE)

        assert result.finalized == 1
        assert len(result.errors) == 1
        closed = [await reload(session, Auction, key) for key in (first, second)]
        assert sum(auction.closed_at is not None for auction in closed) == 1
        assert (await reload(session, Team, team_id)).roster_spots_remaining == 0

    async def test_open_draft_ids(self, session, seed):
        teams, players = await seed()
        await open_with_bid(session, teams[0], players[0], amount=0)
        assert list(await open_draft_ids(session)) == ["draft-1"]
