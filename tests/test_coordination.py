from datetime import datetime, timedelta

from auction_draft import main
from auction_draft.engine.clock import utcnow
from auction_draft.models import Auction, DraftSettings, Team


async def test_pass_finalizes_expired_auctions(monkeypatch, session_factory, session, seed):
    teams, players = await seed()
    team_id = teams[0].id
    auction = Auction(
        draft_id="draft-1",
        player_id=players[0].id,
        high_bid=15,
        high_team_id=team_id,
        ends_at=utcnow() - timedelta(seconds=5),
    )
    session.add(auction)
    await session.commit()
    auction_id = auction.id
    monkeypatch.setattr(main, "async_session_factory", session_factory)

    assert await main.run_coordination_pass() == 1
    assert await main.run_coordination_pass() == 0

    closed = await session.get(Auction, auction_id, populate_existing=True)
    team = await session.get(Team, team_id, populate_existing=True)
    assert closed.closed_at is not None
    assert team.budget_remaining == 85


async def test_pass_with_no_open_drafts(monkeypatch, session_factory):
    monkeypatch.setattr(main, "async_session_factory", session_factory)
    assert await main.run_coordination_pass() == 0


async def test_pass_closes_auction_that_expired_before_quiet_window(monkeypatch, session_factory, session, seed):
    teams, players = await seed()
    team_id = teams[0].id
    settings = await session.get(DraftSettings, "draft-1")
    settings.quiet_hours_enabled = True
    session.add(settings)
    auction = Auction(
        draft_id="draft-1",
        player_id=players[0].id,
        high_bid=15,
        high_team_id=team_id,
        ends_at=datetime(2026, 3, 2, 22, 50),
    )
    session.add(auction)
    await session.commit()
    auction_id = auction.id
    monkeypatch.setattr(main, "async_session_factory", session_factory)

    assert await main.run_coordination_pass(datetime(2026, 3, 2, 23, 0, 5)) == 1

    closed = await session.get(Auction, auction_id, populate_existing=True)
    assert closed.closed_at is not None
    assert not closed.paused
