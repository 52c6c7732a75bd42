"""Shared pytest fixtures for the auction draft tests."""

import os
import tempfile

# Settings are read once at import time, so point them at throwaway values first.
_API_DB_DIR = tempfile.mkdtemp(prefix="auction-draft-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_API_DB_DIR}/api.db"
os.environ["BACKGROUND_SWEEP_ENABLED"] = "false"
os.environ["ADMIN_CODE"] = "commissioner"
os.environ["CRON_SECRET"] = "cron-secret"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
import pytest_asyncio

from auction_draft.database import create_engine_for, create_schema, session_factory_for
from auction_draft.engine.policy import TimerPolicy
from auction_draft.enums import PrimaryPosition
from auction_draft.models import DraftSettings, Player, Team

DRAFT_ID = "draft-1"


@pytest.fixture
def policy() -> TimerPolicy:
    """Timer policy used by the database-backed tests."""
    return TimerPolicy(nomination_seconds=600, bid_seconds=120, quiet_timezone="UTC")


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'draft.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return session_factory_for(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(session, policy):
    """Insert teams, players and timer settings for one draft."""

    async def _seed(
        draft_id: str = DRAFT_ID,
        *,
        teams=(("Aces", 100, 3),),
        players=(("Alex Shortstop", PrimaryPosition.SHORTSTOP),),
    ) -> tuple[list[Team], list[Player]]:
        team_rows = [
            Team(
                draft_id=draft_id,
                name=name,
                join_code=f"code-{index}",
                budget_total=budget,
                budget_remaining=budget,
                roster_spots_total=spots,
                roster_spots_remaining=spots,
            )
            for index, (name, budget, spots) in enumerate(teams)
        ]
        player_rows = [
            Player(draft_id=draft_id, name=name, position_primary=position) for name, position in players
        ]
        session.add(
            DraftSettings(
                draft_id=draft_id,
                nomination_seconds=policy.nomination_seconds,
                bid_seconds=policy.bid_seconds,
                quiet_hours_enabled=policy.quiet_hours_enabled,
                quiet_start_minute=policy.quiet_start_minute,
                quiet_end_minute=policy.quiet_end_minute,
                quiet_timezone=policy.quiet_timezone,
            )
        )
        session.add_all(team_rows)
        session.add_all(player_rows)
        await session.commit()
        return team_rows, player_rows

    return _seed
