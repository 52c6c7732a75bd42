import csv
import io
import logging
import re
from dataclasses import dataclass

from sqlalchemy import delete as sa_delete, func, select, update as sa_update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..engine.positions import PositionEligibility
from ..enums import EventType
from ..errors import DraftHasData, InvalidInput
from ..models import Auction, Player, Team
from .event_log import EventLog

logger = logging.getLogger(__name__)

NAME_HEADERS = {"name"}
CODE_HEADERS = {"code", "joincode"}
BUDGET_HEADERS = {"budget"}
SPOTS_HEADERS = {"spots", "rosterspots", "rosterspotstotal"}
PRIMARY_HEADERS = {"primary", "pos1", "positionprimary"}
SECONDARY_HEADERS = {"secondary", "pos2", "positionsecondary"}

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


@dataclass
class TeamRow:
    name: str
    join_code: str
    budget: int
    spots: int


@dataclass
class PlayerRow:
    name: str
    eligibility: PositionEligibility


@dataclass
class ImportSummary:
    created: int = 0
    updated: int = 0

    @property
    def count(self) -> int:
        return self.created + self.updated


def _normalize_header(value: str) -> str:
    return re.sub(r"[\s_]+", "", value.strip().lower())


def _strip_bom(text: str) -> str:
    return text.lstrip("\ufeff").strip()


def _parse_positive_int(raw: str | None) -> int | None:
    cleaned = _NON_NUMERIC.sub("", raw or "")
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if value <= 0 or not value.is_integer():
        return None
    return int(value)


def _find_column(headers: list[str], candidates: set[str]) -> int:
    return next((index for index, header in enumerate(headers) if header in candidates), -1)


def parse_team_csv(text: str) -> list[TeamRow]:
    cleaned = _strip_bom(text)
    if not cleaned:
        raise InvalidInput("Team CSV is empty.")

    reader = csv.reader(io.StringIO(cleaned))
    headers = [_normalize_header(header) for header in next(reader)]
    columns = {
        "name": _find_column(headers, NAME_HEADERS),
        "code": _find_column(headers, CODE_HEADERS),
        "budget": _find_column(headers, BUDGET_HEADERS),
        "spots": _find_column(headers, SPOTS_HEADERS),
    }
    missing = [label for label, index in columns.items() if index < 0]
    if missing:
        raise InvalidInput(f"Team CSV header is missing: {', '.join(missing)}.")

    rows: list[TeamRow] = []
    seen_names: set[str] = set()
    seen_codes: set[str] = set()
    for row_number, row in enumerate(reader, start=2):
        if not row or all(not cell.strip() for cell in row):
            continue
        cell = lambda key: row[columns[key]].strip() if columns[key] < len(row) else ""
        name = cell("name")
        code = cell("code")
        if not name:
            raise InvalidInput(f"Row {row_number}: missing name")
        if not code:
            raise InvalidInput(f'Row {row_number}: missing code for "{name}"')
        budget = _parse_positive_int(cell("budget"))
        if budget is None:
            raise InvalidInput(f'Row {row_number}: invalid budget for "{name}"')
        spots = _parse_positive_int(cell("spots"))
        if spots is None:
            raise InvalidInput(f'Row {row_number}: invalid spots for "{name}"')
        if name in seen_names:
            raise InvalidInput(f'Row {row_number}: duplicate team "{name}"')
        if code in seen_codes:
            raise InvalidInput(f'Row {row_number}: duplicate code for "{name}"')
        seen_names.add(name)
        seen_codes.add(code)
        rows.append(TeamRow(name=name, join_code=code, budget=budget, spots=spots))

    if not rows:
        raise InvalidInput("No valid team rows found.")
    return rows


def parse_player_csv(text: str) -> list[PlayerRow]:
    cleaned = _strip_bom(text)
    if not cleaned:
        raise InvalidInput("Players list is empty.")

    raw_rows = [row for row in csv.reader(io.StringIO(cleaned)) if row and any(cell.strip() for cell in row)]
    if not raw_rows:
        raise InvalidInput("No rows found.")

    name_idx, primary_idx, secondary_idx = 0, 1, 2
    first = [_normalize_header(cell) for cell in raw_rows[0]]
    if "name" in first and any(header in PRIMARY_HEADERS for header in first):
        name_idx = _find_column(first, NAME_HEADERS)
        primary_idx = _find_column(first, PRIMARY_HEADERS)
        secondary_idx = _find_column(first, SECONDARY_HEADERS)
        raw_rows = raw_rows[1:]

    players: list[PlayerRow] = []
    seen: set[str] = set()
    for row in raw_rows:
        cell = lambda index: row[index].strip() if 0 <= index < len(row) else ""
        name = cell(name_idx)
        if not name:
            continue
        try:
            eligibility = PositionEligibility.parse(cell(primary_idx), cell(secondary_idx))
        except ValueError as exc:
            raise InvalidInput(f'{exc} ("{name}")') from None
        if name in seen:
            continue
        seen.add(name)
        players.append(PlayerRow(name=name, eligibility=eligibility))

    if not players:
        raise InvalidInput("No valid player rows found.")
    return players


class RosterImportService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.events = EventLog(session)

    async def _count(self, statement) -> int:
        return int((await self.session.execute(statement)).scalar_one())

    async def import_teams(self, draft_id: str, text: str) -> ImportSummary:
        rows = parse_team_csv(text)
        existing = {
            team.name: team
            for team in (
                await self.session.execute(
                    select(Team).where(Team.draft_id == draft_id).execution_options(populate_existing=True)
                )
            ).scalars()
        }
        summary = ImportSummary()
        for row in rows:
            team = existing.get(row.name)
            if team is None:
                self.session.add(
                    Team(
                        draft_id=draft_id,
                        name=row.name,
                        join_code=row.join_code,
                        budget_total=row.budget,
                        budget_remaining=row.budget,
                        roster_spots_total=row.spots,
                        roster_spots_remaining=row.spots,
                    )
                )
                summary.created += 1
                continue

            # Keep what the team already spent when totals change mid-draft.
            spent = team.budget_total - team.budget_remaining
            filled = team.roster_spots_total - team.roster_spots_remaining
            team.join_code = row.join_code
            team.budget_total = row.budget
            team.budget_remaining = max(0, row.budget - spent)
            team.roster_spots_total = row.spots
            team.roster_spots_remaining = max(0, row.spots - filled)
            self.session.add(team)
            summary.updated += 1

        self.events.append(draft_id, EventType.IMPORT_TEAMS, {"count": summary.count})
        await self._commit_or_reject("Team names and join codes must be unique within a draft.")
        logger.info("Imported %s teams into draft %s", summary.count, draft_id)
        return summary

    async def replace_teams(self, draft_id: str, text: str) -> ImportSummary:
        rows = parse_team_csv(text)
        open_auctions = await self._count(
            select(func.count(Auction.id)).where(Auction.draft_id == draft_id).where(Auction.closed_at.is_(None))
        )
        drafted = await self._count(
            select(func.count(Player.id))
            .where(Player.draft_id == draft_id)
            .where(Player.drafted_by_team_id.is_not(None))
        )
        if open_auctions or drafted:
            raise DraftHasData(
                f"Cannot replace teams while draft has data. Auctions: {open_auctions}, "
                f"Drafted players: {drafted}. Run Reset Draft first."
            )

        await self.session.execute(sa_delete(Team).where(Team.draft_id == draft_id))
        self.session.add_all(
            Team(
                draft_id=draft_id,
                name=row.name,
                join_code=row.join_code,
                budget_total=row.budget,
                budget_remaining=row.budget,
                roster_spots_total=row.spots,
                roster_spots_remaining=row.spots,
            )
            for row in rows
        )
        self.events.append(draft_id, EventType.REPLACE_TEAMS, {"count": len(rows)})
        await self._commit_or_reject("Team names and join codes must be unique within a draft.")
        logger.info("Replaced teams of draft %s with %s rows", draft_id, len(rows))
        return ImportSummary(created=len(rows))

    async def import_players(self, draft_id: str, text: str) -> ImportSummary:
        rows = parse_player_csv(text)
        existing = {
            player.name: player
            for player in (
                await self.session.execute(
                    select(Player).where(Player.draft_id == draft_id).execution_options(populate_existing=True)
                )
            ).scalars()
        }
        summary = ImportSummary()
        for row in rows:
            player = existing.get(row.name)
            if player is None:
                player = Player(draft_id=draft_id, name=row.name, position_primary=row.eligibility.primary)
                summary.created += 1
            else:
                summary.updated += 1
            player.position_primary = row.eligibility.primary
            player.position_secondary = row.eligibility.secondary
            self.session.add(player)

        self.events.append(draft_id, EventType.IMPORT_PLAYERS, {"count": summary.count})
        await self._commit_or_reject("Player names must be unique within a draft.")
        logger.info("Imported %s players into draft %s", summary.count, draft_id)
        return summary

    async def clear_undrafted_players(self, draft_id: str) -> int:
        undrafted_ids = (
            await self.session.execute(
                select(Player.id)
                .where(Player.draft_id == draft_id)
                .where(Player.drafted_by_team_id.is_(None))
            )
        ).scalars().all()

        if undrafted_ids:
            await self.session.execute(
                sa_delete(Auction)
                .where(Auction.draft_id == draft_id)
                .where(Auction.player_id.in_(undrafted_ids))
            )
            await self.session.execute(sa_delete(Player).where(Player.id.in_(undrafted_ids)))

        self.events.append(draft_id, EventType.CLEAR_UNDRAFTED_PLAYERS, {"removed": len(undrafted_ids)})
        await self.session.commit()
        logger.info("Removed %s undrafted players from draft %s", len(undrafted_ids), draft_id)
        return len(undrafted_ids)

    async def reset_draft(self, draft_id: str) -> dict[str, int]:
        auctions = await self._count(select(func.count(Auction.id)).where(Auction.draft_id == draft_id))
        await self.session.execute(sa_delete(Auction).where(Auction.draft_id == draft_id))

        players = await self.session.execute(
            sa_update(Player)
            .where(Player.draft_id == draft_id)
            .where(Player.drafted_by_team_id.is_not(None))
            .values(drafted_by_team_id=None, winning_bid=None, drafted_at=None)
            .execution_options(synchronize_session=False)
        )
        teams = await self.session.execute(
            sa_update(Team)
            .where(Team.draft_id == draft_id)
            .values(
                budget_remaining=Team.budget_total,
                roster_spots_remaining=Team.roster_spots_total,
            )
            .execution_options(synchronize_session=False)
        )
        summary = {
            "auctions": auctions,
            "players": players.rowcount,
            "teams": teams.rowcount,
        }
        self.events.append(draft_id, EventType.RESET, summary)
        await self.session.commit()
        logger.info("Reset draft %s: %s", draft_id, summary)
        return summary

    async def _commit_or_reject(self, message: str) -> None:
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise InvalidInput(message) from None
