from datetime import datetime
from typing import Any, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..enums import EventType
from ..models import DraftEvent


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


class EventLog:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def append(self, draft_id: str, event_type: EventType, payload: dict | None = None) -> DraftEvent:
        # Joins the caller's transaction; the caller commits.
        event = DraftEvent(draft_id=draft_id, event_type=event_type, payload=_jsonable(payload or {}))
        self.session.add(event)
        return event

    async def list_events(
        self,
        draft_id: str,
        *,
        event_type: EventType | None = None,
        limit: int = 100,
    ) -> Sequence[DraftEvent]:
        statement = (
            select(DraftEvent)
            .where(DraftEvent.draft_id == draft_id)
            .order_by(DraftEvent.created_at.desc())
            .limit(limit)
        )
        if event_type is not None:
            statement = statement.where(DraftEvent.event_type == event_type)
        result = await self.session.execute(statement)
        return result.scalars().all()
