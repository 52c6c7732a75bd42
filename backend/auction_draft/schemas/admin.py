from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from ..enums import EventType


class CsvImportRequest(BaseModel):
    csv: str = Field(min_length=1)


class ImportResponse(BaseModel):
    count: int
    created: int
    updated: int


class RemovedResponse(BaseModel):
    ok: bool = True
    removed: int


class ResetSummary(BaseModel):
    ok: bool = True
    reset: dict[str, int]


class DraftEventPublic(BaseModel):
    id: str
    draft_id: str
    event_type: EventType
    payload: dict[str, Any]
    created_at: datetime

    class Config:
        from_attributes = True
