from __future__ import annotations
from pydantic import BaseModel, ConfigDict
from uuid import UUID
from datetime import datetime


class EventPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    starts_at: datetime
    ends_at: datetime
    submissions_open_at: datetime
    submissions_close_at: datetime


class EventStatus(BaseModel):
    now: datetime
    live: EventPublic | None = None
    next: EventPublic | None = None
    submissions_open: EventPublic | None = None
