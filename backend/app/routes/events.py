from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from uuid import UUID
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_session
from app.errors import EventNotFound, EventNotLive
from app.models.event import Event
from app.schemas.event import EventPublic, EventStatus
from app.schemas.submission import FeedItem
from app.services.event_phase import load_phases, is_live
from app.services.feed import feed_for_event

router = APIRouter(prefix="/events", tags=["events"])

def _public(ev: Event | None) -> EventPublic | None:
    return EventPublic.model_validate(ev) if ev else None

@router.get("/status", response_model=EventStatus)
async def event_status(response: Response, session: AsyncSession = Depends(get_session)):
    # Phases move with the clock; never let a proxy cache them
    response.headers["Cache-Control"] = "no-store"
    now = datetime.now(dt_tz.utc)
    phases = await load_phases(session, now)
    return EventStatus(
        now=now,
        live=_public(phases.live),
        next=_public(phases.next),
        submissions_open=_public(phases.submissions_open),
    )

@router.get("/{event_id}/feed", response_model=list[FeedItem])
async def event_feed(event_id: UUID, response: Response, session: AsyncSession = Depends(get_session)):
    ev = await session.get(Event, event_id)
    if not ev:
        raise EventNotFound()
    if not is_live(ev, datetime.now(dt_tz.utc)):
        raise EventNotLive()
    response.headers["Cache-Control"] = "no-store"
    return await feed_for_event(session, ev.id)
