from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone as dt_tz
from typing import Iterable, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import Event


@dataclass(frozen=True)
class EventPhases:
    live: Optional[Event]
    next: Optional[Event]
    submissions_open: Optional[Event]


def as_utc(dt: datetime) -> datetime:
    """Treat naive timestamps (SQLite, some drivers) as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_tz.utc)
    return dt.astimezone(dt_tz.utc)


def is_live(ev: Event, now: datetime) -> bool:
    now = as_utc(now)
    return as_utc(ev.starts_at) <= now < as_utc(ev.ends_at)


def is_submissions_open(ev: Event, now: datetime) -> bool:
    now = as_utc(now)
    return as_utc(ev.submissions_open_at) <= now < as_utc(ev.submissions_close_at)


def _order_key(ev: Event):
    # Overlapping windows resolve to the earliest start; id breaks exact ties
    return (as_utc(ev.starts_at), str(ev.id))


def resolve_phases(events: Iterable[Event], now: datetime) -> EventPhases:
    """
    Derive the current phase picture from the event set at instant `now`.

    - live: starts_at <= now < ends_at
    - next: smallest starts_at strictly after now
    - submissions_open: submissions_open_at <= now < submissions_close_at

    Pure function; callers must re-evaluate per request since phases are time driven.

    Examples:
        >>> phases = resolve_phases(events, now)
        >>> phases.live.id if phases.live else None
    """
    ordered = sorted(events, key=_order_key)
    now = as_utc(now)

    live = next((e for e in ordered if is_live(e, now)), None)
    upcoming = next((e for e in ordered if as_utc(e.starts_at) > now), None)
    open_ev = next((e for e in ordered if is_submissions_open(e, now)), None)
    return EventPhases(live=live, next=upcoming, submissions_open=open_ev)


async def load_phases(session: AsyncSession, now: datetime) -> EventPhases:
    events = (await session.execute(select(Event).order_by(Event.starts_at.asc()))).scalars().all()
    return resolve_phases(events, now)
