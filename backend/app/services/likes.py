from __future__ import annotations
import enum
import hashlib
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID
import structlog
from fastapi import Request
from sqlalchemy import select, func, delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import dialect_name
from app.errors import EventNotFound, EventNotLive, SubmissionNotFound
from app.models.event import Event
from app.models.like import Like
from app.models.submission import Submission
from app.services.event_phase import is_live

log = structlog.get_logger()


class LikeInsert(enum.Enum):
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


@dataclass(frozen=True)
class LikeResult:
    liked: bool
    like_count: int


def client_ip(request: Request) -> str:
    xf = request.headers.get("x-forwarded-for")
    if xf:
        return xf.split(",")[0].strip()
    xr = request.headers.get("x-real-ip")
    if xr:
        return xr.strip()
    if request.client and request.client.host:
        return request.client.host
    return "0.0.0.0"


def fingerprint(ip: str, salt: str) -> str:
    return hashlib.sha256(f"{salt}:{ip}".encode()).hexdigest()


async def insert_like(session: AsyncSession, *, event_id: UUID, submission_id: UUID, ip_hash: str) -> LikeInsert:
    """
    Insert the (event, submission, fingerprint) row unless it already exists.
    The unique constraint decides; other integrity errors (e.g. a dangling FK) propagate.
    """
    insert = sqlite.insert if dialect_name(session) == "sqlite" else postgresql.insert
    stmt = (
        insert(Like)
        .values(event_id=event_id, submission_id=submission_id, ip_hash=ip_hash)
        .on_conflict_do_nothing(index_elements=["event_id", "submission_id", "ip_hash"])
        .returning(Like.id)
    )
    created = (await session.execute(stmt)).scalar_one_or_none()
    return LikeInsert.CREATED if created is not None else LikeInsert.ALREADY_EXISTS


async def like_count(session: AsyncSession, event_id: UUID, submission_id: UUID) -> int:
    total = await session.scalar(
        select(func.count(Like.id)).where(Like.event_id == event_id, Like.submission_id == submission_id)
    )
    return int(total or 0)


async def toggle_like(
    session: AsyncSession,
    *,
    event_id: UUID,
    submission_id: UUID,
    ip_hash: str,
    now: datetime,
) -> LikeResult:
    """Flip the caller's like on a submission and return the recounted total."""
    ev = await session.get(Event, event_id)
    if not ev:
        raise EventNotFound()
    if not is_live(ev, now):
        raise EventNotLive()

    sub = await session.scalar(
        select(Submission).where(Submission.id == submission_id, Submission.event_id == event_id)
    )
    if not sub:
        raise SubmissionNotFound()

    outcome = await insert_like(session, event_id=event_id, submission_id=submission_id, ip_hash=ip_hash)
    if outcome is LikeInsert.ALREADY_EXISTS:
        await session.execute(
            delete(Like).where(
                Like.event_id == event_id,
                Like.submission_id == submission_id,
                Like.ip_hash == ip_hash,
            )
        )
    await session.commit()

    # Recount after commit so concurrent toggles are reflected
    count = await like_count(session, event_id, submission_id)
    liked = outcome is LikeInsert.CREATED
    log.info("like_toggled", event_id=str(event_id), submission_id=str(submission_id), liked=liked, like_count=count)
    return LikeResult(liked=liked, like_count=count)
