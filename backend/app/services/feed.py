from __future__ import annotations
from uuid import UUID
import structlog
from minio.error import S3Error
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.like import Like
from app.models.submission import Submission
from app.schemas.submission import FeedItem
from app.services import storage

log = structlog.get_logger()


async def feed_rows(session: AsyncSession, event_id: UUID) -> list[tuple[Submission, int]]:
    """Published submissions with a stored video, joined with their current like count."""
    likes = (
        select(Like.submission_id, func.count(Like.id).label("like_count"))
        .where(Like.event_id == event_id)
        .group_by(Like.submission_id)
        .subquery()
    )
    q = (
        select(Submission, func.coalesce(likes.c.like_count, 0))
        .outerjoin(likes, likes.c.submission_id == Submission.id)
        .where(
            Submission.event_id == event_id,
            Submission.published.is_(True),
            Submission.video_path.is_not(None),
        )
        .order_by(Submission.created_at.asc(), Submission.id.asc())
    )
    return [(s, int(n)) for (s, n) in (await session.execute(q)).all()]


def video_url(sub: Submission) -> str | None:
    if settings.serve_media_via_api:
        return f"/media/{sub.id}"
    try:
        return storage.presign_get(sub.video_path)
    except S3Error as e:
        log.warning("presign_failed", submission_id=str(sub.id), code=e.code)
        return None


async def feed_for_event(session: AsyncSession, event_id: UUID) -> list[FeedItem]:
    out: list[FeedItem] = []
    for sub, count in await feed_rows(session, event_id):
        url = video_url(sub)
        if not url:
            continue
        out.append(
            FeedItem(
                submission_id=sub.id,
                display_name=sub.display_name,
                description=sub.description,
                spotify_url=sub.spotify_url,
                soundcloud_url=sub.soundcloud_url,
                instagram_url=sub.instagram_url,
                video_url=url,
                like_count=count,
            )
        )
    return out
