from __future__ import annotations
import time
from dataclasses import dataclass
from datetime import datetime
from urllib.parse import urlparse
from uuid import UUID
import structlog
from minio.error import S3Error
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.errors import (
    EventNotFound, InvalidField, PayloadTooLarge, SubmissionMissing, SubmissionNotFound,
    SubmissionsClosed, UnsupportedMediaType,
)
from app.models.event import Event
from app.models.submission import Submission
from app.services import storage
from app.services.event_phase import is_submissions_open
from app.services.media import sniff_mime, ext_for_mime

log = structlog.get_logger()

MAX_DISPLAY_NAME = 80
MAX_DESCRIPTION = 1000
LINK_FIELDS = ("spotify_url", "soundcloud_url", "instagram_url")


@dataclass
class SubmissionFields:
    """Optional metadata sent with an upload. None means "not sent"; "" clears."""
    display_name: str | None = None
    description: str | None = None
    spotify_url: str | None = None
    soundcloud_url: str | None = None
    instagram_url: str | None = None


def _clean_link(name: str, value: str) -> str | None:
    value = value.strip()
    if not value:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidField(f"{name} must be an http(s) URL")
    return value


def apply_fields(sub: Submission, fields: SubmissionFields) -> None:
    if fields.display_name is not None:
        name = fields.display_name.strip()
        if len(name) > MAX_DISPLAY_NAME:
            raise InvalidField(f"display_name must be at most {MAX_DISPLAY_NAME} characters")
        if name:
            sub.display_name = name
    if fields.description is not None:
        desc = fields.description.strip()
        if len(desc) > MAX_DESCRIPTION:
            raise InvalidField(f"description must be at most {MAX_DESCRIPTION} characters")
        sub.description = desc or None
    for name in LINK_FIELDS:
        value = getattr(fields, name)
        if value is not None:
            setattr(sub, name, _clean_link(name, value))


async def get_own_submission(session: AsyncSession, event_id: UUID, user_id: UUID) -> Submission | None:
    return await session.scalar(
        select(Submission).where(Submission.event_id == event_id, Submission.user_id == user_id)
    )


def validate_video(data: bytes) -> str:
    if not data:
        raise InvalidField("Empty file")
    if len(data) > settings.max_upload_bytes:
        raise PayloadTooLarge()
    mime = sniff_mime(data)
    if mime is None:
        raise UnsupportedMediaType()
    return mime


async def upload_video(
    session: AsyncSession,
    *,
    user_id: UUID,
    event_id: UUID,
    data: bytes,
    fields: SubmissionFields,
    now: datetime,
) -> Submission:
    """
    Store the caller's video and publish their submission.

    With TRANSCODE_UPLOADS enabled the submission stays hidden until the
    transcode job swaps in the normalized mp4 and publishes it.
    """
    ev = await session.get(Event, event_id)
    if not ev:
        raise EventNotFound()
    if not is_submissions_open(ev, now):
        raise SubmissionsClosed()

    sub = await get_own_submission(session, event_id, user_id)
    if not sub:
        raise SubmissionMissing()

    # Validate metadata before touching storage
    apply_fields(sub, fields)
    mime = validate_video(data)

    storage_key = f"{user_id}/{event_id}-{int(time.time() * 1000)}.{ext_for_mime(mime)}"
    storage.put_bytes(storage_key, data, mime)
    previous_key = sub.video_path

    sub.video_path = storage_key
    sub.mime_type = mime
    sub.published = not settings.transcode_uploads
    # a fresh upload is a request to be shown again
    sub.hidden_by_owner = False
    await session.commit()
    await session.refresh(sub)
    log.info("video_uploaded", submission_id=str(sub.id), event_id=str(event_id), bytes=len(data), mime=mime)

    if settings.transcode_uploads:
        from app.jobs.transcode_video import enqueue_transcode
        enqueue_transcode(str(sub.id))

    if previous_key and previous_key != storage_key:
        try:
            storage.delete_object(previous_key)
        except S3Error as e:
            log.warning("stale_video_not_deleted", key=previous_key, code=e.code)
    return sub


async def unpublish(session: AsyncSession, *, user_id: UUID, event_id: UUID) -> Submission:
    sub = await get_own_submission(session, event_id, user_id)
    if not sub:
        raise SubmissionNotFound()
    if sub.published or not sub.hidden_by_owner:
        sub.published = False
        sub.hidden_by_owner = True
        await session.commit()
        await session.refresh(sub)
        log.info("submission_unpublished", submission_id=str(sub.id), event_id=str(event_id))
    return sub
