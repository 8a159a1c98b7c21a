from __future__ import annotations
import uuid
from datetime import datetime, timezone as dt_tz
from fastapi import APIRouter, Depends, Form, HTTPException, Query, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth_deps import get_current_identity
from app.config import settings
from app.db import get_session
from app.errors import PayloadTooLarge, SubmissionNotFound
from app.models.submission import Submission
from app.schemas.submission import SubmissionPublic, UnpublishRequest
from app.services.submissions import SubmissionFields, get_own_submission, unpublish, upload_video

router = APIRouter(tags=["submissions"])

CHUNK = 1024 * 1024

def to_public(s: Submission) -> SubmissionPublic:
    return SubmissionPublic(
        id=s.id,
        event_id=s.event_id,
        display_name=s.display_name,
        description=s.description,
        spotify_url=s.spotify_url,
        soundcloud_url=s.soundcloud_url,
        instagram_url=s.instagram_url,
        published=s.published,
        has_video=bool(s.video_path),
        mime_type=s.mime_type,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )

async def _read_limited(file: UploadFile, limit: int) -> bytes:
    # Stop reading as soon as the limit is crossed instead of buffering the whole body
    buf = bytearray()
    while chunk := await file.read(CHUNK):
        buf.extend(chunk)
        if len(buf) > limit:
            raise PayloadTooLarge()
    return bytes(buf)

@router.post("/upload", response_model=SubmissionPublic)
async def upload(
    event_id: str | None = Form(default=None),
    file: UploadFile | None = File(default=None, description="mp4 or mov video"),
    display_name: str | None = Form(default=None),
    description: str | None = Form(default=None),
    spotify_url: str | None = Form(default=None),
    soundcloud_url: str | None = Form(default=None),
    instagram_url: str | None = Form(default=None),
    session: AsyncSession = Depends(get_session),
    user_id: uuid.UUID = Depends(get_current_identity),
):
    if not event_id:
        raise HTTPException(status_code=400, detail="Missing event_id")
    try:
        ev_id = uuid.UUID(event_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid event_id")
    if file is None:
        raise HTTPException(status_code=400, detail="Missing file")

    data = await _read_limited(file, settings.max_upload_bytes)
    sub = await upload_video(
        session,
        user_id=user_id,
        event_id=ev_id,
        data=data,
        fields=SubmissionFields(
            display_name=display_name,
            description=description,
            spotify_url=spotify_url,
            soundcloud_url=soundcloud_url,
            instagram_url=instagram_url,
        ),
        now=datetime.now(dt_tz.utc),
    )
    return to_public(sub)

@router.get("/submissions/mine", response_model=SubmissionPublic)
async def my_submission(
    event_id: uuid.UUID = Query(...),
    session: AsyncSession = Depends(get_session),
    user_id: uuid.UUID = Depends(get_current_identity),
):
    sub = await get_own_submission(session, event_id, user_id)
    if not sub:
        raise SubmissionNotFound()
    return to_public(sub)

@router.post("/submissions/mine/unpublish", response_model=SubmissionPublic)
async def unpublish_mine(
    payload: UnpublishRequest,
    session: AsyncSession = Depends(get_session),
    user_id: uuid.UUID = Depends(get_current_identity),
):
    sub = await unpublish(session, user_id=user_id, event_id=payload.event_id)
    return to_public(sub)
