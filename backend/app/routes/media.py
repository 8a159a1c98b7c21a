from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from app.db import get_session
from app.errors import EventNotLive, SubmissionNotFound
from app.models.event import Event
from app.models.submission import Submission
from app.services import storage
from app.services.event_phase import is_live
from app.services.media import parse_range

router = APIRouter(prefix="/media", tags=["media"])

@router.get("/{submission_id}")
async def get_video(submission_id: UUID, request: Request, session: AsyncSession = Depends(get_session)):
    """Stream a published video while its event is live (SERVE_MEDIA_VIA_API=1). Honours single byte ranges."""
    sub = await session.get(Submission, submission_id)
    if not sub or not sub.published or not sub.video_path:
        raise SubmissionNotFound()
    ev = await session.get(Event, sub.event_id)
    if not ev or not is_live(ev, datetime.now(dt_tz.utc)):
        raise EventNotLive()
    key = sub.video_path
    try:
        size, content_type = await run_in_threadpool(storage.stat, key)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Video file not found in storage")

    headers = {"Accept-Ranges": "bytes", "Cache-Control": "private, max-age=3600"}
    try:
        byte_range = parse_range(request.headers.get("range"), size)
    except ValueError:
        raise HTTPException(status_code=416, detail="Range not satisfiable", headers={"Content-Range": f"bytes */{size}"})

    if byte_range is None:
        headers["Content-Length"] = str(size)
        # Starlette iterates sync generators in a worker thread
        return StreamingResponse(storage.iter_range(key), media_type=content_type, headers=headers)

    start, end = byte_range
    length = end - start + 1
    headers["Content-Range"] = f"bytes {start}-{end}/{size}"
    headers["Content-Length"] = str(length)
    return StreamingResponse(
        storage.iter_range(key, offset=start, length=length),
        status_code=206,
        media_type=content_type,
        headers=headers,
    )
