from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db import get_session
from app.schemas.submission import LikeRequest, LikeResponse
from app.services.likes import client_ip, fingerprint, toggle_like

router = APIRouter(tags=["likes"])

@router.post("/like", response_model=LikeResponse)
async def like(payload: LikeRequest, request: Request, session: AsyncSession = Depends(get_session)):
    ip_hash = fingerprint(client_ip(request), settings.like_salt)
    result = await toggle_like(
        session,
        event_id=payload.event_id,
        submission_id=payload.submission_id,
        ip_hash=ip_hash,
        now=datetime.now(dt_tz.utc),
    )
    return LikeResponse(liked=result.liked, like_count=result.like_count)
