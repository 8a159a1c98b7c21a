from __future__ import annotations
from fastapi import APIRouter, Depends, Request
from datetime import datetime, timezone
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from app.config import settings
from app.db import get_session

router = APIRouter(tags=["system"])

@router.get("/health")
async def health(request: Request):
    return {
        "status": "ok",
        "env": settings.environment,
        "time": datetime.now(timezone.utc).isoformat(),
        "request_id": request.headers.get("x-request-id") or request.state.request_id,
    }

@router.get("/ready")
async def ready(session: AsyncSession = Depends(get_session)):
    # SQLAlchemyError falls through to the 500 handler
    await session.execute(text("SELECT 1"))
    return {"status": "ready", "database": "ok"}

@router.get("/version")
async def version():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "git_sha": settings.git_sha,
        "transcode_uploads": settings.transcode_uploads,
    }
