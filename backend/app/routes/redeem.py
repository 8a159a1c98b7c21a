from __future__ import annotations
import uuid
from datetime import datetime, timezone as dt_tz
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth_deps import get_current_identity
from app.db import get_session
from app.schemas.submission import RedeemRequest, RedeemResponse
from app.services.redemption import redeem_code

router = APIRouter(tags=["submissions"])

@router.post("/redeem", response_model=RedeemResponse)
async def redeem(
    payload: RedeemRequest,
    session: AsyncSession = Depends(get_session),
    user_id: uuid.UUID = Depends(get_current_identity),
):
    result = await redeem_code(session, user_id=user_id, raw_code=payload.code, now=datetime.now(dt_tz.utc))
    return RedeemResponse(event_id=result.event_id, created=result.created)
