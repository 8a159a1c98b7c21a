from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID
import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import InvalidCode, SubmissionsClosed, CodeAlreadyUsed
from app.models.invite_code import InviteCode
from app.models.submission import Submission, PLACEHOLDER_NAME
from app.services.event_phase import load_phases

log = structlog.get_logger()

MIN_CODE_LENGTH = 4


@dataclass(frozen=True)
class RedeemResult:
    event_id: UUID
    submission: Submission
    created: bool


def normalize_code(raw: str | None) -> str:
    code = (raw or "").strip().upper()
    if len(code) < MIN_CODE_LENGTH:
        raise InvalidCode()
    return code


async def _existing_submission(session: AsyncSession, event_id: UUID, user_id: UUID) -> Submission | None:
    return await session.scalar(
        select(Submission).where(Submission.event_id == event_id, Submission.user_id == user_id)
    )


async def redeem_code(session: AsyncSession, *, user_id: UUID, raw_code: str | None, now: datetime) -> RedeemResult:
    """
    Bind an invite code to the caller and create their empty submission slot.

    Idempotent per (event, user): a caller who already holds a slot succeeds
    without touching any code. Marking the code and creating the submission
    commit together.
    """
    code = normalize_code(raw_code)

    phases = await load_phases(session, now)
    ev = phases.submissions_open
    if not ev:
        raise SubmissionsClosed()
    # rollback below expires ev
    event_id = ev.id

    existing = await _existing_submission(session, event_id, user_id)
    if existing:
        return RedeemResult(event_id=event_id, submission=existing, created=False)

    invite = await session.scalar(
        select(InviteCode).where(InviteCode.code == code, InviteCode.event_id == event_id).with_for_update()
    )
    if not invite:
        raise InvalidCode()
    if invite.used_by is not None and invite.used_by != user_id:
        raise CodeAlreadyUsed()

    invite.used_by = user_id
    if invite.used_at is None:
        invite.used_at = now

    sub = Submission(event_id=event_id, user_id=user_id, display_name=PLACEHOLDER_NAME, published=False)
    session.add(sub)
    try:
        await session.commit()
    except IntegrityError:
        # Parallel redeem by the same caller won the (event, user) slot
        await session.rollback()
        existing = await _existing_submission(session, event_id, user_id)
        if not existing:
            raise
        return RedeemResult(event_id=event_id, submission=existing, created=False)

    await session.refresh(sub)
    log.info("code_redeemed", event_id=str(event_id), user_id=str(user_id))
    return RedeemResult(event_id=event_id, submission=sub, created=True)
