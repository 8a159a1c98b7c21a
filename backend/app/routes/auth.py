from __future__ import annotations
import uuid
from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
import structlog
from app.auth_deps import security, bearer_identity, get_current_identity
from app.schemas.auth import IdentityPublic, TokenPair
from app.security import new_identity, make_access_token, make_refresh_token

router = APIRouter(prefix="/auth", tags=["auth"])
log = structlog.get_logger()

def _pair(sub: str) -> TokenPair:
    return TokenPair(access=make_access_token(sub), refresh=make_refresh_token(sub), user_id=sub)

@router.post("/anonymous", status_code=201, response_model=TokenPair)
async def sign_in_anonymously():
    sub = new_identity()
    log.info("anonymous_session_created", user_id=sub)
    return _pair(sub)

@router.post("/refresh", response_model=TokenPair)
async def refresh(credentials: HTTPAuthorizationCredentials | None = Depends(security)):
    user_id = bearer_identity(credentials, "refresh")
    return _pair(str(user_id))

@router.get("/me", response_model=IdentityPublic)
async def me(user_id: uuid.UUID = Depends(get_current_identity)):
    return IdentityPublic(id=user_id)
