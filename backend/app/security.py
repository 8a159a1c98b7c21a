from __future__ import annotations
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any
import jwt
from app.config import settings

JWT_ALG = "HS256"

def new_identity() -> str:
    return str(uuid.uuid4())

def _make_token(sub: str, ttl_min: int, token_type: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": sub,
        "type": token_type,
        "anon": True,
        "iat": now.timestamp(),  # Use float for microsecond precision
        "exp": int((now + timedelta(minutes=ttl_min)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALG)

def make_access_token(sub: str) -> str:
    return _make_token(sub, settings.access_ttl_min, "access")

def make_refresh_token(sub: str) -> str:
    return _make_token(sub, settings.refresh_ttl_min, "refresh")

def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALG])

def identity_from_token(token: str, token_type: str = "access") -> uuid.UUID:
    """
    Resolve a bearer token to the caller identity.
    Raises jwt.InvalidTokenError (or ValueError for a malformed subject).
    """
    data = decode_token(token)
    if data.get("type") != token_type:
        raise jwt.InvalidTokenError("Wrong token type")
    return uuid.UUID(str(data.get("sub")))
