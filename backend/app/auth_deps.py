from __future__ import annotations
import uuid
import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.security import identity_from_token

security = HTTPBearer(auto_error=False)

def bearer_identity(credentials: HTTPAuthorizationCredentials | None, token_type: str) -> uuid.UUID:
    if credentials is None or credentials.scheme.lower() != "bearer" or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    try:
        return identity_from_token(credentials.credentials, token_type)
    except (jwt.InvalidTokenError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid session")

async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> uuid.UUID:
    return bearer_identity(credentials, "access")
