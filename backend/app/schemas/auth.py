from __future__ import annotations
from pydantic import BaseModel
from uuid import UUID

class IdentityPublic(BaseModel):
    id: UUID
    anonymous: bool = True

class TokenPair(BaseModel):
    access: str
    refresh: str
    user_id: UUID
