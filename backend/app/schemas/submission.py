from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from datetime import datetime


class SubmissionPublic(BaseModel):
    """Owner view of a submission."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    display_name: str
    description: str | None = None
    spotify_url: str | None = None
    soundcloud_url: str | None = None
    instagram_url: str | None = None
    published: bool
    # 🔒 do not expose storage keys
    has_video: bool = False
    mime_type: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FeedItem(BaseModel):
    submission_id: UUID
    display_name: str
    description: str | None = None
    spotify_url: str | None = None
    soundcloud_url: str | None = None
    instagram_url: str | None = None
    video_url: str
    like_count: int = 0


class UnpublishRequest(BaseModel):
    event_id: UUID


class LikeRequest(BaseModel):
    event_id: UUID = Field(alias="eventId")
    submission_id: UUID = Field(alias="submissionId")

    model_config = ConfigDict(populate_by_name=True)


class LikeResponse(BaseModel):
    liked: bool
    like_count: int


class RedeemRequest(BaseModel):
    code: str = Field(max_length=64)


class RedeemResponse(BaseModel):
    ok: bool = True
    event_id: UUID
    created: bool
