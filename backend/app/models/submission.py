from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint, Uuid, func
from app.db import Base

PLACEHOLDER_NAME = "Unnamed Act"


class Submission(Base):
    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="CASCADE"), index=True, nullable=False
    )
    # caller identity from the anonymous session token
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, index=True, nullable=False)

    display_name: Mapped[str] = mapped_column(String(80), nullable=False, default=PLACEHOLDER_NAME)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)
    spotify_url: Mapped[str | None] = mapped_column(Text(), nullable=True)
    soundcloud_url: Mapped[str | None] = mapped_column(Text(), nullable=True)
    instagram_url: Mapped[str | None] = mapped_column(Text(), nullable=True)

    video_path: Mapped[str | None] = mapped_column(Text(), nullable=True)  # object key, never exposed
    mime_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # set by the owner; the transcode job must not publish over it
    hidden_by_owner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_submission_one_per_user"),
    )
