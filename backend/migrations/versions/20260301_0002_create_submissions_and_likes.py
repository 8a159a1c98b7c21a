from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20260301_0002"
down_revision = "20260301_0001"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("display_name", sa.String(length=80), nullable=False, server_default="Unnamed Act"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("spotify_url", sa.Text(), nullable=True),
        sa.Column("soundcloud_url", sa.Text(), nullable=True),
        sa.Column("instagram_url", sa.Text(), nullable=True),
        sa.Column("video_path", sa.Text(), nullable=True),
        sa.Column("mime_type", sa.String(length=64), nullable=True),
        sa.Column("published", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("event_id", "user_id", name="uq_submission_one_per_user"),
    )
    op.create_index("ix_submissions_event_id", "submissions", ["event_id"])
    op.create_index("ix_submissions_user_id", "submissions", ["user_id"])
    # feed query: published rows per event
    op.create_index(
        "ix_submissions_event_published",
        "submissions",
        ["event_id", "created_at"],
        postgresql_where=sa.text("published AND video_path IS NOT NULL"),
    )

    op.create_table(
        "likes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("submission_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("ip_hash", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("event_id", "submission_id", "ip_hash", name="uq_like_once_per_fingerprint"),
    )
    op.create_index("ix_likes_event_submission", "likes", ["event_id", "submission_id"])

def downgrade() -> None:
    op.drop_index("ix_likes_event_submission", table_name="likes")
    op.drop_table("likes")
    op.drop_index("ix_submissions_event_published", table_name="submissions")
    op.drop_index("ix_submissions_user_id", table_name="submissions")
    op.drop_index("ix_submissions_event_id", table_name="submissions")
    op.drop_table("submissions")
