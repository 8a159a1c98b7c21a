from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("starts_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("ends_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("submissions_open_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("submissions_close_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("starts_at < ends_at", name="ck_event_live_window"),
        sa.CheckConstraint("submissions_open_at < submissions_close_at", name="ck_event_submission_window"),
    )
    op.create_index("ix_events_starts_at", "events", ["starts_at"])

    op.create_table(
        "invite_codes",
        sa.Column("code", sa.String(length=32), nullable=False),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("used_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("used_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("code", "event_id", name="pk_invite_codes"),
        # codes are matched upper-case
        sa.CheckConstraint("code = upper(code)", name="ck_invite_code_upper"),
    )

def downgrade() -> None:
    op.drop_table("invite_codes")
    op.drop_index("ix_events_starts_at", table_name="events")
    op.drop_table("events")
