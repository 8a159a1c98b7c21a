from __future__ import annotations
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = "20260402_0003"
down_revision = "20260301_0002"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.add_column(
        "submissions",
        sa.Column("hidden_by_owner", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )

def downgrade() -> None:
    op.drop_column("submissions", "hidden_by_owner")
