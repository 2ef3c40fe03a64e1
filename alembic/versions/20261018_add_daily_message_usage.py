"""Add daily_message_usage table for the daily message quota.

Revision ID: 001_add_daily_message_usage
Revises:
Create Date: 2026-10-18

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001_add_daily_message_usage"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create daily_message_usage table."""
    op.create_table(
        "daily_message_usage",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("identity", sa.String(255), nullable=False),
        sa.Column("usage_day", sa.String(10), nullable=False),
        sa.Column("message_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column(
            "created_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()
        ),
        sa.Column(
            "updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.func.now()
        ),
        sa.UniqueConstraint(
            "identity", "usage_day", name="uq_daily_message_usage_identity_day"
        ),
        sa.CheckConstraint("message_count >= 0", name="ck_daily_message_usage_count"),
    )
    op.create_index("ix_daily_message_usage_identity", "daily_message_usage", ["identity"])


def downgrade() -> None:
    """Drop daily_message_usage table."""
    op.drop_index("ix_daily_message_usage_identity", table_name="daily_message_usage")
    op.drop_table("daily_message_usage")
