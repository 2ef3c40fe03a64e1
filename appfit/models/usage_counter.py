"""Usage counter model for the daily message quota."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column
from appfit.database import Base


class DailyMessageUsage(Base):
    """Messages sent by one account on one calendar day."""

    __tablename__ = "daily_message_usage"
    __table_args__ = (
        UniqueConstraint("identity", "usage_day", name="uq_daily_message_usage_identity_day"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    identity: Mapped[str] = mapped_column(String(255), index=True)
    # Day key (YYYY-MM-DD) from the configured clock, not CURRENT_DATE
    usage_day: Mapped[str] = mapped_column(String(10))
    message_count: Mapped[int] = mapped_column(Integer, server_default="0")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return (
            f"<DailyMessageUsage(identity='{self.identity}', day='{self.usage_day}', "
            f"messages={self.message_count})>"
        )
