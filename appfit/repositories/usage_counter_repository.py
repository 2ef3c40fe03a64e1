"""Repository for per-account daily message counters."""

from typing import Optional

from sqlalchemy import delete, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from appfit.exceptions import StorageReadError, StorageWriteError
from appfit.models.usage_counter import DailyMessageUsage
from appfit.repositories.base import DailyUsageRecord
from appfit.utils.logger import get_logger

log = get_logger(__name__)

_UPSERT_SQL = text("""
    INSERT INTO daily_message_usage (id, identity, usage_day, message_count)
    VALUES (gen_random_uuid(), :identity, :usage_day, :message_count)
    ON CONFLICT (identity, usage_day)
    DO UPDATE SET message_count = EXCLUDED.message_count,
                  updated_at = now()
""")

# The WHERE on the conflict branch makes the ceiling part of the same
# statement; a refused increment returns no row.
_INCREMENT_SQL = text("""
    INSERT INTO daily_message_usage (id, identity, usage_day, message_count)
    VALUES (gen_random_uuid(), :identity, :usage_day, 1)
    ON CONFLICT (identity, usage_day)
    DO UPDATE SET message_count = daily_message_usage.message_count + 1,
                  updated_at = now()
    WHERE daily_message_usage.message_count < :limit
    RETURNING message_count
""")


class UsageCounterRepository:
    """Repository for atomic daily message counter operations.

    Write methods commit immediately so the counter row lock is not held
    for the rest of the request.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def load(self, identity: str) -> Optional[DailyUsageRecord]:
        """Get the most recent usage row for an account.

        Returns None if the account has never sent a message.
        """
        try:
            result = await self.session.execute(
                select(DailyMessageUsage.usage_day, DailyMessageUsage.message_count)
                .where(DailyMessageUsage.identity == identity)
                .order_by(DailyMessageUsage.usage_day.desc())
                .limit(1)
            )
            row = result.one_or_none()
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.error("usage load failed", identity=identity, error=str(e))
            raise StorageReadError("Failed to load usage counter", identity=identity) from e

        if row is None:
            return None
        return DailyUsageRecord(identity=identity, day=row.usage_day, count=row.message_count)

    async def get_count(self, identity: str, day: str) -> int:
        """Get the message count for one day. Returns 0 if no row exists."""
        try:
            result = await self.session.execute(
                select(DailyMessageUsage.message_count).where(
                    DailyMessageUsage.identity == identity,
                    DailyMessageUsage.usage_day == day,
                )
            )
            count = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.error("usage count failed", identity=identity, day=day, error=str(e))
            raise StorageReadError("Failed to read usage counter", identity=identity) from e
        return count or 0

    async def save(self, record: DailyUsageRecord) -> None:
        """Upsert the row for (identity, day)."""
        try:
            await self.session.execute(
                _UPSERT_SQL,
                {
                    "identity": record.identity,
                    "usage_day": record.day,
                    "message_count": record.count,
                },
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.error("usage save failed", identity=record.identity, error=str(e))
            raise StorageWriteError("Failed to save usage counter", identity=record.identity) from e

    async def increment_if_below(self, identity: str, day: str, limit: int) -> tuple[int, bool]:
        """Atomically increment the day's count via conditional UPSERT.

        Creates the row if it doesn't exist. Returns (count, accepted).
        """
        try:
            result = await self.session.execute(
                _INCREMENT_SQL,
                {"identity": identity, "usage_day": day, "limit": limit},
            )
            count = result.scalar_one_or_none()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.error("usage increment failed", identity=identity, day=day, error=str(e))
            raise StorageWriteError("Failed to increment usage counter", identity=identity) from e

        if count is not None:
            log.debug("message count incremented", identity=identity, day=day, count=count)
            return count, True

        try:
            current = await self.get_count(identity, day)
        except StorageReadError as e:
            # The refusal itself is authoritative; only the reported count is lost
            log.warning("refused increment count unavailable", identity=identity, error=e.message)
            current = limit
        log.debug("message count at limit", identity=identity, day=day, count=current)
        return current, False

    async def delete_before(self, day: str) -> int:
        """Delete rows for days strictly before ``day``. Returns rows deleted."""
        try:
            result = await self.session.execute(
                delete(DailyMessageUsage).where(DailyMessageUsage.usage_day < day)
            )
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            log.error("usage cleanup failed", before=day, error=str(e))
            raise StorageWriteError("Failed to delete old usage counters") from e

        deleted = result.rowcount or 0
        log.info("old usage counters deleted", before=day, deleted=deleted)
        return deleted
