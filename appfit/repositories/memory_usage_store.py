"""In-process usage store."""

import asyncio
from typing import Dict, Optional

from appfit.repositories.base import DailyUsageRecord
from appfit.utils.logger import get_logger

log = get_logger(__name__)


class InMemoryUsageStore:
    """
    In-memory daily usage store.

    Keeps one record per identity. The first increment of a new day sweeps
    out every record from earlier days, so the store holds at most one day
    of identities. All access goes through one asyncio lock, so increments
    are atomic within the process.

    For multi-instance deployments, use the Redis-backed DeviceUsageStore.
    """

    def __init__(self) -> None:
        self._records: Dict[str, DailyUsageRecord] = {}
        self._lock = asyncio.Lock()
        self._swept_day: Optional[str] = None

    async def load(self, identity: str) -> Optional[DailyUsageRecord]:
        async with self._lock:
            return self._records.get(identity)

    async def save(self, record: DailyUsageRecord) -> None:
        async with self._lock:
            self._records[record.identity] = record

    async def increment_if_below(self, identity: str, day: str, limit: int) -> tuple[int, bool]:
        async with self._lock:
            if self._swept_day is None or day > self._swept_day:
                self._evict_before(day)

            existing = self._records.get(identity)
            count = existing.count_for(day) if existing else 0
            if count >= limit:
                log.debug("increment refused", identity=identity, day=day, count=count)
                return count, False

            count += 1
            self._records[identity] = DailyUsageRecord(identity=identity, day=day, count=count)
            return count, True

    def _evict_before(self, day: str) -> None:
        """Drop records older than day. Caller must hold the lock."""
        stale = [key for key, record in self._records.items() if record.day < day]
        for key in stale:
            del self._records[key]
        self._swept_day = day
        if stale:
            log.debug("stale usage records evicted", before=day, evicted=len(stale))

    def __len__(self) -> int:
        return len(self._records)
