"""Usage record type and the contract shared by all usage stores."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class DailyUsageRecord:
    """Messages sent by one identity on one calendar day."""

    identity: str
    day: str  # YYYY-MM-DD day key
    count: int = 0

    def count_for(self, day: str) -> int:
        """Count that applies on ``day``; a record for another day counts as 0."""
        return self.count if self.day == day else 0


class UsageStore(Protocol):
    """Persistence contract for daily usage counters.

    ``load`` and ``save`` are plain reads and upserts. ``increment_if_below``
    is the only path used for accepting submissions and must be atomic per
    ``(identity, day)``: concurrent callers can never both observe the same
    count and both increment it.
    """

    async def load(self, identity: str) -> DailyUsageRecord | None:
        """Most recent record for ``identity``, or None.

        Raises:
            StorageReadError: If the store could not be read
        """
        ...

    async def save(self, record: DailyUsageRecord) -> None:
        """Insert or overwrite the record for ``(identity, day)``.

        Raises:
            StorageWriteError: If the record could not be persisted
        """
        ...

    async def increment_if_below(self, identity: str, day: str, limit: int) -> tuple[int, bool]:
        """Add one to the count for ``(identity, day)`` if it is below ``limit``.

        Returns:
            Tuple of (count after the call, whether the increment happened)

        Raises:
            StorageWriteError: If the increment could not be persisted
        """
        ...
