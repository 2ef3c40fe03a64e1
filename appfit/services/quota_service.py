"""Daily message quota: reconciliation and enforcement.

One ``QuotaService`` wraps one usage store (device or account counters).
Counts only move forward within a day; a record from an earlier day is read
as zero, which is how the quota resets at midnight. Accepting a submission
goes through the store's atomic ``increment_if_below`` so concurrent
requests for the same identity cannot both take the last slot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from appfit.clock import DayClock
from appfit.exceptions import InvalidIdentityError, StorageReadError
from appfit.repositories.base import UsageStore
from appfit.utils.logger import get_logger

log = get_logger(__name__)

DEFAULT_DAILY_LIMIT = 10

QuotaScope = Literal["device", "account"]


@dataclass(frozen=True, slots=True)
class QuotaStatus:
    """Reconciled view of one identity's quota for today."""

    identity: str
    day: str
    used: int
    limit: int
    # False when the store could not be read and `used` is the fail-policy fallback
    store_available: bool = True

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def has_reached_limit(self) -> bool:
        return self.used >= self.limit


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    new_count: int
    accepted: bool


class QuotaService:
    """Tracks and enforces a fixed number of messages per identity per day."""

    def __init__(
        self,
        store: UsageStore,
        clock: DayClock,
        daily_limit: int = DEFAULT_DAILY_LIMIT,
        fail_open: bool = True,
        scope: QuotaScope = "account",
    ) -> None:
        if daily_limit < 1:
            raise ValueError(f"daily_limit must be at least 1, got {daily_limit}")
        self.store = store
        self.clock = clock
        self.daily_limit = daily_limit
        self.fail_open = fail_open
        self.scope = scope

    def _check_identity(self, identity: str | None) -> str:
        if identity is None or not str(identity).strip():
            raise InvalidIdentityError(f"An identity is required for {self.scope} quota tracking")
        return str(identity)

    async def effective_count(self, identity: str) -> int:
        """Today's count for ``identity``. Never writes."""
        return (await self.get_status(identity)).used

    async def get_status(self, identity: str) -> QuotaStatus:
        """Reconcile the stored record against today's day key."""
        identity = self._check_identity(identity)
        today = self.clock.current_day_key()

        try:
            record = await self.store.load(identity)
        except StorageReadError as e:
            used = 0 if self.fail_open else self.daily_limit
            log.warning(
                "usage read failed",
                scope=self.scope,
                identity=identity,
                fail_open=self.fail_open,
                error=e.message,
            )
            return QuotaStatus(
                identity=identity,
                day=today,
                used=used,
                limit=self.daily_limit,
                store_available=False,
            )

        used = record.count_for(today) if record else 0
        return QuotaStatus(identity=identity, day=today, used=used, limit=self.daily_limit)

    async def remaining(self, identity: str) -> int:
        return (await self.get_status(identity)).remaining

    async def has_reached_limit(self, identity: str) -> bool:
        return (await self.get_status(identity)).has_reached_limit

    async def can_submit(self, identity: str) -> bool:
        return not (await self.get_status(identity)).has_reached_limit

    async def increment(self, identity: str) -> SubmissionResult:
        """Count one accepted message for today, unless the quota is used up.

        Raises:
            InvalidIdentityError: If identity is empty
            StorageWriteError: If the store could not persist the increment
        """
        identity = self._check_identity(identity)
        today = self.clock.current_day_key()

        new_count, accepted = await self.store.increment_if_below(identity, today, self.daily_limit)

        if accepted:
            log.info(
                "submission recorded",
                scope=self.scope,
                identity=identity,
                day=today,
                count=new_count,
                limit=self.daily_limit,
            )
        else:
            log.info(
                "submission refused",
                scope=self.scope,
                identity=identity,
                day=today,
                count=new_count,
                limit=self.daily_limit,
            )
        return SubmissionResult(new_count=new_count, accepted=accepted)

    async def record_submission(self, identity: str) -> bool:
        """Record one chat message. Call exactly once per message, before dispatch."""
        return (await self.increment(identity)).accepted
