"""Usage quota schemas."""

from typing import Literal, Optional

from pydantic import BaseModel

from appfit.services.quota_service import QuotaStatus

QuotaLevel = Literal["ok", "warning", "critical"]


def quota_level(remaining: int) -> QuotaLevel:
    """Indicator level for the remaining message count."""
    if remaining <= 1:
        return "critical"
    if remaining <= 2:
        return "warning"
    return "ok"


class UsageStatusResponse(BaseModel):
    """Response for GET /usage (quota display)."""

    scope: Literal["device", "account"]
    day: str
    used: int
    limit: int
    remaining: int
    has_reached_limit: bool
    can_submit: bool
    level: QuotaLevel
    messages_trimmed: bool = False  # history longer than the display limit

    @classmethod
    def from_status(
        cls,
        status: QuotaStatus,
        scope: Literal["device", "account"],
        history_length: Optional[int] = None,
        history_limit: Optional[int] = None,
    ) -> "UsageStatusResponse":
        trimmed = (
            history_length is not None
            and history_limit is not None
            and history_length > history_limit
        )
        return cls(
            scope=scope,
            day=status.day,
            used=status.used,
            limit=status.limit,
            remaining=status.remaining,
            has_reached_limit=status.has_reached_limit,
            can_submit=not status.has_reached_limit,
            level=quota_level(status.remaining),
            messages_trimmed=trimmed,
        )


class SubmissionResponse(BaseModel):
    """Response for POST /usage/submissions."""

    accepted: bool
    new_count: Optional[int] = None  # None when the store failed open
    remaining: int
    limit: int
    scope: Literal["device", "account"]


class UsageCleanupResponse(BaseModel):
    """Response for the ops usage cleanup endpoint."""

    before: str
    deleted: int
