"""Ops operations router."""

from datetime import timedelta

from fastapi import APIRouter

from appfit.clock import day_key
from appfit.dependencies import ApiKeyCheck, DayClockDep, SettingsDep, UsageCounterRepoDep
from appfit.schemas.usage import UsageCleanupResponse
from appfit.utils.logger import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/ops", tags=["Ops"])


@router.post("/usage/cleanup", response_model=UsageCleanupResponse)
async def cleanup_usage_counters(
    usage_repo: UsageCounterRepoDep,
    clock: DayClockDep,
    settings: SettingsDep,
    _api_key: ApiKeyCheck,
) -> UsageCleanupResponse:
    """Delete account usage rows older than the retention window."""
    cutoff = day_key(clock.today() - timedelta(days=settings.usage_retention_days))
    deleted = await usage_repo.delete_before(cutoff)

    log.info("usage_cleanup_completed", before=cutoff, deleted=deleted)

    return UsageCleanupResponse(before=cutoff, deleted=deleted)
