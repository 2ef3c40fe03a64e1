"""FastAPI dependency injection providers."""

import hmac
import re
from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, Header, Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from appfit.clock import DayClock, SystemDayClock
from appfit.config import Settings, get_settings
from appfit.database import get_db
from appfit.exceptions import (
    InvalidApiKeyError,
    InvalidIdentityError,
    InvalidTokenError,
    QuotaUnavailableError,
    StorageWriteError,
    UsageLimitExceededError,
)
from appfit.repositories.base import UsageStore
from appfit.repositories.usage_counter_repository import UsageCounterRepository
from appfit.services.auth_service import AuthenticatedUser, get_auth_service
from appfit.services.quota_service import QuotaScope, QuotaService, SubmissionResult
from appfit.utils.logger import get_logger

log = get_logger(__name__)

_DEVICE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{8,128}$")


# Type aliases for cleaner router signatures
DbSession = Annotated[AsyncSession, Depends(get_db)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


# ============================================================================
# Infrastructure
# ============================================================================


async def get_redis(request: Request) -> Redis:
    """Get async Redis client from app state."""
    return request.app.state.redis


RedisDep = Annotated[Redis, Depends(get_redis)]


def get_day_clock(settings: SettingsDep) -> DayClock:
    """Get the clock that decides the current quota day."""
    return SystemDayClock(settings.quota_timezone)


DayClockDep = Annotated[DayClock, Depends(get_day_clock)]


# ============================================================================
# Usage Stores
# ============================================================================


def get_usage_counter_repository(db: DbSession) -> UsageCounterRepository:
    """Get UsageCounterRepository with database session."""
    return UsageCounterRepository(db)


async def get_device_usage_store(request: Request) -> UsageStore:
    """Get the device counter store created at startup."""
    return request.app.state.device_store


UsageCounterRepoDep = Annotated[UsageCounterRepository, Depends(get_usage_counter_repository)]
DeviceUsageStoreDep = Annotated[UsageStore, Depends(get_device_usage_store)]


# ============================================================================
# Authentication Dependencies
# ============================================================================


async def get_current_user_optional(
    authorization: Annotated[str | None, Header(alias="Authorization")] = None,
) -> AuthenticatedUser | None:
    """Get current user if authenticated, None otherwise."""
    if not authorization:
        return None

    try:
        return await get_auth_service().verify_token(authorization)
    except InvalidTokenError as e:
        log.debug("bearer token ignored", reason=e.message)
        return None


CurrentUserOptional = Annotated[AuthenticatedUser | None, Depends(get_current_user_optional)]


def get_device_id(
    x_device_id: Annotated[str | None, Header(alias="X-Device-Id")] = None,
) -> Optional[str]:
    """Get the anonymous device id header, validated when present."""
    if x_device_id is None:
        return None
    device_id = x_device_id.strip()
    if not _DEVICE_ID_PATTERN.match(device_id):
        raise InvalidIdentityError("X-Device-Id must be 8-128 characters of [A-Za-z0-9_-]")
    return device_id


DeviceIdDep = Annotated[Optional[str], Depends(get_device_id)]


# ============================================================================
# Quota Dependencies
# ============================================================================


def get_account_quota_service(
    repo: UsageCounterRepoDep, clock: DayClockDep, settings: SettingsDep
) -> QuotaService:
    """Quota service over per-account counters in Postgres."""
    return QuotaService(
        store=repo,
        clock=clock,
        daily_limit=settings.daily_message_limit,
        fail_open=settings.quota_fail_open,
        scope="account",
    )


def get_device_quota_service(
    store: DeviceUsageStoreDep, clock: DayClockDep, settings: SettingsDep
) -> QuotaService:
    """Quota service over per-device counters."""
    return QuotaService(
        store=store,
        clock=clock,
        daily_limit=settings.daily_message_limit,
        fail_open=settings.quota_fail_open,
        scope="device",
    )


@dataclass(frozen=True)
class QuotaContext:
    """The quota service and identity that apply to the current request."""

    service: QuotaService
    identity: str

    @property
    def scope(self) -> QuotaScope:
        return self.service.scope


async def get_quota_context(
    user: CurrentUserOptional,
    device_id: DeviceIdDep,
    account_service: Annotated[QuotaService, Depends(get_account_quota_service)],
    device_service: Annotated[QuotaService, Depends(get_device_quota_service)],
) -> QuotaContext:
    """Authenticated requests use account counters; anonymous ones need a device id."""
    if user is not None:
        return QuotaContext(service=account_service, identity=user.user_id)
    if device_id is None:
        raise InvalidIdentityError("Sign in or send an X-Device-Id header")
    return QuotaContext(service=device_service, identity=device_id)


QuotaContextDep = Annotated[QuotaContext, Depends(get_quota_context)]


async def enforce_message_quota(ctx: QuotaContextDep) -> SubmissionResult | None:
    """Count one chat message against today's quota. Raises 429 if exhausted.

    Returns None when the store failed and the service is configured to
    fail open (the message is allowed but its count is unknown).
    Raises 503 instead when the service is configured to fail closed.
    """
    service = ctx.service
    status = await service.get_status(ctx.identity)
    if not status.store_available and not service.fail_open:
        log.error("usage read failed, rejecting message", scope=ctx.scope, identity=ctx.identity)
        raise QuotaUnavailableError()
    if status.has_reached_limit:
        raise UsageLimitExceededError(current=status.used, limit=status.limit)

    try:
        result = await service.increment(ctx.identity)
    except StorageWriteError as e:
        if service.fail_open:
            log.warning(
                "usage write failed, allowing message",
                scope=ctx.scope,
                identity=ctx.identity,
                error=e.message,
            )
            return None
        log.error("usage write failed, rejecting message", scope=ctx.scope, identity=ctx.identity)
        raise QuotaUnavailableError() from e

    if not result.accepted:
        raise UsageLimitExceededError(current=result.new_count, limit=service.daily_limit)
    return result


MessageQuotaGuard = Annotated[SubmissionResult | None, Depends(enforce_message_quota)]


# ============================================================================
# API Key Dependencies
# ============================================================================


def verify_api_key(
    settings: SettingsDep,
    x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """Verify the X-Api-Key header matches the configured API key."""
    if not settings.api_key or not x_api_key:
        log.warning("ops api key rejected", reason="missing key or unconfigured")
        raise InvalidApiKeyError()
    if not hmac.compare_digest(x_api_key, settings.api_key):
        log.warning("ops api key rejected", reason="key mismatch")
        raise InvalidApiKeyError()


ApiKeyCheck = Annotated[None, Depends(verify_api_key)]
