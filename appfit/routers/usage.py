"""Usage router -- daily message quota status and submissions."""

from typing import Optional

from fastapi import APIRouter, Query

from appfit.dependencies import MessageQuotaGuard, QuotaContextDep, SettingsDep
from appfit.schemas.usage import SubmissionResponse, UsageStatusResponse

router = APIRouter(prefix="/usage", tags=["Usage"])


@router.get("", response_model=UsageStatusResponse)
async def get_usage(
    ctx: QuotaContextDep,
    settings: SettingsDep,
    history_length: Optional[int] = Query(None, ge=0),
) -> UsageStatusResponse:
    """Get today's message quota for the caller. Read-only."""
    status = await ctx.service.get_status(ctx.identity)
    return UsageStatusResponse.from_status(
        status,
        scope=ctx.scope,
        history_length=history_length,
        history_limit=settings.message_history_limit,
    )


@router.post("/submissions", response_model=SubmissionResponse)
async def record_submission(
    ctx: QuotaContextDep,
    result: MessageQuotaGuard,
) -> SubmissionResponse:
    """Count one chat message against the caller's daily quota.

    Call once per message, before it is forwarded to the model provider.
    Responds 429 when the quota is already used up.
    """
    limit = ctx.service.daily_limit
    if result is None:
        # Store failed open: allowed, but the count is unknown
        remaining = (await ctx.service.get_status(ctx.identity)).remaining
        return SubmissionResponse(
            accepted=True, new_count=None, remaining=remaining, limit=limit, scope=ctx.scope
        )

    return SubmissionResponse(
        accepted=result.accepted,
        new_count=result.new_count,
        remaining=max(0, limit - result.new_count),
        limit=limit,
        scope=ctx.scope,
    )
