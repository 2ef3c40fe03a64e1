"""Health check router."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from sqlalchemy import text

from appfit import __version__
from appfit.dependencies import DbSession, SettingsDep
from appfit.schemas.health import HealthResponse, ServiceStatus
from appfit.utils.logger import get_logger

router = APIRouter()
log = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request, db: DbSession, settings: SettingsDep) -> HealthResponse:
    """
    Health check for the quota stores.

    Checks:
    - Database connectivity (account counters)
    - Redis connectivity (device counters), unless the in-memory store is used

    Returns:
        HealthResponse with status and service details
    """
    services = {}
    overall_status = "ok"

    # Check database
    try:
        await db.execute(text("SELECT 1"))
        services["database"] = ServiceStatus(status="healthy", message="Connected")
    except Exception as e:
        log.error("health check failed", service="database", error=str(e))
        services["database"] = ServiceStatus(status="unhealthy", message="Service unavailable")
        overall_status = "degraded"

    # Check device counter store
    if settings.device_store_backend == "memory":
        services["device_store"] = ServiceStatus(
            status="healthy",
            message="In-memory store",
            details={"backend": "memory"},
        )
    else:
        try:
            await request.app.state.redis.ping()
            services["device_store"] = ServiceStatus(
                status="healthy",
                message="Connected",
                details={"backend": "redis"},
            )
        except Exception as e:
            log.error("health check failed", service="redis", error=str(e))
            services["device_store"] = ServiceStatus(
                status="unhealthy", message="Service unavailable"
            )
            overall_status = "degraded"

    return HealthResponse(
        status=overall_status,
        version=__version__,
        services=services,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )
