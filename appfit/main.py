"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from appfit import __version__
from appfit.config import get_settings
from appfit.database import engine, init_db
from appfit.repositories.device_usage_store import DeviceUsageStore
from appfit.repositories.memory_usage_store import InMemoryUsageStore

# Import routers
from appfit.routers import health, ops, usage

# Import middleware
from appfit.middleware import logging_middleware, register_exception_handlers
from appfit.utils.logger import configure_logging, get_logger

settings = get_settings()

# Configure logging early
configure_logging(log_level=settings.log_level, debug=settings.debug)
log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    log.info(
        "starting application",
        debug=settings.debug,
        log_level=settings.log_level,
        daily_message_limit=settings.daily_message_limit,
        quota_fail_open=settings.quota_fail_open,
    )
    await init_db()
    log.info("database initialized")

    # Device counters: Redis shared across instances, or process-local
    app.state.redis = None
    if settings.device_store_backend == "redis":
        import redis.asyncio as aioredis

        app.state.redis = aioredis.from_url(settings.redis_url, decode_responses=True)
        app.state.device_store = DeviceUsageStore(
            app.state.redis,
            key_prefix=settings.device_usage_key_prefix,
            ttl_seconds=settings.device_usage_ttl_seconds,
        )
    else:
        app.state.device_store = InMemoryUsageStore()
    log.info("device usage store ready", backend=settings.device_store_backend)

    yield

    if app.state.redis is not None:
        await app.state.redis.aclose()

    log.info("shutting down application")
    await engine.dispose()
    log.info("database connections closed")


app = FastAPI(
    title="AppFit Quota API",
    description="Daily message quota tracking and enforcement for AppFit chat",
    version=__version__,
    lifespan=lifespan,
)

# Register exception handlers first
register_exception_handlers(app)

# CORS middleware (must be first in middleware stack)
_cors_origins = settings.get_cors_origins_list()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins or ["*"],
    allow_credentials=bool(_cors_origins),
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request logging middleware
app.middleware("http")(logging_middleware)

# Register routers
app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(usage.router, prefix="/api/v1", tags=["Usage"])
app.include_router(ops.router, prefix="/api/v1", tags=["Ops"])


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "AppFit Quota API",
        "version": __version__,
        "daily_message_limit": settings.daily_message_limit,
        "endpoints": {
            "health": "/api/v1/health",
            "usage": "/api/v1/usage",
            "submissions": "/api/v1/usage/submissions",
            "usage_cleanup": "/api/v1/ops/usage/cleanup",
        },
    }
