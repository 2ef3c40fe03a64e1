"""Database engine, session factory and request-scoped sessions."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from appfit.config import get_settings


class Base(DeclarativeBase):
    pass


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Async engine for the usage database.

    Counter writes are short single-statement transactions, so connections
    are checked on checkout and recycled before server-side idle timeouts.
    """
    return create_async_engine(url, echo=echo, pool_pre_ping=True, pool_recycle=1800)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Repositories return plain records; keep attributes loaded after commit
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


settings = get_settings()
engine = build_engine(settings.postgres_url, echo=settings.sql_echo)
SessionFactory = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session per request; roll back if the handler raised."""
    async with SessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Create tables that migrations have not created yet."""
    import appfit.models  # noqa: F401  (registers tables on Base.metadata)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
