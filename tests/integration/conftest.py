"""Integration test configuration with a real PostgreSQL database.

Set TEST_DATABASE_URL (asyncpg URL) to run these tests; they are skipped
otherwise.
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from appfit.database import build_engine, build_session_factory

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


def pytest_collection_modifyitems(items):
    """Apply integration marker to all tests in this directory."""
    for item in items:
        if "/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
            if not TEST_DATABASE_URL:
                item.add_marker(pytest.mark.skip(reason="TEST_DATABASE_URL not set"))


@pytest.fixture(scope="session")
def migrated_database() -> str:
    """Run Alembic migrations from scratch once per session."""
    alembic_cfg = Config("alembic.ini")
    # Convert async URL to sync for alembic
    alembic_cfg.set_main_option("sqlalchemy.url", TEST_DATABASE_URL.replace("+asyncpg", ""))
    command.downgrade(alembic_cfg, "base")
    command.upgrade(alembic_cfg, "head")
    return TEST_DATABASE_URL


@pytest_asyncio.fixture
async def test_engine(migrated_database) -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine(migrated_database)
    yield engine
    async with engine.begin() as conn:
        await conn.execute(text("DELETE FROM daily_message_usage"))
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(test_engine)
