"""Shared pytest fixtures for router tests."""

import pytest
from contextlib import ExitStack
from typing import AsyncGenerator
from unittest.mock import AsyncMock, Mock, patch

from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession

from appfit.clock import FixedDayClock
from appfit.config import Settings
from appfit.repositories.memory_usage_store import InMemoryUsageStore
from appfit.services.auth_service import AuthenticatedUser


# Mock database before importing app to avoid connection issues
@pytest.fixture(autouse=True)
def mock_database_init():
    """Mock database initialization and Redis for all router tests."""
    with ExitStack() as stack:
        stack.enter_context(patch("appfit.main.init_db", new_callable=AsyncMock))
        mock_engine = stack.enter_context(patch("appfit.main.engine"))
        mock_engine.dispose = AsyncMock()
        mock_redis_factory = stack.enter_context(patch("redis.asyncio.from_url"))
        mock_redis_factory.return_value = AsyncMock()
        yield


@pytest.fixture
def mock_db_session():
    """Create a mock AsyncSession for router tests."""
    session = AsyncMock(spec=AsyncSession)

    mock_result = Mock()
    mock_result.scalar_one_or_none = Mock(return_value=None)
    mock_result.one_or_none = Mock(return_value=None)
    mock_result.rowcount = 0

    session.execute = AsyncMock(return_value=mock_result)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def test_settings():
    """Real settings with test values."""
    return Settings(
        daily_message_limit=10,
        quota_fail_open=True,
        api_key="test-api-key",
        supabase_jwt_secret="test-supabase-jwt-secret-with-enough-length",
        usage_retention_days=90,
        message_history_limit=50,
        device_store_backend="redis",
    )


@pytest.fixture
def test_clock():
    return FixedDayClock("2024-01-01")


@pytest.fixture
def account_store():
    """Stands in for the Postgres-backed account counters."""
    return InMemoryUsageStore()


@pytest.fixture
def device_store():
    return InMemoryUsageStore()


@pytest.fixture
def mock_usage_repo():
    """Mock UsageCounterRepository for ops endpoints."""
    repo = AsyncMock()
    repo.delete_before = AsyncMock(return_value=0)
    return repo


@pytest.fixture
def mock_user():
    return AuthenticatedUser(user_id="acct-0001", email="test@example.com")


def _create_test_client(
    mock_db_session,
    test_settings,
    test_clock,
    usage_repo,
    device_store,
    *,
    mock_user=None,
):
    """Build a TestClient with storage and clock dependencies overridden.

    When mock_user is provided, token verification is bypassed and requests
    count against the account store. Otherwise requests are anonymous.
    """
    from appfit.main import app
    from appfit.config import get_settings
    from appfit.database import get_db
    from appfit.dependencies import (
        get_current_user_optional,
        get_day_clock,
        get_device_usage_store,
        get_usage_counter_repository,
    )

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield mock_db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_day_clock] = lambda: test_clock
    app.dependency_overrides[get_usage_counter_repository] = lambda: usage_repo
    app.dependency_overrides[get_device_usage_store] = lambda: device_store
    app.dependency_overrides[get_current_user_optional] = lambda: mock_user

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def client(mock_db_session, test_settings, test_clock, account_store, device_store):
    """Anonymous client; usage counts against the device store."""
    yield from _create_test_client(
        mock_db_session, test_settings, test_clock, account_store, device_store
    )


@pytest.fixture
def authenticated_client(
    mock_db_session, test_settings, test_clock, account_store, device_store, mock_user
):
    """Authenticated client; usage counts against the account store."""
    yield from _create_test_client(
        mock_db_session,
        test_settings,
        test_clock,
        account_store,
        device_store,
        mock_user=mock_user,
    )


@pytest.fixture
def ops_client(mock_db_session, test_settings, test_clock, mock_usage_repo, device_store):
    """Client whose account repository is a mock, for ops endpoints."""
    yield from _create_test_client(
        mock_db_session, test_settings, test_clock, mock_usage_repo, device_store
    )
