"""Shared pytest fixtures."""

# Clear settings cache before any imports to prevent stale values with coverage
from appfit.config import get_settings

get_settings.cache_clear()

import pytest
import uuid
from unittest.mock import AsyncMock, Mock
from contextlib import asynccontextmanager

from appfit.clock import FixedDayClock
from appfit.repositories.memory_usage_store import InMemoryUsageStore
from appfit.services.quota_service import QuotaService


@pytest.fixture
def fixed_clock():
    """Clock pinned to 2024-01-01."""
    return FixedDayClock("2024-01-01")


@pytest.fixture
def memory_store():
    """Create an empty InMemoryUsageStore."""
    return InMemoryUsageStore()


@pytest.fixture
def quota_service(memory_store, fixed_clock):
    """QuotaService with the default limit of 10 over an in-memory store."""
    return QuotaService(store=memory_store, clock=fixed_clock, daily_limit=10)


# Database mocking fixtures


@pytest.fixture
def mock_async_session():
    """Create a mock AsyncSession for repository tests."""
    session = AsyncMock()

    # Mock result object for execute
    mock_result = Mock()
    mock_result.scalar_one_or_none = Mock(return_value=None)
    mock_result.scalar_one = Mock(return_value=0)
    mock_result.one_or_none = Mock(return_value=None)
    mock_result.scalars = Mock(return_value=Mock(all=Mock(return_value=[])))
    mock_result.rowcount = 0

    session.execute = AsyncMock(return_value=mock_result)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.add = Mock()
    session.close = AsyncMock()

    @asynccontextmanager
    async def begin_nested():
        yield

    session.begin_nested = begin_nested

    return session


@pytest.fixture
def sample_identity():
    """Return a sample account id string."""
    return str(uuid.uuid4())
