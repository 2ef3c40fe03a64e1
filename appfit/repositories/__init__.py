"""Repository layer for usage counter storage."""

from appfit.repositories.base import DailyUsageRecord, UsageStore
from appfit.repositories.device_usage_store import DeviceUsageStore
from appfit.repositories.memory_usage_store import InMemoryUsageStore
from appfit.repositories.usage_counter_repository import UsageCounterRepository

__all__ = [
    "DailyUsageRecord",
    "UsageStore",
    "DeviceUsageStore",
    "InMemoryUsageStore",
    "UsageCounterRepository",
]
