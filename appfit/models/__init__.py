"""Database models."""

from appfit.models.usage_counter import DailyMessageUsage

__all__ = [
    "DailyMessageUsage",
]
