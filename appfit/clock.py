"""Day-key providers for daily quota bookkeeping.

A day key is a zero-padded ``YYYY-MM-DD`` string. Counters are compared by
key equality only, never by elapsed time, so string equality must imply
same calendar day.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Protocol
from zoneinfo import ZoneInfo


def day_key(day: date) -> str:
    """Canonical key for a calendar day."""
    return day.isoformat()


class DayClock(Protocol):
    """Source of the current day key."""

    def today(self) -> date: ...

    def current_day_key(self) -> str: ...


class SystemDayClock:
    """Day key from the wall clock, in a fixed zone or server local time."""

    def __init__(self, timezone: str | None = None) -> None:
        self._tz = ZoneInfo(timezone) if timezone else None

    def today(self) -> date:
        if self._tz is None:
            return datetime.now().date()
        return datetime.now(self._tz).date()

    def current_day_key(self) -> str:
        return day_key(self.today())


class FixedDayClock:
    """Clock pinned to a given day until explicitly advanced."""

    def __init__(self, day: date | str) -> None:
        self._day = date.fromisoformat(day) if isinstance(day, str) else day

    def advance(self, days: int = 1) -> None:
        self._day = self._day + timedelta(days=days)

    def today(self) -> date:
        return self._day

    def current_day_key(self) -> str:
        return day_key(self._day)
