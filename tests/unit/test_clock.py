"""Tests for day-key clocks."""

from datetime import date, datetime
from unittest.mock import patch

from appfit.clock import FixedDayClock, SystemDayClock, day_key


class TestDayKey:
    def test_zero_padded(self):
        assert day_key(date(2024, 3, 7)) == "2024-03-07"

    def test_string_order_matches_date_order(self):
        assert day_key(date(2024, 9, 30)) < day_key(date(2024, 10, 1))


class TestFixedDayClock:
    def test_accepts_string_or_date(self):
        assert FixedDayClock("2024-01-01").current_day_key() == "2024-01-01"
        assert FixedDayClock(date(2024, 1, 1)).current_day_key() == "2024-01-01"

    def test_advance_crosses_month_and_year(self):
        clock = FixedDayClock("2023-12-31")
        clock.advance()
        assert clock.current_day_key() == "2024-01-01"
        clock.advance(31)
        assert clock.current_day_key() == "2024-02-01"

    def test_today_returns_date(self):
        assert FixedDayClock("2024-02-29").today() == date(2024, 2, 29)


class TestSystemDayClock:
    def test_local_time_key_is_iso_date(self):
        key = SystemDayClock().current_day_key()
        assert date.fromisoformat(key) == datetime.now().date()

    def test_timezone_decides_the_day(self):
        """Just after midnight UTC it is still the previous day in New York."""
        instant = datetime(2024, 1, 2, 0, 30)

        class _FrozenDatetime(datetime):
            @classmethod
            def now(cls, tz=None):
                from zoneinfo import ZoneInfo

                utc = instant.replace(tzinfo=ZoneInfo("UTC"))
                return utc.astimezone(tz) if tz else instant

        with patch("appfit.clock.datetime", _FrozenDatetime):
            assert SystemDayClock("UTC").current_day_key() == "2024-01-02"
            assert SystemDayClock("America/New_York").current_day_key() == "2024-01-01"
