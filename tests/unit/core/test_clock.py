"""Tests for the injectable clock and time-zone policy."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from recallforge.core.clock import (
    FixedClock,
    SystemClock,
    clock_for,
    ensure_aware,
    resolve_timezone,
)
from recallforge.core.exceptions import ConfigurationError


class TestResolveTimezone:
    """Tests for resolve_timezone."""

    @pytest.mark.parametrize("name", [None, "", "local", "LOCAL"])
    def test_local(self, name: str) -> None:
        assert resolve_timezone(name) is None

    def test_utc(self) -> None:
        assert resolve_timezone("utc") is timezone.utc

    def test_iana_name(self) -> None:
        assert resolve_timezone("Europe/Paris") == ZoneInfo("Europe/Paris")

    def test_unknown_name_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown timezone"):
            resolve_timezone("Mars/Olympus")


class TestEnsureAware:
    def test_aware_unchanged(self, now: datetime) -> None:
        assert ensure_aware(now) is now

    def test_naive_gets_zone(self) -> None:
        naive = datetime(2024, 3, 10, 9)
        assert ensure_aware(naive, timezone.utc) == datetime(2024, 3, 10, 9, tzinfo=timezone.utc)

    def test_naive_without_zone_uses_host(self) -> None:
        assert ensure_aware(datetime(2024, 3, 10, 9)).tzinfo is not None


class TestFixedClock:
    """Tests for FixedClock."""

    def test_now_and_today(self, now: datetime) -> None:
        clock = FixedClock(now)
        assert clock.now() == now
        assert clock.today() == date(2024, 3, 10)

    def test_advance(self, now: datetime) -> None:
        clock = FixedClock(now)
        assert clock.advance(days=1, hours=2).now() == now + timedelta(days=1, hours=2)

    def test_set(self, now: datetime) -> None:
        clock = FixedClock(now)
        later = now + timedelta(days=30)
        assert clock.set(later).now() == later

    def test_local_date_uses_clock_zone(self) -> None:
        """22:30 UTC is already the next day in Tokyo."""
        tokyo = ZoneInfo("Asia/Tokyo")
        instant = datetime(2024, 3, 10, 22, 30, tzinfo=timezone.utc)
        assert FixedClock(instant, tz=tokyo).local_date(instant) == date(2024, 3, 11)
        assert FixedClock(instant).local_date(instant) == date(2024, 3, 10)


class TestSystemClock:
    def test_now_is_aware(self) -> None:
        assert SystemClock().now().tzinfo is not None
        assert SystemClock(timezone.utc).now().tzinfo is timezone.utc

    def test_clock_for(self) -> None:
        assert clock_for("UTC").tz is timezone.utc
        assert clock_for("local").tz is None
