"""Injectable clock and calendar-day policy.

Every "now" and every "what day is it" question in RecallForge goes through a
Clock. A clock carries one time zone; all calendar dates (daily stats, streaks,
"due tomorrow") are derived with that zone so that day boundaries are never
mixed between UTC and local time.

A clock with ``tz=None`` follows the host's local zone, so study days follow
the learner's own calendar.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from recallforge.core.exceptions import ConfigurationError

LOCAL_TIMEZONE = "local"


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Turn a configured zone name into a tzinfo.

    Args:
        name: "local" (or empty) for the host zone, "UTC", or an IANA name

    Returns:
        tzinfo, or None for the host's local zone

    Raises:
        ConfigurationError: If the name is not a known zone
    """
    if not name or name.lower() == LOCAL_TIMEZONE:
        return None
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone '{name}'") from e


def ensure_aware(ts: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Attach a zone to naive datetimes.

    Naive values are interpreted in ``tz`` (or the host zone when tz is None).
    Aware values are returned unchanged.
    """
    if ts.tzinfo is not None and ts.utcoffset() is not None:
        return ts
    if tz is None:
        return ts.astimezone()
    return ts.replace(tzinfo=tz)


class Clock(ABC):
    """Source of the current time and calendar date."""

    def __init__(self, tz: Optional[tzinfo] = None) -> None:
        self.tz = tz

    @abstractmethod
    def now(self) -> datetime:
        """Current time as an aware datetime."""

    def local_date(self, ts: datetime) -> date:
        """Calendar date of ``ts`` under this clock's zone."""
        return ensure_aware(ts, self.tz).astimezone(self.tz).date()

    def today(self) -> date:
        """Calendar date of now()."""
        return self.local_date(self.now())


class SystemClock(Clock):
    """Wall clock."""

    def now(self) -> datetime:
        if self.tz is None:
            return datetime.now().astimezone()
        return datetime.now(self.tz)


class FixedClock(Clock):
    """Clock frozen at a given instant; for tests and replays.

    Example:
        >>> clock = FixedClock(datetime(2024, 3, 1, 9, tzinfo=timezone.utc))
        >>> clock.advance(days=1).today()
        datetime.date(2024, 3, 2)
    """

    def __init__(self, now: datetime, tz: Optional[tzinfo] = None) -> None:
        super().__init__(tz if tz is not None else now.tzinfo)
        self._now = ensure_aware(now, self.tz)

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> "FixedClock":
        """Jump to an absolute instant."""
        self._now = ensure_aware(now, self.tz)
        return self

    def advance(self, **delta: float) -> "FixedClock":
        """Move forward by a timedelta given as keyword arguments."""
        self._now = self._now + timedelta(**delta)
        return self


def clock_for(timezone_name: Optional[str]) -> SystemClock:
    """Build a SystemClock for a configured zone name."""
    return SystemClock(resolve_timezone(timezone_name))
