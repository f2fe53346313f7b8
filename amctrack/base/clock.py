from __future__ import annotations

import os
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo


class Clock(ABC):
    """Source of "today" and "now" for code that depends on the calendar."""

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def __init__(self, tz: tzinfo = timezone.utc) -> None:
        self._tz = tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock(Clock):
    """Clock pinned to a single instant. Used by tests and one-off reruns."""

    def __init__(self, instant: datetime | date) -> None:
        if not isinstance(instant, datetime):
            instant = datetime(
                instant.year, instant.month, instant.day, tzinfo=timezone.utc
            )
        self._instant = instant

    def now(self) -> datetime:
        return self._instant


REMINDER_TIMEZONE = ZoneInfo(os.environ.get("AMCTRACK_REMINDER_TIMEZONE", "UTC"))

system_clock = SystemClock(REMINDER_TIMEZONE)
