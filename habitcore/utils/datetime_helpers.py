"""
Standardized Date/Time Handling Utilities

All "now" access in the engines goes through a Clock so that streak, trend
and nudge logic can be tested deterministically.

CRITICAL RULES:
- Day keys are ISO dates (YYYY-MM-DD) in the clock's timezone
- Never mix naive and aware datetimes: naive values are assumed to be in
  the clock's timezone
"""

import logging
from datetime import datetime, date, timedelta, tzinfo
from typing import Optional, Protocol, Union
from zoneinfo import ZoneInfo

from habitcore.config import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

DateLike = Union[datetime, date, str]


class Clock(Protocol):
    """Source of the current time"""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock in a fixed timezone"""

    def __init__(self, timezone: Optional[str] = None):
        tz_str = timezone or DEFAULT_TIMEZONE
        try:
            self.tz: tzinfo = ZoneInfo(tz_str)
        except Exception as e:
            logger.error(f"Invalid timezone '{tz_str}': {e}")
            self.tz = ZoneInfo("UTC")

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """
    Clock frozen at a given instant, for tests and replays

    Example:
        clock = FixedClock(datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc))
        clock.advance(days=1)
    """

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, current: datetime) -> None:
        self.current = current

    def advance(self, **delta) -> datetime:
        self.current = self.current + timedelta(**delta)
        return self.current


def to_date(value: DateLike) -> date:
    """
    Normalize a timestamp, date or date key to a calendar date

    Aware datetimes keep their own timezone: the calendar day is the one
    observed in that timezone.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def date_key(value: DateLike) -> str:
    """Calendar-day key (YYYY-MM-DD) for a timestamp"""
    return to_date(value).isoformat()


def parse_date_key(key: str) -> date:
    """Parse a YYYY-MM-DD key back into a date"""
    return date.fromisoformat(key)


def shift_date_key(key: str, days: int) -> str:
    """Move a date key by a number of days"""
    return (parse_date_key(key) + timedelta(days=days)).isoformat()


def days_between(earlier: DateLike, later: DateLike) -> int:
    """
    Whole calendar days from earlier to later

    Negative when later precedes earlier.
    """
    return (to_date(later) - to_date(earlier)).days


def time_of_day(moment: datetime) -> str:
    """
    Bucket an hour into morning/afternoon/evening/night

    morning 05-11, afternoon 12-16, evening 17-21, night otherwise
    """
    hour = moment.hour
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 22:
        return "evening"
    return "night"
