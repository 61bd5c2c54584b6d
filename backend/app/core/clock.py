"""
Calendar helpers: what "today" is, and how incoming dates are normalized.

Reservations are for calendar dates with no time component. "Today" is
resolved in the configured TIMEZONE so that a booking made for the local
date is never expired before local midnight.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from app.core.config import get_settings
from app.core.exceptions import ValidationError

DateLike = Union[date, datetime, str]

# YYYY-MM-DD only, on every supported Python version
_ISO_DATE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


class Clock:
    """Source of the current time. Tests substitute a FrozenClock."""

    def __init__(self, tz_name: Optional[str] = None):
        self.tz = ZoneInfo(tz_name or get_settings().TIMEZONE)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def seconds_until(self, hour: int, minute: int) -> float:
        """Seconds from now until the next local occurrence of hour:minute."""
        now = self.now()
        target = datetime.combine(now.date(), time(hour, minute), tzinfo=self.tz)
        if target <= now:
            target += timedelta(days=1)
        return (target - now).total_seconds()


class FrozenClock(Clock):
    def __init__(self, frozen: datetime, tz_name: Optional[str] = None):
        super().__init__(tz_name)
        if frozen.tzinfo is None:
            frozen = frozen.replace(tzinfo=self.tz)
        self.frozen = frozen

    def now(self) -> datetime:
        return self.frozen.astimezone(self.tz)


def parse_calendar_date(value: DateLike, field: str = "date") -> date:
    """
    Normalize a date-like value to a calendar date.

    Accepts a ``date``, a ``datetime`` (time part dropped) or an ISO
    ``YYYY-MM-DD`` string. Anything else raises ValidationError.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _ISO_DATE.match(value.strip()):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Invalid calendar date: {value!r}", field=field)


def calendar_day(value: Union[date, datetime]) -> date:
    """The calendar day of a date or timestamp."""
    return value.date() if isinstance(value, datetime) else value


_clock: Optional[Clock] = None


def get_clock() -> Clock:
    """FastAPI dependency returning the process clock."""
    global _clock
    if _clock is None:
        _clock = Clock()
    return _clock
