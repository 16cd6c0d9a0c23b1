"""Current-date source injected into buffer and regeneration decisions."""
from datetime import date, datetime
from typing import Callable

import pytz

from taskhub.config import APP_TIMEZONE

Clock = Callable[[], date]


def make_clock(timezone_name: str = APP_TIMEZONE) -> Clock:
    """Return a callable giving today's date in the named timezone."""
    tz = pytz.timezone(timezone_name)

    def today() -> date:
        return datetime.now(tz).date()

    return today


def fixed_clock(day: date) -> Clock:
    """Return a clock frozen on the given day."""
    return lambda: day


def utcnow() -> datetime:
    """Current instant as a timezone-aware UTC datetime, for row timestamps."""
    return datetime.now(pytz.utc)
