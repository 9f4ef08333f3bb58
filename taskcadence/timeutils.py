"""Clock and time utilities for taskcadence.

Moments are naive wall-clock datetimes; the timezone label travels on the
owning time config. Every helper returns a new value.
"""

import calendar
from datetime import datetime, time, timedelta
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now().replace(microsecond=0)


class FixedClock:
    """Clock frozen at a given moment (tests, replays)."""

    def __init__(self, moment: datetime):
        self._moment = moment

    def now(self) -> datetime:
        return self._moment

    def advance(self, **kwargs) -> None:
        self._moment = self._moment + timedelta(**kwargs)


_default_clock: Clock = SystemClock()


def now() -> datetime:
    return _default_clock.now()


def set_clock(clock: Clock) -> Clock:
    """Install `clock` as the process-wide clock and return the previous one."""
    global _default_clock
    previous = _default_clock
    _default_clock = clock
    return previous


def resolve_now(value: Optional[datetime]) -> datetime:
    """Return `value` if given, else the current wall-clock time."""
    return value if value is not None else now()


def minutes_between(start: datetime, end: datetime) -> int:
    return int((end - start).total_seconds() // 60)


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def month_index(moment: datetime) -> int:
    """Months since year 0, for month-distance arithmetic."""
    return moment.year * 12 + (moment.month - 1)


def shift_months(moment: datetime, months: int, anchor_day: Optional[int] = None) -> datetime:
    """Move `moment` by whole months, clamping the day to the target month's last day.

    `anchor_day` is the day-of-month to aim for (defaults to moment.day), so a
    series anchored on the 31st returns to the 31st after a short month.
    """
    total = month_index(moment) + months
    year, month = divmod(total, 12)
    month += 1
    day = min(anchor_day or moment.day, last_day_of_month(year, month))
    return moment.replace(year=year, month=month, day=day)


def weekday_index(moment: datetime) -> int:
    """Weekday with Sunday = 0 ... Saturday = 6."""
    return (moment.weekday() + 1) % 7


def with_time_of(moment: datetime, reference: datetime) -> datetime:
    """`moment`'s date at `reference`'s time of day."""
    return datetime.combine(moment.date(), reference.time())


def start_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time(0, 0))


def end_of_day(moment: datetime) -> datetime:
    return datetime.combine(moment.date(), time(23, 59, 59, 999999))


def is_in_range(moment: datetime, start: datetime, end: datetime) -> bool:
    """Inclusive on both ends."""
    return start <= moment <= end
