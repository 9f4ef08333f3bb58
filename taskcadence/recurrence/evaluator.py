"""Evaluate recurrence rules: next occurrence and termination.

All functions are pure; the reference time is always passed in explicitly.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterator, List, Optional, Tuple

from taskcadence.timeutils import (
    last_day_of_month,
    month_index,
    shift_months,
    start_of_day,
    weekday_index,
    with_time_of,
)
from taskcadence.models.constants import MAX_GENERATION_ITERATIONS
from taskcadence.models.recurrence import (
    CustomRule,
    DailyRule,
    EndsAfterCount,
    EndsOnDate,
    MonthlyRule,
    NoRecurrence,
    NthWeekday,
    RecurrenceUnit,
    WeeklyRule,
    YearlyRule,
)

logger = logging.getLogger(__name__)

# Months scanned when looking for an explicit month-day / nth-weekday match
_MONTH_SCAN_LIMIT = 120


def _next_on_day_grid(base: datetime, from_time: datetime, step: timedelta, min_steps: int) -> datetime:
    """Earliest base + m*step (m >= min_steps) strictly after from_time."""
    if from_time < base:
        return base + step * min_steps
    m = max(min_steps, (from_time - base) // step + 1)
    return base + step * m


def _next_on_month_grid(base: datetime, from_time: datetime, months_step: int) -> datetime:
    """Earliest base shifted by m*months_step (m >= 1) strictly after from_time.

    The day-of-month is re-anchored on base for every candidate, so a series
    on the 31st lands on the last day of shorter months without drifting.
    """
    m = 1
    if from_time > base:
        m = max(1, (month_index(from_time) - month_index(base)) // months_step)
    candidate = shift_months(base, m * months_step, anchor_day=base.day)
    while candidate <= from_time:
        m += 1
        candidate = shift_months(base, m * months_step, anchor_day=base.day)
    return candidate


def _week_start(moment: datetime) -> datetime:
    """Midnight of the Sunday starting `moment`'s week."""
    return start_of_day(moment) - timedelta(days=weekday_index(moment))


def _next_weekly_on_weekdays(base: datetime, from_time: datetime, interval: int, weekdays: List[int]) -> datetime:
    """Earliest listed weekday strictly after from_time in an on-week of the series.

    On-weeks are the weeks a multiple of `interval` away from base's week.
    """
    base_week = _week_start(base)
    week = _week_start(max(base, from_time))
    offset = ((week - base_week).days // 7) % interval
    if offset:
        week += timedelta(weeks=interval - offset)
    # The second on-week considered lies entirely after from_time
    while True:
        for weekday in weekdays:
            candidate = with_time_of(week + timedelta(days=weekday), base)
            if candidate > from_time and candidate >= base:
                return candidate
        week += timedelta(weeks=interval)


def _nth_weekday_day(year: int, month: int, rule: NthWeekday) -> Optional[int]:
    last = last_day_of_month(year, month)
    matches = [
        day for day in range(1, last + 1)
        if weekday_index(datetime(year, month, day)) == rule.weekday
    ]
    if rule.ordinal == -1:
        return matches[-1]
    if rule.ordinal <= len(matches):
        return matches[rule.ordinal - 1]
    return None


def _days_in_month_for_rule(year: int, month: int, rule: MonthlyRule) -> List[int]:
    last = last_day_of_month(year, month)
    days = set()
    for day in rule.month_days or []:
        days.add(min(day, last))
    for nth in rule.nth_weekdays or []:
        day = _nth_weekday_day(year, month, nth)
        if day is not None:
            days.add(day)
    return sorted(days)


def _next_monthly_on_days(base: datetime, from_time: datetime, rule: MonthlyRule) -> Optional[datetime]:
    reference = max(base, from_time)
    step = (month_index(reference) - month_index(base)) // rule.interval
    for _ in range(_MONTH_SCAN_LIMIT):
        month_start = shift_months(base.replace(day=1), step * rule.interval)
        for day in _days_in_month_for_rule(month_start.year, month_start.month, rule):
            candidate = month_start.replace(day=day)
            if candidate > from_time and candidate >= base:
                return candidate
        step += 1
    return None


def _next_for_unit(unit: RecurrenceUnit, base: datetime, from_time: datetime, interval: int) -> datetime:
    if unit == RecurrenceUnit.DAY:
        return _next_on_day_grid(base, from_time, timedelta(days=interval), min_steps=0)
    if unit == RecurrenceUnit.WEEK:
        return _next_on_day_grid(base, from_time, timedelta(days=7 * interval), min_steps=1)
    if unit == RecurrenceUnit.MONTH:
        return _next_on_month_grid(base, from_time, interval)
    return _next_on_month_grid(base, from_time, 12 * interval)


def next_occurrence(rule, base: datetime, from_time: datetime) -> Optional[datetime]:
    """Compute the next occurrence of `rule` strictly after `from_time`.

    Args:
        rule: Any recurrence rule variant
        base: Base start of the series (carries the time of day)
        from_time: Reference moment; the result is always later than this

    Returns:
        The next occurrence, or None if the rule yields no further occurrence
    """
    if isinstance(rule, NoRecurrence):
        return base if base > from_time else None

    if isinstance(rule, DailyRule):
        return _next_for_unit(RecurrenceUnit.DAY, base, from_time, rule.interval)

    if isinstance(rule, WeeklyRule):
        if rule.weekdays:
            return _next_weekly_on_weekdays(base, from_time, rule.interval, rule.weekdays)
        return _next_for_unit(RecurrenceUnit.WEEK, base, from_time, rule.interval)

    if isinstance(rule, MonthlyRule):
        if rule.month_days or rule.nth_weekdays:
            return _next_monthly_on_days(base, from_time, rule)
        return _next_for_unit(RecurrenceUnit.MONTH, base, from_time, rule.interval)

    if isinstance(rule, YearlyRule):
        return _next_for_unit(RecurrenceUnit.YEAR, base, from_time, rule.interval)

    if isinstance(rule, CustomRule):
        return _next_for_unit(rule.unit, base, from_time, rule.interval)

    raise TypeError(f"Unsupported recurrence rule: {type(rule).__name__}")


def _grid(rule) -> Optional[Tuple[RecurrenceUnit, int]]:
    """(unit, interval) of a fixed-step rule; None for rules without a fixed step."""
    if isinstance(rule, DailyRule):
        return RecurrenceUnit.DAY, rule.interval
    if isinstance(rule, WeeklyRule) and not rule.weekdays:
        return RecurrenceUnit.WEEK, rule.interval
    if isinstance(rule, MonthlyRule) and not (rule.month_days or rule.nth_weekdays):
        return RecurrenceUnit.MONTH, rule.interval
    if isinstance(rule, YearlyRule):
        return RecurrenceUnit.YEAR, rule.interval
    if isinstance(rule, CustomRule):
        return rule.unit, rule.interval
    return None


def _grid_point(unit: RecurrenceUnit, base: datetime, interval: int, m: int) -> datetime:
    if unit == RecurrenceUnit.DAY:
        return base + timedelta(days=interval) * m
    if unit == RecurrenceUnit.WEEK:
        return base + timedelta(weeks=interval) * m
    months_step = interval * (12 if unit == RecurrenceUnit.YEAR else 1)
    return shift_months(base, m * months_step, anchor_day=base.day)


def _grid_steps_through(unit: RecurrenceUnit, base: datetime, interval: int, at: datetime) -> int:
    """Number of grid occurrences in (base, at]."""
    if at <= base:
        return 0
    if unit == RecurrenceUnit.DAY:
        return (at - base) // timedelta(days=interval)
    if unit == RecurrenceUnit.WEEK:
        return (at - base) // timedelta(weeks=interval)
    months_step = interval * (12 if unit == RecurrenceUnit.YEAR else 1)
    m = (month_index(at) - month_index(base)) // months_step
    if m > 0 and _grid_point(unit, base, interval, m) > at:
        m -= 1
    return m


def _skip_weekday_weeks(rule: WeeklyRule, base: datetime, at: datetime) -> Tuple[datetime, int]:
    """Skip the on-weeks that end before `at`'s week, counting their occurrences."""
    base_week = _week_start(base)
    weeks = max(0, (_week_start(at) - base_week).days // 7)
    complete = weeks // rule.interval + (1 if weeks % rule.interval else 0)
    if complete == 0:
        return base, 0
    in_base_week = sum(
        1 for weekday in rule.weekdays
        if with_time_of(base_week + timedelta(days=weekday), base) > base
    )
    last_week = base_week + timedelta(weeks=rule.interval * (complete - 1))
    last = with_time_of(last_week + timedelta(days=rule.weekdays[-1]), base)
    return max(last, base), in_base_week + (complete - 1) * len(rule.weekdays)


def skip_counted_occurrences(rule, base: datetime, at: datetime) -> Tuple[datetime, int]:
    """Jump over the occurrences up to `at` without evaluating them one by one.

    Returns a resume point (an occurrence at or before `at`, or base) and the
    number of occurrences in (base, resume point]. Rules without a fixed
    step resume from base.
    """
    grid = _grid(rule)
    if grid is not None:
        unit, interval = grid
        m = _grid_steps_through(unit, base, interval, at)
        return _grid_point(unit, base, interval, m), m
    if isinstance(rule, WeeklyRule) and rule.weekdays:
        return _skip_weekday_weeks(rule, base, at)
    return base, 0


def should_stop_generation(rule, candidate: datetime, count: int) -> bool:
    """Whether `candidate` (the occurrence after `count` earlier ones) ends the series."""
    end_condition = getattr(rule, "end_condition", None)
    if isinstance(end_condition, EndsOnDate):
        return candidate > end_condition.until
    if isinstance(end_condition, EndsAfterCount):
        return count >= end_condition.count
    return False


def is_exhausted(rule, base: datetime, at: datetime) -> bool:
    """Whether no occurrence of `rule` remains after `at`."""
    if isinstance(rule, NoRecurrence):
        return base <= at
    walk = OccurrenceWalk(rule, base, start_from=at)
    for occurrence in walk:
        if occurrence > at:
            return False
    return not walk.truncated


class OccurrenceWalk:
    """Iterate a rule's occurrences in order, honouring its end condition.

    Iteration is capped at `max_iterations` evaluator calls; hitting the cap is
    not an error, the walk simply ends and `truncated` is set.
    """

    def __init__(
        self,
        rule,
        base: datetime,
        start_from: Optional[datetime] = None,
        max_iterations: int = MAX_GENERATION_ITERATIONS,
    ):
        self.rule = rule
        self.base = base
        self.max_iterations = max_iterations
        self.truncated = False
        self.count = 0
        self.start_from = base
        if start_from is None:
            return
        if isinstance(getattr(rule, "end_condition", None), EndsAfterCount):
            # The count needs every occurrence since base, so skip them arithmetically
            self.start_from, self.count = skip_counted_occurrences(rule, base, start_from)
        else:
            self.start_from = max(base, start_from)

    def __iter__(self) -> Iterator[datetime]:
        current = self.start_from
        iterations = 0
        while True:
            if iterations >= self.max_iterations:
                self.truncated = True
                logger.warning(
                    f"Occurrence generation stopped at safety bound of {self.max_iterations} iterations "
                    f"({type(self.rule).__name__}, base {self.base.isoformat()})"
                )
                return
            iterations += 1
            candidate = next_occurrence(self.rule, self.base, current)
            if candidate is None:
                return
            if should_stop_generation(self.rule, candidate, self.count):
                return
            self.count += 1
            yield candidate
            current = candidate
