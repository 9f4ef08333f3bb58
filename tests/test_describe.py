"""Tests for recurrence summaries."""

import pytest
from datetime import datetime

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
from taskcadence.recurrence.describe import describe_recurrence


@pytest.mark.parametrize(
    "rule, expected",
    [
        (NoRecurrence(), "Does not repeat"),
        (DailyRule(), "Every day"),
        (DailyRule(interval=3), "Every 3 days"),
        (WeeklyRule(interval=2, weekdays=[3, 1]), "Every 2 weeks on Mon, Wed"),
        (
            MonthlyRule(month_days=[15], nth_weekdays=[NthWeekday(ordinal=-1, weekday=5)]),
            "Every month on 15, the last Fri",
        ),
        (YearlyRule(), "Every year"),
        (CustomRule(unit=RecurrenceUnit.WEEK, interval=4), "Every 4 weeks"),
        (DailyRule(end_condition=EndsAfterCount(count=3)), "Every day, 3 times"),
        (DailyRule(end_condition=EndsAfterCount(count=1)), "Every day, 1 time"),
        (
            WeeklyRule(end_condition=EndsOnDate(until=datetime(2024, 6, 30))),
            "Every week, until 2024-06-30",
        ),
    ],
)
def test_describe_recurrence(rule, expected):
    assert describe_recurrence(rule) == expected


def test_describe_unknown_rule():
    with pytest.raises(TypeError):
        describe_recurrence(object())
