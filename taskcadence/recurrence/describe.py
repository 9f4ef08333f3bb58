"""Human-readable summaries of recurrence rules."""

from __future__ import annotations

from typing import List

from taskcadence.models.recurrence import (
    WEEKDAY_NAMES,
    CustomRule,
    DailyRule,
    EndsAfterCount,
    EndsOnDate,
    MonthlyRule,
    NoRecurrence,
    NthWeekday,
    WeeklyRule,
    YearlyRule,
)

_ORDINALS = {1: "first", 2: "second", 3: "third", 4: "fourth", 5: "fifth", -1: "last"}


def _every(interval: int, unit: str) -> str:
    if interval == 1:
        return f"Every {unit}"
    return f"Every {interval} {unit}s"


def _nth(rule: NthWeekday) -> str:
    return f"the {_ORDINALS[rule.ordinal]} {WEEKDAY_NAMES[rule.weekday]}"


def describe_recurrence(rule) -> str:
    """Summarize a rule, e.g. 'Every 2 weeks on Mon, Wed, 10 times'."""
    if isinstance(rule, NoRecurrence):
        return "Does not repeat"

    parts: List[str] = []
    if isinstance(rule, DailyRule):
        parts.append(_every(rule.interval, "day"))
    elif isinstance(rule, WeeklyRule):
        text = _every(rule.interval, "week")
        if rule.weekdays:
            text += " on " + ", ".join(WEEKDAY_NAMES[d] for d in rule.weekdays)
        parts.append(text)
    elif isinstance(rule, MonthlyRule):
        text = _every(rule.interval, "month")
        targets = [str(d) for d in rule.month_days or []]
        targets += [_nth(n) for n in rule.nth_weekdays or []]
        if targets:
            text += " on " + ", ".join(targets)
        parts.append(text)
    elif isinstance(rule, YearlyRule):
        parts.append(_every(rule.interval, "year"))
    elif isinstance(rule, CustomRule):
        parts.append(_every(rule.interval, rule.unit.value))
    else:
        raise TypeError(f"Unsupported recurrence rule: {type(rule).__name__}")

    end = rule.end_condition
    if isinstance(end, EndsAfterCount):
        parts.append(f"{end.count} time" + ("" if end.count == 1 else "s"))
    elif isinstance(end, EndsOnDate):
        parts.append(f"until {end.until.strftime('%Y-%m-%d')}")
    return ", ".join(parts)
