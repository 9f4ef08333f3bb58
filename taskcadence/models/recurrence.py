"""Recurrence models for taskcadence.

Canonical internal representation for repeating task templates. Each rule
variant is its own model so that the fields a variant needs are always present;
the `type` field discriminates between them.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


# Weekday indices: 0 = Sunday ... 6 = Saturday
WEEKDAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


class RecurrenceUnit(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


class NeverEnds(BaseModel):
    type: Literal["never"] = "never"


class EndsOnDate(BaseModel):
    type: Literal["until_date"] = "until_date"
    until: datetime


class EndsAfterCount(BaseModel):
    type: Literal["after_count"] = "after_count"
    count: int = Field(..., ge=1, description="Stop after this many occurrences")


EndCondition = Annotated[
    Union[NeverEnds, EndsOnDate, EndsAfterCount],
    Field(discriminator="type"),
]


def _dedupe_sorted(values: Optional[List[int]]) -> Optional[List[int]]:
    if values is None:
        return None
    return sorted(set(values))


class NthWeekday(BaseModel):
    """'The Nth <weekday> of the month'; ordinal -1 means the last one."""

    ordinal: int = Field(..., ge=-1, le=5)
    weekday: int = Field(..., ge=0, le=6)

    @field_validator("ordinal")
    @classmethod
    def _validate_ordinal(cls, v):
        if v == 0:
            raise ValueError("ordinal must be 1..5 or -1")
        return v


class _RepeatingRule(BaseModel):
    interval: int = Field(1, ge=1, description="Every N units (days/weeks/months/years)")
    end_condition: EndCondition = Field(default_factory=NeverEnds)


class NoRecurrence(BaseModel):
    type: Literal["none"] = "none"


class DailyRule(_RepeatingRule):
    type: Literal["daily"] = "daily"


class WeeklyRule(_RepeatingRule):
    type: Literal["weekly"] = "weekly"
    weekdays: Optional[List[Annotated[int, Field(ge=0, le=6)]]] = Field(
        None, description="Weekday indices (0=Sunday) on which it occurs"
    )

    @field_validator("weekdays")
    @classmethod
    def _validate_weekdays(cls, v):
        return _dedupe_sorted(v)


class MonthlyRule(_RepeatingRule):
    type: Literal["monthly"] = "monthly"
    month_days: Optional[List[Annotated[int, Field(ge=1, le=31)]]] = Field(
        None, description="Days of month; clamped to the month's last day"
    )
    nth_weekdays: Optional[List[NthWeekday]] = None

    @field_validator("month_days")
    @classmethod
    def _validate_month_days(cls, v):
        return _dedupe_sorted(v)


class YearlyRule(_RepeatingRule):
    type: Literal["yearly"] = "yearly"


class CustomRule(_RepeatingRule):
    """Every `interval` units of an arbitrary unit."""

    type: Literal["custom"] = "custom"
    unit: RecurrenceUnit = RecurrenceUnit.DAY


RecurrenceRule = Annotated[
    Union[NoRecurrence, DailyRule, WeeklyRule, MonthlyRule, YearlyRule, CustomRule],
    Field(discriminator="type"),
]
