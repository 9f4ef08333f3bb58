"""Data models for taskcadence."""

from taskcadence.models.recurrence import (
    CustomRule,
    DailyRule,
    EndsAfterCount,
    EndsOnDate,
    MonthlyRule,
    NeverEnds,
    NoRecurrence,
    NthWeekday,
    RecurrenceUnit,
    WeeklyRule,
    YearlyRule,
)
from taskcadence.models.reminder import (
    AbsoluteTiming,
    AlertChannel,
    AlertSpec,
    AlertState,
    AlertStatus,
    ReminderConfig,
    ReminderState,
    RelativeTiming,
    SnoozeEntry,
    SnoozePolicy,
)
from taskcadence.models.template import (
    SchedulingPolicy,
    TaskTemplate,
    TemplateLifecycle,
    TemplateMetadata,
    TemplateStats,
    TemplateStatus,
    TimeConfig,
    TimeKind,
)
from taskcadence.models.instance import (
    InstanceEventType,
    InstanceStatus,
    InstanceTimeConfig,
    LifecycleEvent,
    TaskInstance,
)
from taskcadence.models.results import (
    FieldError,
    TransitionCheck,
    TransitionResult,
    ValidationResult,
)

__all__ = [
    "CustomRule",
    "DailyRule",
    "EndsAfterCount",
    "EndsOnDate",
    "MonthlyRule",
    "NeverEnds",
    "NoRecurrence",
    "NthWeekday",
    "RecurrenceUnit",
    "WeeklyRule",
    "YearlyRule",
    "AbsoluteTiming",
    "AlertChannel",
    "AlertSpec",
    "AlertState",
    "AlertStatus",
    "ReminderConfig",
    "ReminderState",
    "RelativeTiming",
    "SnoozeEntry",
    "SnoozePolicy",
    "SchedulingPolicy",
    "TaskTemplate",
    "TemplateLifecycle",
    "TemplateMetadata",
    "TemplateStats",
    "TemplateStatus",
    "TimeConfig",
    "TimeKind",
    "InstanceEventType",
    "InstanceStatus",
    "InstanceTimeConfig",
    "LifecycleEvent",
    "TaskInstance",
    "FieldError",
    "TransitionCheck",
    "TransitionResult",
    "ValidationResult",
]
