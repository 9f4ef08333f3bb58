"""Reminder models for taskcadence."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from taskcadence.models.constants import (
    DEFAULT_SNOOZE_INTERVAL_MINUTES,
    DEFAULT_SNOOZE_MAX_COUNT,
)


class AlertChannel(str, Enum):
    """Delivery channel for a reminder."""
    NOTIFICATION = "notification"
    EMAIL = "email"
    SOUND = "sound"


class AlertStatus(str, Enum):
    """Runtime status of a single alert."""
    PENDING = "pending"
    TRIGGERED = "triggered"
    DISMISSED = "dismissed"
    SNOOZED = "snoozed"


class RelativeTiming(BaseModel):
    type: Literal["relative"] = "relative"
    minutes_before: int = Field(..., ge=0, description="Minutes before the scheduled time")


class AbsoluteTiming(BaseModel):
    type: Literal["absolute"] = "absolute"
    at: datetime


AlertTiming = Annotated[
    Union[RelativeTiming, AbsoluteTiming],
    Field(discriminator="type"),
]


class AlertSpec(BaseModel):
    """One reminder rule attached to a template."""

    id: str = Field(..., description="Alert rule identifier")
    timing: AlertTiming
    channel: AlertChannel = AlertChannel.NOTIFICATION
    message: Optional[str] = None


class SnoozePolicy(BaseModel):
    enabled: bool = True
    interval_minutes: int = Field(DEFAULT_SNOOZE_INTERVAL_MINUTES, ge=1)
    max_count: int = Field(DEFAULT_SNOOZE_MAX_COUNT, ge=0)


class ReminderConfig(BaseModel):
    """Template-level reminder configuration."""

    enabled: bool = False
    alerts: List[AlertSpec] = Field(default_factory=list)
    snooze: SnoozePolicy = Field(default_factory=SnoozePolicy)


class SnoozeEntry(BaseModel):
    snoozed_at: datetime
    snooze_until: datetime
    reason: Optional[str] = None


class AlertState(BaseModel):
    """Runtime state of one alert on an instance."""

    id: str
    spec: AlertSpec
    status: AlertStatus = AlertStatus.PENDING
    scheduled_time: datetime
    triggered_at: Optional[datetime] = None
    dismissed_at: Optional[datetime] = None
    snooze_history: List[SnoozeEntry] = Field(default_factory=list)


class ReminderState(BaseModel):
    """All alerts of an instance plus the instance-wide snooze counter."""

    enabled: bool = True
    alerts: List[AlertState] = Field(default_factory=list)
    global_snooze_count: int = Field(0, ge=0)
    last_triggered_at: Optional[datetime] = None
