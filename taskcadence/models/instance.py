"""Task instance data model for taskcadence."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from taskcadence.models.constants import (
    DEFAULT_CATEGORY,
    DEFAULT_PRIORITY,
    MAX_PRIORITY,
    MIN_PRIORITY,
)
from taskcadence.models.reminder import ReminderState
from taskcadence.models.template import TimeKind


class InstanceStatus(str, Enum):
    """Task instance status enumeration."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    OVERDUE = "overdue"  # Derived only; never stored by a transition


TERMINAL_STATUSES = (InstanceStatus.COMPLETED, InstanceStatus.CANCELLED)


class InstanceEventType(str, Enum):
    CREATED = "created"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    UNDO_COMPLETED = "undo_completed"
    RESCHEDULED = "rescheduled"
    REMINDER_SCHEDULED = "reminder_scheduled"
    REMINDER_TRIGGERED = "reminder_triggered"
    REMINDER_DISMISSED = "reminder_dismissed"
    REMINDER_SNOOZED = "reminder_snoozed"
    TEMPLATE_PROPAGATED = "template_propagated"


class LifecycleEvent(BaseModel):
    event_type: InstanceEventType
    timestamp: datetime
    alert_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class InstanceTimeConfig(BaseModel):
    kind: TimeKind = TimeKind.TIMED
    scheduled_time: datetime = Field(..., description="When the instance is scheduled to start")
    end_time: Optional[datetime] = Field(None, description="Scheduled end, if known")
    base_scheduled_time: datetime = Field(..., description="Originally generated time; reschedule anchor")
    estimated_duration_min: Optional[int] = None
    allow_reschedule: bool = True
    max_delay_days: Optional[int] = Field(None, ge=0)
    timezone: str = "UTC"


class TaskInstance(BaseModel):
    """One concrete, schedulable occurrence derived from a template."""

    id: str = Field(..., description="Unique instance identifier (UUID v4)")
    template_id: Optional[str] = Field(None, description="Originating template (None for ad hoc instances)")
    title: str
    description: Optional[str] = None
    time_config: InstanceTimeConfig
    status: InstanceStatus = InstanceStatus.PENDING
    priority: int = Field(DEFAULT_PRIORITY, ge=MIN_PRIORITY, le=MAX_PRIORITY)
    category: str = DEFAULT_CATEGORY
    tags: List[str] = Field(default_factory=list)
    key_result_links: List[str] = Field(default_factory=list)
    reminder_state: ReminderState = Field(default_factory=ReminderState)
    created_at: datetime
    updated_at: datetime
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    actual_duration_min: Optional[int] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    events: List[LifecycleEvent] = Field(default_factory=list)
    version: int = Field(1, ge=1)

    @property
    def scheduled_time(self) -> datetime:
        return self.time_config.scheduled_time
