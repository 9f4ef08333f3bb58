"""Task template data model for taskcadence."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from taskcadence.models.constants import (
    DEFAULT_ALLOW_RESCHEDULE,
    DEFAULT_CATEGORY,
    DEFAULT_DIFFICULTY,
    DEFAULT_MAX_DELAY_DAYS,
    DEFAULT_PRIORITY,
    MAX_DIFFICULTY,
    MAX_PRIORITY,
    MIN_DIFFICULTY,
    MIN_PRIORITY,
)
from taskcadence.models.recurrence import NoRecurrence, RecurrenceRule
from taskcadence.models.reminder import ReminderConfig


class TimeKind(str, Enum):
    """How a task occupies time."""
    ALL_DAY = "all_day"
    TIMED = "timed"
    TIME_RANGE = "time_range"


class TemplateStatus(str, Enum):
    """Template lifecycle status."""
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    ARCHIVED = "archived"


class TimeConfig(BaseModel):
    """When a template's occurrences happen."""

    kind: TimeKind = Field(TimeKind.TIMED, description="All-day, point-in-time or ranged task")
    base_start: Optional[datetime] = Field(None, description="Base start of the first occurrence")
    base_end: Optional[datetime] = Field(None, description="Base end (required for time ranges)")
    recurrence: RecurrenceRule = Field(default_factory=NoRecurrence)
    timezone: str = Field("UTC", description="Originating timezone label (carried opaquely)")

    def base_duration_minutes(self) -> Optional[int]:
        if self.base_start is None or self.base_end is None:
            return None
        return int((self.base_end - self.base_start).total_seconds() // 60)


class SchedulingPolicy(BaseModel):
    allow_reschedule: bool = DEFAULT_ALLOW_RESCHEDULE
    max_delay_days: Optional[int] = Field(DEFAULT_MAX_DELAY_DAYS, ge=0)
    skip_weekends: bool = False
    skip_holidays: bool = False
    working_hours_only: bool = False


class TemplateMetadata(BaseModel):
    category: str = DEFAULT_CATEGORY
    tags: List[str] = Field(default_factory=list)
    priority: int = Field(DEFAULT_PRIORITY, ge=MIN_PRIORITY, le=MAX_PRIORITY)
    difficulty: int = Field(DEFAULT_DIFFICULTY, ge=MIN_DIFFICULTY, le=MAX_DIFFICULTY)
    estimated_duration_min: Optional[int] = Field(None, description="Estimated duration in minutes")
    location: Optional[str] = None


class TemplateLifecycle(BaseModel):
    status: TemplateStatus = TemplateStatus.DRAFT
    created_at: datetime
    updated_at: datetime
    activated_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None


class TemplateStats(BaseModel):
    """Analytics counters maintained as instances are generated and completed."""

    total_instances: int = Field(0, ge=0)
    completed_instances: int = Field(0, ge=0)
    success_rate: float = Field(0.0, ge=0.0, le=1.0)
    last_instance_date: Optional[datetime] = None


class TaskTemplate(BaseModel):
    """Reusable definition of a (possibly repeating) task."""

    id: str = Field(..., description="Unique template identifier (UUID v4)")
    title: str = Field(..., description="Template title")
    description: Optional[str] = Field(None, description="Template description")
    time_config: TimeConfig
    reminder_config: ReminderConfig = Field(default_factory=ReminderConfig)
    scheduling_policy: SchedulingPolicy = Field(default_factory=SchedulingPolicy)
    metadata: TemplateMetadata = Field(default_factory=TemplateMetadata)
    key_result_links: List[str] = Field(default_factory=list, description="Opaque key-result ids")
    lifecycle: TemplateLifecycle
    stats: TemplateStats = Field(default_factory=TemplateStats)
    version: int = Field(1, ge=1)

    @property
    def status(self) -> TemplateStatus:
        return self.lifecycle.status
