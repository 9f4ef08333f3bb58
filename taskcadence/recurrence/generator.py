"""Expand task templates into concrete task instances."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from taskcadence.timeutils import resolve_now
from taskcadence.models.constants import DEFAULT_MAX_INSTANCES
from taskcadence.models.instance import (
    InstanceEventType,
    InstanceTimeConfig,
    LifecycleEvent,
    TaskInstance,
)
from taskcadence.models.recurrence import NoRecurrence
from taskcadence.models.reminder import ReminderState
from taskcadence.models.template import TaskTemplate
from taskcadence.recurrence.evaluator import OccurrenceWalk
from taskcadence.recurrence.reminders import compute_reminder_schedule

logger = logging.getLogger(__name__)

_TICK = timedelta(microseconds=1)


class GenerationResult:
    """Result of a generation call."""

    def __init__(self):
        self.instances: List[TaskInstance] = []
        # Set when the safety bound ended generation before the rule did
        self.truncated: bool = False
        self.skipped_reason: Optional[str] = None


def build_reminder_state(
    template: TaskTemplate,
    scheduled_time: datetime,
    now: Optional[datetime] = None,
) -> ReminderState:
    config = template.reminder_config
    if not config.enabled:
        return ReminderState(enabled=False)
    return ReminderState(
        enabled=True,
        alerts=compute_reminder_schedule(scheduled_time, config.alerts, now=now),
    )


def create_instance_from_template(
    template: TaskTemplate,
    scheduled_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> TaskInstance:
    """Create one instance of `template`.

    Title, description, metadata and key-result links are copied as they are
    now; later template edits only reach the instance through propagation.

    Args:
        template: Source template
        scheduled_time: Occurrence time (defaults to the template's base start)
        end_time: Scheduled end (defaults to scheduled time + base duration)
        now: Reference time for dropping past reminders and stamping events

    Returns:
        New pending TaskInstance
    """
    now = resolve_now(now)
    time_config = template.time_config
    scheduled = scheduled_time or time_config.base_start
    if end_time is None:
        duration = time_config.base_duration_minutes()
        if duration is not None:
            end_time = scheduled + timedelta(minutes=duration)

    reminder_state = build_reminder_state(template, scheduled, now=now)
    events = [LifecycleEvent(event_type=InstanceEventType.CREATED, timestamp=now)]
    for alert in reminder_state.alerts:
        events.append(
            LifecycleEvent(
                event_type=InstanceEventType.REMINDER_SCHEDULED,
                timestamp=now,
                alert_id=alert.id,
                details={"scheduled_time": alert.scheduled_time.isoformat()},
            )
        )

    policy = template.scheduling_policy
    metadata = template.metadata
    return TaskInstance(
        id=str(uuid.uuid4()),
        template_id=template.id,
        title=template.title,
        description=template.description,
        time_config=InstanceTimeConfig(
            kind=time_config.kind,
            scheduled_time=scheduled,
            end_time=end_time,
            base_scheduled_time=scheduled,
            estimated_duration_min=metadata.estimated_duration_min,
            allow_reschedule=policy.allow_reschedule,
            max_delay_days=policy.max_delay_days,
            timezone=time_config.timezone,
        ),
        priority=metadata.priority,
        category=metadata.category,
        tags=list(metadata.tags),
        key_result_links=list(template.key_result_links),
        reminder_state=reminder_state,
        created_at=now,
        updated_at=now,
        events=events,
    )


def _occurrence_end(template: TaskTemplate, occurrence: datetime) -> Optional[datetime]:
    duration = template.time_config.base_duration_minutes()
    if duration is None:
        return None
    return occurrence + timedelta(minutes=duration)


def _generate_bounded(template: TaskTemplate, max_instances: int, now: datetime) -> GenerationResult:
    result = GenerationResult()
    time_config = template.time_config
    if time_config.base_start is None:
        result.skipped_reason = "Template has no base start time"
        logger.warning(f"Skipped generation for template {template.id}: {result.skipped_reason}")
        return result
    if max_instances <= 0:
        return result

    if isinstance(time_config.recurrence, NoRecurrence):
        result.instances.append(create_instance_from_template(template, now=now))
        return result

    walk = OccurrenceWalk(time_config.recurrence, time_config.base_start, start_from=now - _TICK)
    for occurrence in walk:
        if occurrence < now:
            continue
        result.instances.append(
            create_instance_from_template(
                template, occurrence, _occurrence_end(template, occurrence), now=now
            )
        )
        if len(result.instances) >= max_instances:
            break
    result.truncated = walk.truncated
    return result


def _generate_in_range(template: TaskTemplate, start: datetime, end: datetime, now: datetime) -> GenerationResult:
    result = GenerationResult()
    time_config = template.time_config
    if time_config.base_start is None:
        result.skipped_reason = "Template has no base start time"
        logger.warning(f"Skipped generation for template {template.id}: {result.skipped_reason}")
        return result
    if end < start:
        return result

    if isinstance(time_config.recurrence, NoRecurrence):
        if start <= time_config.base_start <= end:
            result.instances.append(create_instance_from_template(template, now=now))
        return result

    walk = OccurrenceWalk(time_config.recurrence, time_config.base_start, start_from=start - _TICK)
    for occurrence in walk:
        if occurrence > end:
            break
        if occurrence < start:
            continue
        result.instances.append(
            create_instance_from_template(
                template, occurrence, _occurrence_end(template, occurrence), now=now
            )
        )
    result.truncated = walk.truncated
    return result


def generate_bounded_count(
    template: TaskTemplate,
    max_instances: int = DEFAULT_MAX_INSTANCES,
    now: Optional[datetime] = None,
) -> List[TaskInstance]:
    """Generate up to `max_instances` instances occurring at or after `now`.

    A non-repeating template always yields exactly one instance.
    """
    return _generate_bounded(template, max_instances, resolve_now(now)).instances


def generate_in_range(
    template: TaskTemplate,
    start: datetime,
    end: datetime,
    now: Optional[datetime] = None,
) -> List[TaskInstance]:
    """Generate every instance scheduled within [start, end] (both inclusive)."""
    return _generate_in_range(template, start, end, resolve_now(now)).instances


def generate_instances(
    template: TaskTemplate,
    *,
    max_count: Optional[int] = None,
    window: Optional[Tuple[datetime, datetime]] = None,
    now: Optional[datetime] = None,
) -> GenerationResult:
    """Generate instances either by count or within a window.

    Exactly one of `max_count` / `window` may be given; with neither, the
    default instance count applies.
    """
    if max_count is not None and window is not None:
        raise ValueError("Pass either max_count or window, not both")
    now = resolve_now(now)
    if window is not None:
        return _generate_in_range(template, window[0], window[1], now)
    return _generate_bounded(template, max_count if max_count is not None else DEFAULT_MAX_INSTANCES, now)
