"""Propagate template edits onto instances that still reference the template.

Only the facets that changed are re-applied. Titles only move on instances
that have not started yet; the other facets reach every open instance.
Completed and cancelled instances are never touched.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from taskcadence.models.instance import (
    InstanceEventType,
    InstanceStatus,
    LifecycleEvent,
    TERMINAL_STATUSES,
    TaskInstance,
)
from taskcadence.models.reminder import AlertStatus
from taskcadence.models.template import TaskTemplate
from taskcadence.recurrence.generator import build_reminder_state
from taskcadence.recurrence.reminders import alert_trigger_time
from taskcadence.timeutils import resolve_now, with_time_of

logger = logging.getLogger(__name__)


class TemplateChanges:
    """Which facets differ between two versions of a template."""

    def __init__(self, old: TaskTemplate, new: TaskTemplate):
        self.title = old.title != new.title
        self.description = old.description != new.description
        self.time_config = (
            old.time_config != new.time_config
            or old.scheduling_policy != new.scheduling_policy
            or old.metadata.estimated_duration_min != new.metadata.estimated_duration_min
        )
        self.reminder_config = old.reminder_config != new.reminder_config

    @property
    def any(self) -> bool:
        return self.title or self.description or self.time_config or self.reminder_config

    def facets(self) -> List[str]:
        names = ["title", "description", "time_config", "reminder_config"]
        return [name for name in names if getattr(self, name)]


class PropagationResult:
    def __init__(self):
        self.affected_count: int = 0
        self.updated_instances: List[TaskInstance] = []
        self.warnings: List[str] = []


def classify_template_changes(old: TaskTemplate, new: TaskTemplate) -> TemplateChanges:
    return TemplateChanges(old, new)


def _apply_time_config(instance: TaskInstance, template: TaskTemplate) -> dict:
    """Move the instance onto the template's new time of day, keeping its date."""
    tc = template.time_config
    current = instance.time_config
    scheduled = current.scheduled_time
    base_scheduled = current.base_scheduled_time
    if tc.base_start is not None:
        scheduled = with_time_of(scheduled, tc.base_start)
        base_scheduled = with_time_of(base_scheduled, tc.base_start)
    duration = tc.base_duration_minutes()
    end_time = scheduled + timedelta(minutes=duration) if duration is not None else None

    policy = template.scheduling_policy
    time_config = current.model_copy(update={
        "kind": tc.kind,
        "scheduled_time": scheduled,
        "end_time": end_time,
        "base_scheduled_time": base_scheduled,
        "estimated_duration_min": template.metadata.estimated_duration_min,
        "allow_reschedule": policy.allow_reschedule,
        "max_delay_days": policy.max_delay_days,
        "timezone": tc.timezone,
    })
    alerts = [
        alert.model_copy(update={"scheduled_time": alert_trigger_time(scheduled, alert.spec)})
        if alert.status == AlertStatus.PENDING else alert
        for alert in instance.reminder_state.alerts
    ]
    return {
        "time_config": time_config,
        "reminder_state": instance.reminder_state.model_copy(update={"alerts": alerts}),
    }


def apply_template_changes(
    instance: TaskInstance,
    template: TaskTemplate,
    changes: TemplateChanges,
    now: Optional[datetime] = None,
) -> Optional[TaskInstance]:
    """Re-apply changed facets of `template` to one instance.

    Returns the updated instance, or None when nothing applies to it.
    """
    if instance.status in TERMINAL_STATUSES:
        return None
    now = resolve_now(now)
    updates: dict = {}
    applied: List[str] = []

    if changes.title and instance.status == InstanceStatus.PENDING:
        updates["title"] = template.title
        applied.append("title")
    if changes.description:
        updates["description"] = template.description
        applied.append("description")
    if changes.time_config:
        updates.update(_apply_time_config(instance, template))
        applied.append("time_config")
    if changes.reminder_config:
        scheduled = updates.get("time_config", instance.time_config).scheduled_time
        fresh = build_reminder_state(template, scheduled, now=now)
        updates["reminder_state"] = fresh.model_copy(update={
            "global_snooze_count": instance.reminder_state.global_snooze_count,
        })
        applied.append("reminder_config")

    if not applied:
        return None
    event = LifecycleEvent(
        event_type=InstanceEventType.TEMPLATE_PROPAGATED,
        timestamp=now,
        details={"facets": applied, "template_version": template.version},
    )
    return instance.model_copy(update={
        **updates,
        "events": [*instance.events, event],
        "updated_at": now,
        "version": instance.version + 1,
    })


def propagate_template_update(
    old: TaskTemplate,
    new: TaskTemplate,
    instances: List[TaskInstance],
    now: Optional[datetime] = None,
) -> PropagationResult:
    """Apply the diff between `old` and `new` to the template's open instances.

    Args:
        old: Template before the edit
        new: Template after the edit
        instances: Candidate instances (others' instances are ignored)
        now: Reference time for recomputed reminders and event stamps

    Returns:
        PropagationResult with the instances that actually changed
    """
    result = PropagationResult()
    changes = classify_template_changes(old, new)
    related = [
        i for i in instances
        if i.template_id == new.id and i.status not in TERMINAL_STATUSES
    ]
    result.affected_count = len(related)
    if not changes.any:
        return result

    if related:
        result.warnings.append(
            f"Template update affects {len(related)} open instances ({', '.join(changes.facets())})"
        )
    for instance in related:
        updated = apply_template_changes(instance, new, changes, now=now)
        if updated is not None:
            result.updated_instances.append(updated)
    logger.debug(f"Propagated template {new.id} changes to {len(result.updated_instances)} instances")
    return result
