"""Task instance lifecycle state machine.

Instances are immutable snapshots. Every mutator re-checks its `can_*`
predicate and returns a TransitionResult holding either the new snapshot or
the reason the transition was rejected. Rejections are never raised.

Status flow::

    pending -> in_progress -> completed
    pending | in_progress -> cancelled
    completed -> in_progress          (undo)

`overdue` is derived from the clock (see `effective_status`), not stored.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from taskcadence.timeutils import minutes_between, resolve_now
from taskcadence.models.instance import (
    InstanceEventType,
    InstanceStatus,
    LifecycleEvent,
    TaskInstance,
)
from taskcadence.models.reminder import AlertState, AlertStatus, SnoozeEntry, SnoozePolicy
from taskcadence.models.results import (
    FieldError,
    TransitionCheck,
    TransitionResult,
    ValidationResult,
)
from taskcadence.models.template import TimeKind
from taskcadence.recurrence.reminders import alert_trigger_time

logger = logging.getLogger(__name__)


def _apply(
    instance: TaskInstance,
    now: datetime,
    event_type: InstanceEventType,
    updates: Dict[str, Any],
    alert_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> TaskInstance:
    event = LifecycleEvent(event_type=event_type, timestamp=now, alert_id=alert_id, details=details or {})
    return instance.model_copy(
        update={
            **updates,
            "events": [*instance.events, event],
            "updated_at": now,
            "version": instance.version + 1,
        }
    )


def _rejected(instance: TaskInstance, action: str, check: TransitionCheck) -> TransitionResult:
    logger.debug(f"Rejected {action} on instance {instance.id}: {check.reason}")
    return TransitionResult.failure(check.reason)


# Derived status

def is_overdue(instance: TaskInstance, now: Optional[datetime] = None) -> bool:
    """Pending or in-progress work whose scheduled end (or start) has passed."""
    if instance.status not in (InstanceStatus.PENDING, InstanceStatus.IN_PROGRESS, InstanceStatus.OVERDUE):
        return False
    due = instance.time_config.end_time or instance.time_config.scheduled_time
    return resolve_now(now) > due


def effective_status(instance: TaskInstance, now: Optional[datetime] = None) -> InstanceStatus:
    if is_overdue(instance, now):
        return InstanceStatus.OVERDUE
    if instance.status == InstanceStatus.OVERDUE:
        return InstanceStatus.PENDING
    return instance.status


# Status predicates

def can_start(instance: TaskInstance) -> TransitionCheck:
    if instance.status != InstanceStatus.PENDING:
        return TransitionCheck.deny(f"Only pending tasks can be started (current: {instance.status.value})")
    return TransitionCheck.ok()


def can_complete(instance: TaskInstance) -> TransitionCheck:
    if instance.status == InstanceStatus.COMPLETED:
        return TransitionCheck.deny("Task is already completed")
    if instance.status == InstanceStatus.CANCELLED:
        return TransitionCheck.deny("Cancelled tasks cannot be completed")
    return TransitionCheck.ok()


def can_cancel(instance: TaskInstance) -> TransitionCheck:
    if instance.status == InstanceStatus.COMPLETED:
        return TransitionCheck.deny("Completed tasks cannot be cancelled")
    if instance.status == InstanceStatus.CANCELLED:
        return TransitionCheck.deny("Task is already cancelled")
    return TransitionCheck.ok()


def can_undo_complete(instance: TaskInstance) -> TransitionCheck:
    if instance.status != InstanceStatus.COMPLETED:
        return TransitionCheck.deny("Only completed tasks can be undone")
    return TransitionCheck.ok()


def can_reschedule(instance: TaskInstance, new_time: Optional[datetime] = None) -> TransitionCheck:
    """Whether the instance may move; with `new_time`, also checks the delay window."""
    if instance.status == InstanceStatus.COMPLETED:
        return TransitionCheck.deny("Completed tasks cannot be rescheduled")
    if instance.status == InstanceStatus.CANCELLED:
        return TransitionCheck.deny("Cancelled tasks cannot be rescheduled")
    time_config = instance.time_config
    if not time_config.allow_reschedule:
        return TransitionCheck.deny("Rescheduling is not allowed for this task")
    if new_time is not None and time_config.max_delay_days is not None:
        latest = time_config.base_scheduled_time + timedelta(days=time_config.max_delay_days)
        if new_time > latest:
            return TransitionCheck.deny(f"Cannot delay more than {time_config.max_delay_days} days")
    return TransitionCheck.ok()


# Status mutators

def start(instance: TaskInstance, now: Optional[datetime] = None) -> TransitionResult:
    check = can_start(instance)
    if not check:
        return _rejected(instance, "start", check)
    now = resolve_now(now)
    return TransitionResult.success(
        _apply(instance, now, InstanceEventType.STARTED, {
            "status": InstanceStatus.IN_PROGRESS,
            "actual_start_time": now,
        })
    )


def complete(instance: TaskInstance, now: Optional[datetime] = None) -> TransitionResult:
    check = can_complete(instance)
    if not check:
        return _rejected(instance, "complete", check)
    now = resolve_now(now)
    duration = None
    if instance.actual_start_time is not None:
        duration = minutes_between(instance.actual_start_time, now)
    return TransitionResult.success(
        _apply(instance, now, InstanceEventType.COMPLETED, {
            "status": InstanceStatus.COMPLETED,
            "completed_at": now,
            "actual_end_time": now,
            "actual_duration_min": duration,
        })
    )


def cancel(instance: TaskInstance, now: Optional[datetime] = None, reason: Optional[str] = None) -> TransitionResult:
    check = can_cancel(instance)
    if not check:
        return _rejected(instance, "cancel", check)
    now = resolve_now(now)
    details = {"reason": reason} if reason else {}
    return TransitionResult.success(
        _apply(instance, now, InstanceEventType.CANCELLED, {
            "status": InstanceStatus.CANCELLED,
            "cancelled_at": now,
        }, details=details)
    )


def undo_complete(instance: TaskInstance, now: Optional[datetime] = None) -> TransitionResult:
    check = can_undo_complete(instance)
    if not check:
        return _rejected(instance, "undo_complete", check)
    now = resolve_now(now)
    return TransitionResult.success(
        _apply(instance, now, InstanceEventType.UNDO_COMPLETED, {
            "status": InstanceStatus.IN_PROGRESS,
            "completed_at": None,
            "actual_end_time": None,
            "actual_duration_min": None,
        })
    )


def reschedule(
    instance: TaskInstance,
    new_time: datetime,
    new_end_time: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Move an instance, keeping its duration unless `new_end_time` is given.

    Pending alerts are re-derived from the new scheduled time.
    """
    check = can_reschedule(instance, new_time)
    if not check:
        return _rejected(instance, "reschedule", check)
    if new_end_time is not None and new_end_time <= new_time:
        return _rejected(instance, "reschedule", TransitionCheck.deny("End time must be after start time"))
    now = resolve_now(now)
    old = instance.time_config
    if new_end_time is None and old.end_time is not None:
        new_end_time = new_time + (old.end_time - old.scheduled_time)

    alerts = [
        alert.model_copy(update={"scheduled_time": alert_trigger_time(new_time, alert.spec)})
        if alert.status == AlertStatus.PENDING else alert
        for alert in instance.reminder_state.alerts
    ]
    return TransitionResult.success(
        _apply(instance, now, InstanceEventType.RESCHEDULED, {
            "time_config": old.model_copy(update={"scheduled_time": new_time, "end_time": new_end_time}),
            "reminder_state": instance.reminder_state.model_copy(update={"alerts": alerts}),
        }, details={"from": old.scheduled_time.isoformat(), "to": new_time.isoformat()})
    )


# Reminder alerts

def find_alert(instance: TaskInstance, alert_id: str) -> Optional[AlertState]:
    for alert in instance.reminder_state.alerts:
        if alert.id == alert_id:
            return alert
    return None


def _alert_check(instance: TaskInstance, alert_id: str, allowed: Tuple[AlertStatus, ...], action: str) -> TransitionCheck:
    if instance.status == InstanceStatus.CANCELLED:
        return TransitionCheck.deny("Reminders of cancelled tasks cannot change")
    alert = find_alert(instance, alert_id)
    if alert is None:
        return TransitionCheck.deny(f"Alert {alert_id} not found")
    if alert.status not in allowed:
        return TransitionCheck.deny(f"Cannot {action} an alert that is {alert.status.value}")
    return TransitionCheck.ok()


def can_trigger_alert(instance: TaskInstance, alert_id: str) -> TransitionCheck:
    return _alert_check(instance, alert_id, (AlertStatus.PENDING, AlertStatus.SNOOZED), "trigger")


def can_dismiss_alert(instance: TaskInstance, alert_id: str) -> TransitionCheck:
    return _alert_check(instance, alert_id, (AlertStatus.TRIGGERED, AlertStatus.SNOOZED), "dismiss")


def can_snooze_alert(instance: TaskInstance, alert_id: str) -> TransitionCheck:
    return _alert_check(instance, alert_id, (AlertStatus.PENDING, AlertStatus.TRIGGERED), "snooze")


def _replace_alert(instance: TaskInstance, alert_id: str, **changes) -> List[AlertState]:
    return [
        alert.model_copy(update=changes) if alert.id == alert_id else alert
        for alert in instance.reminder_state.alerts
    ]


def trigger_alert(instance: TaskInstance, alert_id: str, now: Optional[datetime] = None) -> TransitionResult:
    check = can_trigger_alert(instance, alert_id)
    if not check:
        return _rejected(instance, "trigger_alert", check)
    now = resolve_now(now)
    alerts = _replace_alert(instance, alert_id, status=AlertStatus.TRIGGERED, triggered_at=now)
    state = instance.reminder_state.model_copy(update={"alerts": alerts, "last_triggered_at": now})
    return TransitionResult.success(
        _apply(instance, now, InstanceEventType.REMINDER_TRIGGERED, {"reminder_state": state}, alert_id=alert_id)
    )


def dismiss_alert(instance: TaskInstance, alert_id: str, now: Optional[datetime] = None) -> TransitionResult:
    check = can_dismiss_alert(instance, alert_id)
    if not check:
        return _rejected(instance, "dismiss_alert", check)
    now = resolve_now(now)
    alerts = _replace_alert(instance, alert_id, status=AlertStatus.DISMISSED, dismissed_at=now)
    state = instance.reminder_state.model_copy(update={"alerts": alerts})
    return TransitionResult.success(
        _apply(instance, now, InstanceEventType.REMINDER_DISMISSED, {"reminder_state": state}, alert_id=alert_id)
    )


def snooze_alert(
    instance: TaskInstance,
    alert_id: str,
    until: datetime,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> TransitionResult:
    """Snooze an alert until `until`.

    No cap is enforced here; callers compare `global_snooze_count` against
    their policy (see `snooze_limit_reached`).
    """
    check = can_snooze_alert(instance, alert_id)
    if not check:
        return _rejected(instance, "snooze_alert", check)
    now = resolve_now(now)
    if until <= now:
        return _rejected(instance, "snooze_alert", TransitionCheck.deny("Snooze time must be in the future"))
    alert = find_alert(instance, alert_id)
    entry = SnoozeEntry(snoozed_at=now, snooze_until=until, reason=reason)
    alerts = _replace_alert(
        instance,
        alert_id,
        status=AlertStatus.SNOOZED,
        scheduled_time=until,
        snooze_history=[*alert.snooze_history, entry],
    )
    state = instance.reminder_state.model_copy(update={
        "alerts": alerts,
        "global_snooze_count": instance.reminder_state.global_snooze_count + 1,
    })
    return TransitionResult.success(
        _apply(instance, now, InstanceEventType.REMINDER_SNOOZED, {"reminder_state": state},
               alert_id=alert_id, details={"until": until.isoformat(), "reason": reason})
    )


def snooze_limit_reached(instance: TaskInstance, policy: SnoozePolicy) -> bool:
    if not policy.enabled:
        return True
    return instance.reminder_state.global_snooze_count >= policy.max_count


def get_next_reminder(instance: TaskInstance) -> Optional[AlertState]:
    """Earliest pending or snoozed alert, if any."""
    if not instance.reminder_state.enabled:
        return None
    upcoming = [
        alert for alert in instance.reminder_state.alerts
        if alert.status in (AlertStatus.PENDING, AlertStatus.SNOOZED)
    ]
    if not upcoming:
        return None
    return min(upcoming, key=lambda a: a.scheduled_time)


def reminder_stats(instance: TaskInstance) -> Dict[str, int]:
    alerts = instance.reminder_state.alerts
    counts = {status.value: 0 for status in AlertStatus}
    for alert in alerts:
        counts[alert.status.value] += 1
    return {
        "total": len(alerts),
        **counts,
        "global_snooze_count": instance.reminder_state.global_snooze_count,
    }


# Queries

def available_actions(instance: TaskInstance) -> List[Tuple[str, TransitionCheck]]:
    return [
        ("start", can_start(instance)),
        ("complete", can_complete(instance)),
        ("cancel", can_cancel(instance)),
        ("reschedule", can_reschedule(instance)),
        ("undo_complete", can_undo_complete(instance)),
    ]


def validate_instance(instance: TaskInstance) -> ValidationResult:
    errors: List[FieldError] = []
    if not instance.title.strip():
        errors.append(FieldError(field="title", message="Title must not be empty"))
    time_config = instance.time_config
    if time_config.kind == TimeKind.TIME_RANGE and time_config.end_time is None:
        errors.append(FieldError(field="time_config", message="Time-range tasks need an end time"))
    if time_config.end_time is not None and time_config.end_time <= time_config.scheduled_time:
        errors.append(FieldError(field="time_config", message="End time must be after start time"))
    if instance.actual_end_time is not None and instance.status != InstanceStatus.COMPLETED:
        errors.append(FieldError(field="actual_end_time", message="Only completed tasks have an actual end time"))
    return ValidationResult.from_errors(errors)
