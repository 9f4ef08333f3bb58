"""Lifecycle, conflict and propagation engine for taskcadence."""

from taskcadence.engine.conflicts import effective_interval, filter_conflicting, find_conflicts, has_time_overlap
from taskcadence.engine.instance_lifecycle import (
    available_actions,
    can_cancel,
    can_complete,
    can_dismiss_alert,
    can_reschedule,
    can_snooze_alert,
    can_start,
    can_trigger_alert,
    can_undo_complete,
    cancel,
    complete,
    dismiss_alert,
    effective_status,
    get_next_reminder,
    is_overdue,
    reminder_stats,
    reschedule,
    snooze_alert,
    snooze_limit_reached,
    start,
    trigger_alert,
    undo_complete,
    validate_instance,
)
from taskcadence.engine.template_lifecycle import (
    activate,
    archive,
    can_activate,
    can_archive,
    can_delete,
    can_edit,
    can_generate,
    can_pause,
    pause,
    record_instance_completed,
    record_instances_generated,
    template_available_actions,
    validate_configuration,
)
from taskcadence.engine.propagation import (
    PropagationResult,
    TemplateChanges,
    classify_template_changes,
    propagate_template_update,
)

# Public alias matching the orchestration-facing name
detect_conflicts = find_conflicts

__all__ = [
    "effective_interval",
    "filter_conflicting",
    "find_conflicts",
    "detect_conflicts",
    "has_time_overlap",
    "available_actions",
    "can_cancel",
    "can_complete",
    "can_dismiss_alert",
    "can_reschedule",
    "can_snooze_alert",
    "can_start",
    "can_trigger_alert",
    "can_undo_complete",
    "cancel",
    "complete",
    "dismiss_alert",
    "effective_status",
    "get_next_reminder",
    "is_overdue",
    "reminder_stats",
    "reschedule",
    "snooze_alert",
    "snooze_limit_reached",
    "start",
    "trigger_alert",
    "undo_complete",
    "validate_instance",
    "activate",
    "archive",
    "can_activate",
    "can_archive",
    "can_delete",
    "can_edit",
    "can_generate",
    "can_pause",
    "pause",
    "record_instance_completed",
    "record_instances_generated",
    "template_available_actions",
    "validate_configuration",
    "PropagationResult",
    "TemplateChanges",
    "classify_template_changes",
    "propagate_template_update",
]
