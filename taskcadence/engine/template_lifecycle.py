"""Task template lifecycle state machine and configuration validation.

Status flow::

    draft -> active -> paused -> archived
    paused | archived -> active
    draft -> archived
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from taskcadence.models.results import (
    FieldError,
    TransitionCheck,
    TransitionResult,
    ValidationResult,
)
from taskcadence.models.template import TaskTemplate, TemplateStatus, TimeKind
from taskcadence.timeutils import resolve_now

logger = logging.getLogger(__name__)


def _with_lifecycle(template: TaskTemplate, now: datetime, **changes) -> TaskTemplate:
    lifecycle = template.lifecycle.model_copy(update={**changes, "updated_at": now})
    return template.model_copy(update={"lifecycle": lifecycle, "version": template.version + 1})


def _rejected(template: TaskTemplate, action: str, check: TransitionCheck) -> TransitionResult:
    logger.debug(f"Rejected {action} on template {template.id}: {check.reason}")
    return TransitionResult.failure(check.reason)


def can_activate(template: TaskTemplate) -> TransitionCheck:
    if template.status == TemplateStatus.ACTIVE:
        return TransitionCheck.deny("Template is already active")
    return TransitionCheck.ok()


def can_pause(template: TaskTemplate) -> TransitionCheck:
    if template.status != TemplateStatus.ACTIVE:
        return TransitionCheck.deny("Only active templates can be paused")
    return TransitionCheck.ok()


def can_archive(template: TaskTemplate) -> TransitionCheck:
    if template.status == TemplateStatus.ARCHIVED:
        return TransitionCheck.deny("Template is already archived")
    return TransitionCheck.ok()


def can_edit(template: TaskTemplate) -> TransitionCheck:
    if template.status == TemplateStatus.ARCHIVED:
        return TransitionCheck.deny("Archived templates cannot be edited")
    return TransitionCheck.ok()


def can_delete(template: TaskTemplate) -> TransitionCheck:
    total = template.stats.total_instances
    if total > 0:
        return TransitionCheck.deny(f"Template has {total} instances; delete them first or force deletion")
    return TransitionCheck.ok()


def can_generate(template: TaskTemplate) -> TransitionCheck:
    if template.status != TemplateStatus.ACTIVE:
        return TransitionCheck.deny(f"Only active templates generate instances (current: {template.status.value})")
    return TransitionCheck.ok()


def validate_configuration(template: TaskTemplate) -> ValidationResult:
    """Check a template before activation or save.

    Returns every problem found as field/message pairs rather than stopping at
    the first one.
    """
    errors: List[FieldError] = []

    if not template.title or not template.title.strip():
        errors.append(FieldError(field="title", message="Title must not be empty"))

    time_config = template.time_config
    if time_config.base_start is None:
        errors.append(FieldError(field="time_config", message="Base start time is required"))
    if time_config.kind == TimeKind.TIME_RANGE and time_config.base_end is None:
        errors.append(FieldError(field="time_config", message="Time-range tasks need an end time"))
    if (
        time_config.base_start is not None
        and time_config.base_end is not None
        and time_config.base_end <= time_config.base_start
    ):
        errors.append(FieldError(field="time_config", message="End time must be after start time"))

    reminder_config = template.reminder_config
    if reminder_config.enabled and not reminder_config.alerts:
        errors.append(FieldError(field="reminder_config", message="Enabled reminders need at least one alert"))

    duration = template.metadata.estimated_duration_min
    if duration is not None and duration <= 0:
        errors.append(FieldError(field="estimated_duration", message="Estimated duration must be greater than 0"))

    return ValidationResult.from_errors(errors)


def activate(template: TaskTemplate, now: Optional[datetime] = None) -> TransitionResult:
    check = can_activate(template)
    if not check:
        return _rejected(template, "activate", check)
    validation = validate_configuration(template)
    if not validation.valid:
        reason = "; ".join(f"{e.field}: {e.message}" for e in validation.errors)
        return _rejected(template, "activate", TransitionCheck.deny(f"Invalid configuration: {reason}"))
    now = resolve_now(now)
    return TransitionResult.success(
        _with_lifecycle(template, now, status=TemplateStatus.ACTIVE, activated_at=now)
    )


def pause(template: TaskTemplate, now: Optional[datetime] = None) -> TransitionResult:
    check = can_pause(template)
    if not check:
        return _rejected(template, "pause", check)
    now = resolve_now(now)
    return TransitionResult.success(
        _with_lifecycle(template, now, status=TemplateStatus.PAUSED, paused_at=now)
    )


def archive(template: TaskTemplate, now: Optional[datetime] = None) -> TransitionResult:
    check = can_archive(template)
    if not check:
        return _rejected(template, "archive", check)
    now = resolve_now(now)
    return TransitionResult.success(
        _with_lifecycle(template, now, status=TemplateStatus.ARCHIVED, archived_at=now)
    )


def record_instances_generated(
    template: TaskTemplate,
    count: int,
    last_instance_date: Optional[datetime] = None,
) -> TaskTemplate:
    """Add `count` generated instances to the template's analytics."""
    stats = template.stats
    total = stats.total_instances + count
    updated = stats.model_copy(update={
        "total_instances": total,
        "success_rate": stats.completed_instances / total if total else 0.0,
        "last_instance_date": last_instance_date or stats.last_instance_date,
    })
    return template.model_copy(update={"stats": updated})


def record_instance_completed(template: TaskTemplate) -> TaskTemplate:
    stats = template.stats
    completed = stats.completed_instances + 1
    # Ad hoc instances may complete without having been counted as generated
    total = max(stats.total_instances, completed)
    updated = stats.model_copy(update={
        "completed_instances": completed,
        "total_instances": total,
        "success_rate": completed / total,
    })
    return template.model_copy(update={"stats": updated})


def template_available_actions(template: TaskTemplate) -> List[Tuple[str, TransitionCheck]]:
    return [
        ("activate", can_activate(template)),
        ("pause", can_pause(template)),
        ("archive", can_archive(template)),
        ("edit", can_edit(template)),
        ("delete", can_delete(template)),
    ]
