"""Materialize templates into stored instances and keep both stores in step.

These are the orchestration entry points: each loads aggregates through the
repositories, runs the pure engine functions and persists the outcome in one
session.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from taskcadence.database.instance_repository import TaskInstanceRepository
from taskcadence.database.template_repository import TaskTemplateRepository
from taskcadence.engine import conflicts, instance_lifecycle, template_lifecycle
from taskcadence.engine.propagation import propagate_template_update
from taskcadence.models.instance import TaskInstance
from taskcadence.models.results import TransitionResult
from taskcadence.models.template import TaskTemplate
from taskcadence.recurrence.generator import generate_instances
from taskcadence.timeutils import resolve_now

logger = logging.getLogger(__name__)


class MaterializeResult:
    """Result of materializing one template."""

    def __init__(self):
        self.created: List[TaskInstance] = []
        self.skipped_conflicts: List[TaskInstance] = []
        self.truncated: bool = False
        self.reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


def materialize_template(
    db: Session,
    template_id: str,
    *,
    max_count: Optional[int] = None,
    window: Optional[Tuple[datetime, datetime]] = None,
    skip_conflicts: bool = False,
    now: Optional[datetime] = None,
) -> MaterializeResult:
    """Generate and store instances for an active template.

    With `skip_conflicts`, generated instances overlapping stored open
    instances are left out (they are reported in `skipped_conflicts`).
    """
    now = resolve_now(now)
    result = MaterializeResult()
    template_repo = TaskTemplateRepository(db)
    instance_repo = TaskInstanceRepository(db)

    template = template_repo.find_by_id(template_id)
    if template is None:
        result.reason = f"Template {template_id} not found"
        return result
    check = template_lifecycle.can_generate(template)
    if not check:
        result.reason = check.reason
        return result

    generated = generate_instances(template, max_count=max_count, window=window, now=now)
    result.truncated = generated.truncated
    if generated.skipped_reason:
        result.reason = generated.skipped_reason
        return result

    candidates = generated.instances
    if skip_conflicts:
        existing = instance_repo.find_open()
        keep = conflicts.filter_conflicting(candidates, existing)
        kept_ids = {i.id for i in keep}
        result.skipped_conflicts = [i for i in candidates if i.id not in kept_ids]
        candidates = keep

    if not candidates:
        return result

    result.created = instance_repo.save_all(candidates)
    last_date = max(i.time_config.scheduled_time for i in result.created)
    template_repo.save(template_lifecycle.record_instances_generated(template, len(result.created), last_date))
    logger.info(f"Materialized {len(result.created)} instances for template {template_id}")
    return result


def complete_instance(db: Session, instance_id: str, now: Optional[datetime] = None) -> TransitionResult:
    """Complete a stored instance and count it in its template's analytics."""
    instance_repo = TaskInstanceRepository(db)
    template_repo = TaskTemplateRepository(db)
    instance = instance_repo.find_by_id(instance_id)
    if instance is None:
        return TransitionResult.failure(f"Instance {instance_id} not found")

    outcome = instance_lifecycle.complete(instance, now=now)
    if not outcome.ok:
        return outcome
    saved = instance_repo.update(outcome.value)
    if saved.template_id:
        template = template_repo.find_by_id(saved.template_id)
        if template is not None:
            template_repo.save(template_lifecycle.record_instance_completed(template))
    return TransitionResult.success(saved)


def update_template(db: Session, updated: TaskTemplate, now: Optional[datetime] = None) -> TransitionResult:
    """Save an edited template and push the changed facets to its open instances."""
    now = resolve_now(now)
    template_repo = TaskTemplateRepository(db)
    instance_repo = TaskInstanceRepository(db)

    current = template_repo.find_by_id(updated.id)
    if current is None:
        return TransitionResult.failure(f"Template {updated.id} not found")
    check = template_lifecycle.can_edit(current)
    if not check:
        return TransitionResult.failure(check.reason)
    validation = template_lifecycle.validate_configuration(updated)
    if not validation.valid:
        reason = "; ".join(f"{e.field}: {e.message}" for e in validation.errors)
        return TransitionResult.failure(f"Invalid configuration: {reason}")

    lifecycle = updated.lifecycle.model_copy(update={"updated_at": now})
    to_save = updated.model_copy(update={
        "lifecycle": lifecycle,
        "version": current.version + 1,
        # Analytics are owned by the engine, not by the editor
        "stats": current.stats,
    })
    saved = template_repo.save(to_save)

    propagation = propagate_template_update(current, saved, instance_repo.find_by_template_id(saved.id), now=now)
    for warning in propagation.warnings:
        logger.info(warning)
    if propagation.updated_instances:
        instance_repo.save_all(propagation.updated_instances)
    return TransitionResult.success(saved)


def delete_template(db: Session, template_id: str, *, force: bool = False) -> TransitionResult:
    """Delete a template; with `force`, delete its instances first."""
    template_repo = TaskTemplateRepository(db)
    instance_repo = TaskInstanceRepository(db)

    template = template_repo.find_by_id(template_id)
    if template is None:
        return TransitionResult.failure(f"Template {template_id} not found")
    check = template_lifecycle.can_delete(template)
    if not check and not force:
        return TransitionResult.failure(check.reason)
    if force:
        removed = instance_repo.delete_by_template_id(template_id)
        logger.info(f"Force-deleted {removed} instances of template {template_id}")
    template_repo.delete(template_id)
    return TransitionResult.success(template)
