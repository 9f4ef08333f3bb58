"""Time-overlap conflict detection between task instances.

Results are advisory: callers decide whether to reject or accept an overlap.
The caller is responsible for passing a consistent snapshot of `existing`.
"""

from datetime import datetime, timedelta
from typing import List, Tuple

from taskcadence.models.constants import DEFAULT_CONFLICT_DURATION_MINUTES
from taskcadence.models.instance import TERMINAL_STATUSES, TaskInstance


def effective_interval(instance: TaskInstance) -> Tuple[datetime, datetime]:
    """[start, end) occupied by an instance.

    Uses the scheduled end when set, otherwise the estimated duration
    (60 minutes when unknown).
    """
    time_config = instance.time_config
    start = time_config.scheduled_time
    if time_config.end_time is not None:
        return start, time_config.end_time
    minutes = time_config.estimated_duration_min or DEFAULT_CONFLICT_DURATION_MINUTES
    return start, start + timedelta(minutes=minutes)


def has_time_overlap(first: TaskInstance, second: TaskInstance) -> bool:
    start1, end1 = effective_interval(first)
    start2, end2 = effective_interval(second)
    return start1 < end2 and start2 < end1


def find_conflicts(candidate: TaskInstance, existing: List[TaskInstance]) -> List[TaskInstance]:
    """Existing non-terminal instances whose time overlaps `candidate`."""
    if candidate.status in TERMINAL_STATUSES:
        return []
    return [
        other for other in existing
        if other.id != candidate.id
        and other.status not in TERMINAL_STATUSES
        and has_time_overlap(candidate, other)
    ]


def filter_conflicting(candidates: List[TaskInstance], existing: List[TaskInstance]) -> List[TaskInstance]:
    """Candidates that do not conflict with any of `existing`."""
    return [c for c in candidates if not find_conflicts(c, existing)]
