"""Derive reminder trigger times from alert specs."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from taskcadence.timeutils import resolve_now
from taskcadence.models.reminder import (
    AbsoluteTiming,
    AlertSpec,
    AlertState,
    AlertStatus,
    RelativeTiming,
)


def alert_trigger_time(scheduled_time: datetime, spec: AlertSpec) -> datetime:
    """Trigger time of one alert for a task scheduled at `scheduled_time`."""
    timing = spec.timing
    if isinstance(timing, RelativeTiming):
        return scheduled_time - timedelta(minutes=timing.minutes_before)
    if isinstance(timing, AbsoluteTiming):
        return timing.at
    raise TypeError(f"Unsupported alert timing: {type(timing).__name__}")


def compute_reminder_schedule(
    scheduled_time: datetime,
    alerts: List[AlertSpec],
    now: Optional[datetime] = None,
) -> List[AlertState]:
    """Build pending alert states for a task scheduled at `scheduled_time`.

    Alerts whose trigger time is at or before `now` are dropped (no retroactive
    reminders). The rest are returned in ascending trigger order.
    """
    now = resolve_now(now)
    states: List[AlertState] = []
    for spec in alerts:
        trigger = alert_trigger_time(scheduled_time, spec)
        if trigger <= now:
            continue
        states.append(
            AlertState(
                id=str(uuid.uuid4()),
                spec=spec,
                status=AlertStatus.PENDING,
                scheduled_time=trigger,
            )
        )
    states.sort(key=lambda s: s.scheduled_time)
    return states
