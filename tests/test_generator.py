"""Tests for instance generation from templates."""

import pytest
from datetime import datetime, timedelta

from taskcadence.models.instance import InstanceEventType, InstanceStatus
from taskcadence.models.recurrence import DailyRule, EndsAfterCount, WeeklyRule
from taskcadence.models.reminder import AlertSpec, ReminderConfig, RelativeTiming
from taskcadence.models.template import SchedulingPolicy, TemplateMetadata, TimeConfig, TimeKind
from taskcadence.recurrence.generator import (
    create_instance_from_template,
    generate_bounded_count,
    generate_in_range,
    generate_instances,
)


MONDAY = datetime(2024, 1, 1, 9, 0)


def _reminders(*minutes):
    return ReminderConfig(
        enabled=True,
        alerts=[AlertSpec(id=f"m{m}", timing=RelativeTiming(minutes_before=m)) for m in minutes],
    )


class TestCreateInstanceFromTemplate:
    """Test copying template fields onto a new instance."""

    def test_copies_template_fields(self, make_template, now):
        template = make_template(
            metadata=TemplateMetadata(category="health", tags=["gym"], priority=4, estimated_duration_min=45),
            scheduling_policy=SchedulingPolicy(allow_reschedule=False, max_delay_days=2),
            key_result_links=["kr-1"],
        )
        instance = create_instance_from_template(template, now=now)

        assert instance.template_id == template.id
        assert instance.title == template.title
        assert instance.description == template.description
        assert instance.status == InstanceStatus.PENDING
        assert instance.priority == 4
        assert instance.category == "health"
        assert instance.tags == ["gym"]
        assert instance.key_result_links == ["kr-1"]
        assert instance.time_config.scheduled_time == template.time_config.base_start
        assert instance.time_config.base_scheduled_time == template.time_config.base_start
        assert instance.time_config.end_time == template.time_config.base_end
        assert instance.time_config.estimated_duration_min == 45
        assert instance.time_config.allow_reschedule is False
        assert instance.time_config.max_delay_days == 2
        assert instance.time_config.timezone == "Europe/Helsinki"
        assert instance.created_at == now
        assert instance.events[0].event_type == InstanceEventType.CREATED

    def test_reminders_scheduled_with_events(self, make_template, now):
        template = make_template(reminder_config=_reminders(30, 15))
        instance = create_instance_from_template(template, now=now)

        alerts = instance.reminder_state.alerts
        assert [a.scheduled_time for a in alerts] == [
            datetime(2024, 1, 3, 8, 30),
            datetime(2024, 1, 3, 8, 45),
        ]
        scheduled_events = [e for e in instance.events if e.event_type == InstanceEventType.REMINDER_SCHEDULED]
        assert {e.alert_id for e in scheduled_events} == {a.id for a in alerts}

    def test_disabled_reminders(self, make_template, now):
        instance = create_instance_from_template(make_template(), now=now)
        assert instance.reminder_state.enabled is False
        assert instance.reminder_state.alerts == []

    def test_instance_ids_are_unique(self, make_template, now):
        template = make_template()
        ids = {create_instance_from_template(template, now=now).id for _ in range(5)}
        assert len(ids) == 5


class TestGenerateBoundedCount:
    """Test count-bounded generation."""

    def test_weekly_on_weekdays_end_to_end(self, make_template, now):
        """A Mon/Wed/Fri series seen on Tuesday starts on Wednesday."""
        template = make_template(recurrence=WeeklyRule(weekdays=[1, 3, 5]), base_start=MONDAY)
        instances = generate_bounded_count(template, max_instances=6, now=now)

        assert [i.scheduled_time for i in instances] == [
            datetime(2024, 1, 3, 9, 0),
            datetime(2024, 1, 5, 9, 0),
            datetime(2024, 1, 8, 9, 0),
            datetime(2024, 1, 10, 9, 0),
            datetime(2024, 1, 12, 9, 0),
            datetime(2024, 1, 15, 9, 0),
        ]
        assert [i.scheduled_time.strftime("%a") for i in instances] == ["Wed", "Fri", "Mon", "Wed", "Fri", "Mon"]

    def test_non_repeating_yields_one(self, make_template, now):
        instances = generate_bounded_count(make_template(), max_instances=10, now=now)
        assert len(instances) == 1

    def test_never_more_than_max(self, make_template, now):
        template = make_template(recurrence=DailyRule(), base_start=MONDAY)
        instances = generate_bounded_count(template, max_instances=7, now=now)
        assert len(instances) == 7

    def test_skips_past_occurrences(self, make_template, now):
        template = make_template(recurrence=DailyRule(), base_start=datetime(2023, 12, 25, 9, 0))
        instances = generate_bounded_count(template, max_instances=3, now=now)

        assert [i.scheduled_time for i in instances] == [
            datetime(2024, 1, 2, 9, 0),
            datetime(2024, 1, 3, 9, 0),
            datetime(2024, 1, 4, 9, 0),
        ]
        assert all(i.scheduled_time >= now for i in instances)

    def test_end_time_keeps_base_duration(self, make_template, now):
        template = make_template(
            recurrence=DailyRule(),
            base_start=MONDAY,
            base_end=MONDAY + timedelta(minutes=90),
        )
        for instance in generate_bounded_count(template, max_instances=3, now=now):
            assert instance.time_config.end_time - instance.scheduled_time == timedelta(minutes=90)

    def test_after_count_limits_generation(self, make_template, now):
        rule = DailyRule(end_condition=EndsAfterCount(count=4))
        template = make_template(recurrence=rule, base_start=MONDAY)
        instances = generate_bounded_count(template, max_instances=10, now=now)
        # Jan 2..5 are the four occurrences after the base
        assert len(instances) == 4

    def test_past_alerts_dropped_per_instance(self, make_template, now):
        template = make_template(recurrence=DailyRule(), base_start=MONDAY, reminder_config=_reminders(90))
        first, second = generate_bounded_count(template, max_instances=2, now=now)

        assert first.reminder_state.alerts == []
        assert len(second.reminder_state.alerts) == 1

    def test_includes_occurrence_later_today(self, make_template):
        """On Wednesday morning, Wednesday's 09:00 occurrence is still upcoming."""
        template = make_template(recurrence=WeeklyRule(weekdays=[1, 3, 5]), base_start=MONDAY)
        instances = generate_bounded_count(template, max_instances=2, now=datetime(2024, 1, 3, 7, 0))
        assert [i.scheduled_time for i in instances] == [
            datetime(2024, 1, 3, 9, 0),
            datetime(2024, 1, 5, 9, 0),
        ]

    def test_includes_occurrence_exactly_at_now(self, make_template):
        template = make_template(recurrence=WeeklyRule(weekdays=[1, 3, 5]), base_start=MONDAY)
        now = datetime(2024, 1, 5, 9, 0)
        instances = generate_bounded_count(template, max_instances=1, now=now)
        assert instances[0].scheduled_time == now

    def test_after_count_with_long_history(self, make_template, now):
        """A series with thousands of past occurrences still yields its remaining ones."""
        rule = DailyRule(end_condition=EndsAfterCount(count=2000))
        template = make_template(recurrence=rule, base_start=datetime(2021, 1, 1, 9, 0))
        instances = generate_bounded_count(template, max_instances=5, now=now)

        assert [i.scheduled_time for i in instances] == [datetime(2024, 1, d, 9, 0) for d in range(2, 7)]

    def test_exhausted_count_yields_nothing(self, make_template, now):
        rule = DailyRule(end_condition=EndsAfterCount(count=500))
        template = make_template(recurrence=rule, base_start=datetime(2021, 1, 1, 9, 0))
        result = generate_instances(template, max_count=5, now=now)

        assert result.instances == []
        assert result.truncated is False

    def test_zero_max_instances(self, make_template, now):
        template = make_template(recurrence=DailyRule(), base_start=MONDAY)
        assert generate_bounded_count(template, max_instances=0, now=now) == []


class TestGenerateInRange:
    """Test window-bounded generation."""

    def test_range_is_inclusive(self, make_template, now):
        template = make_template(recurrence=DailyRule(), base_start=MONDAY)
        instances = generate_in_range(
            template, datetime(2024, 1, 3, 9, 0), datetime(2024, 1, 5, 9, 0), now=now
        )
        assert [i.scheduled_time for i in instances] == [
            datetime(2024, 1, 3, 9, 0),
            datetime(2024, 1, 4, 9, 0),
            datetime(2024, 1, 5, 9, 0),
        ]

    def test_weekly_on_weekdays_includes_range_start(self, make_template, now):
        template = make_template(recurrence=WeeklyRule(weekdays=[1, 3, 5]), base_start=MONDAY)
        instances = generate_in_range(
            template, datetime(2024, 1, 3, 9, 0), datetime(2024, 1, 5, 9, 0), now=now
        )
        assert [i.scheduled_time for i in instances] == [
            datetime(2024, 1, 3, 9, 0),
            datetime(2024, 1, 5, 9, 0),
        ]

    def test_every_other_week_consistent_across_windows(self, make_template, now):
        """Materializing in successive windows never lands on off-weeks."""
        template = make_template(recurrence=WeeklyRule(interval=2, weekdays=[1, 3]), base_start=MONDAY)
        whole = generate_in_range(template, datetime(2024, 1, 1), datetime(2024, 1, 31, 23, 59), now=now)
        later = generate_in_range(template, datetime(2024, 1, 9), datetime(2024, 1, 31, 23, 59), now=now)

        whole_times = [i.scheduled_time for i in whole]
        assert [i.scheduled_time for i in later] == [t for t in whole_times if t >= datetime(2024, 1, 9)]
        assert all(t.isocalendar()[1] % 2 == 1 for t in whole_times)

    def test_all_instances_within_range(self, make_template, now):
        template = make_template(recurrence=WeeklyRule(weekdays=[0, 2, 4, 6]), base_start=MONDAY)
        start, end = datetime(2024, 2, 1), datetime(2024, 2, 29, 23, 59)
        instances = generate_in_range(template, start, end, now=now)

        assert instances
        assert all(start <= i.scheduled_time <= end for i in instances)

    def test_non_repeating_inside_range(self, make_template, now):
        template = make_template()
        instances = generate_in_range(template, datetime(2024, 1, 3), datetime(2024, 1, 4), now=now)
        assert len(instances) == 1

    def test_non_repeating_outside_range(self, make_template, now):
        template = make_template()
        instances = generate_in_range(template, datetime(2024, 1, 4), datetime(2024, 1, 5), now=now)
        assert instances == []

    def test_reversed_range_is_empty(self, make_template, now):
        template = make_template(recurrence=DailyRule(), base_start=MONDAY)
        assert generate_in_range(template, datetime(2024, 2, 1), datetime(2024, 1, 1), now=now) == []


class TestGenerateInstances:
    """Test the combined entry point."""

    def test_rejects_both_bounds(self, make_template, now):
        with pytest.raises(ValueError):
            generate_instances(
                make_template(), max_count=3, window=(datetime(2024, 1, 1), datetime(2024, 2, 1)), now=now
            )

    def test_window(self, make_template, now):
        template = make_template(recurrence=DailyRule(), base_start=MONDAY)
        result = generate_instances(template, window=(datetime(2024, 1, 2), datetime(2024, 1, 4, 23, 0)), now=now)
        assert len(result.instances) == 3
        assert result.truncated is False

    def test_default_count(self, make_template, now):
        template = make_template(recurrence=DailyRule(), base_start=MONDAY)
        result = generate_instances(template, now=now)
        assert len(result.instances) == 100

    def test_missing_base_start_is_skipped(self, make_template, now):
        template = make_template(time_config=TimeConfig(kind=TimeKind.ALL_DAY, recurrence=DailyRule()))
        result = generate_instances(template, max_count=5, now=now)

        assert result.instances == []
        assert result.skipped_reason is not None

    def test_long_window_is_truncated(self, make_template, now):
        template = make_template(recurrence=DailyRule(), base_start=MONDAY)
        result = generate_instances(template, window=(MONDAY, datetime(2030, 1, 1)), now=now)

        assert len(result.instances) == 1000
        assert result.truncated is True
