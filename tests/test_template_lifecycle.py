"""Tests for the task template lifecycle and validation."""

from datetime import datetime, timedelta

from taskcadence.engine import template_lifecycle as lifecycle
from taskcadence.models.reminder import ReminderConfig
from taskcadence.models.template import (
    TemplateMetadata,
    TemplateStats,
    TemplateStatus,
    TimeConfig,
    TimeKind,
)


class TestTemplateTransitions:
    """Test activate, pause and archive."""

    def test_activate_draft(self, make_template, now):
        draft = make_template(status=TemplateStatus.DRAFT)
        result = lifecycle.activate(draft, now=now)

        assert result.ok
        assert result.value.status == TemplateStatus.ACTIVE
        assert result.value.lifecycle.activated_at == now
        assert result.value.version == draft.version + 1

    def test_activate_active_rejected(self, make_template, now):
        assert not lifecycle.activate(make_template(), now=now).ok

    def test_activate_invalid_rejected(self, make_template, now):
        draft = make_template(status=TemplateStatus.DRAFT, title="")
        result = lifecycle.activate(draft, now=now)
        assert not result.ok
        assert "title" in result.reason

    def test_pause_and_resume(self, make_template, now):
        paused = lifecycle.pause(make_template(), now=now).value
        assert paused.status == TemplateStatus.PAUSED
        assert paused.lifecycle.paused_at == now
        assert not lifecycle.pause(paused, now=now).ok

        resumed = lifecycle.activate(paused, now=now).value
        assert resumed.status == TemplateStatus.ACTIVE

    def test_archive(self, make_template, now):
        archived = lifecycle.archive(make_template(), now=now).value
        assert archived.status == TemplateStatus.ARCHIVED
        assert archived.lifecycle.archived_at == now
        assert not lifecycle.archive(archived, now=now).ok
        assert not lifecycle.can_edit(archived)

    def test_only_active_generates(self, make_template):
        assert lifecycle.can_generate(make_template())
        assert not lifecycle.can_generate(make_template(status=TemplateStatus.PAUSED))
        assert not lifecycle.can_generate(make_template(status=TemplateStatus.DRAFT))

    def test_delete_blocked_by_instances(self, make_template):
        assert lifecycle.can_delete(make_template())
        assert not lifecycle.can_delete(make_template(stats=TemplateStats(total_instances=2)))

    def test_available_actions(self, make_template):
        actions = dict(lifecycle.template_available_actions(make_template()))
        assert not actions["activate"].allowed
        assert actions["pause"].allowed
        assert actions["archive"].allowed


class TestValidateConfiguration:
    """Test configuration validation."""

    def test_valid(self, make_template):
        result = lifecycle.validate_configuration(make_template())
        assert result.valid
        assert result.errors == []

    def test_collects_all_errors(self, make_template):
        start = datetime(2024, 1, 3, 9, 0)
        template = make_template(
            title="  ",
            base_start=start,
            base_end=start - timedelta(minutes=1),
            reminder_config=ReminderConfig(enabled=True),
            metadata=TemplateMetadata(estimated_duration_min=0),
        )
        result = lifecycle.validate_configuration(template)

        assert not result.valid
        fields = [e.field for e in result.errors]
        assert fields == ["title", "time_config", "reminder_config", "estimated_duration"]

    def test_time_range_needs_end(self, make_template):
        template = make_template(
            time_config=TimeConfig(kind=TimeKind.TIME_RANGE, base_start=datetime(2024, 1, 3, 9, 0))
        )
        result = lifecycle.validate_configuration(template)
        assert [e.field for e in result.errors] == ["time_config"]

    def test_missing_start(self, make_template):
        template = make_template(time_config=TimeConfig(kind=TimeKind.ALL_DAY))
        result = lifecycle.validate_configuration(template)
        assert not result.valid


class TestTemplateStats:
    """Test analytics counters."""

    def test_record_generated(self, make_template):
        last = datetime(2024, 1, 10, 9, 0)
        template = lifecycle.record_instances_generated(make_template(), 5, last)
        assert template.stats.total_instances == 5
        assert template.stats.last_instance_date == last
        assert template.stats.success_rate == 0.0

    def test_record_completed(self, make_template):
        template = lifecycle.record_instances_generated(make_template(), 4)
        template = lifecycle.record_instance_completed(template)
        assert template.stats.completed_instances == 1
        assert template.stats.success_rate == 0.25

    def test_completed_never_exceeds_total(self, make_template):
        template = lifecycle.record_instance_completed(make_template())
        assert template.stats.total_instances == 1
        assert template.stats.success_rate == 1.0
