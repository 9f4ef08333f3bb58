"""Pytest fixtures and configuration for taskcadence tests."""

import pytest
import uuid
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from taskcadence.database.database import Base, init_db
from taskcadence.database.instance_repository import TaskInstanceRepository
from taskcadence.database.template_repository import TaskTemplateRepository
from taskcadence.models.instance import InstanceTimeConfig, TaskInstance
from taskcadence.models.recurrence import NoRecurrence
from taskcadence.models.reminder import ReminderConfig
from taskcadence.models.template import (
    TaskTemplate,
    TemplateLifecycle,
    TemplateStatus,
    TimeConfig,
    TimeKind,
)


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"

# Tuesday 2024-01-02 08:00
REFERENCE_NOW = datetime(2024, 1, 2, 8, 0)


@pytest.fixture
def now():
    """Fixed wall-clock time injected into engine calls."""
    return REFERENCE_NOW


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    init_db(engine_override=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def template_repository(db_session: Session):
    return TaskTemplateRepository(db_session)


@pytest.fixture
def instance_repository(db_session: Session):
    return TaskInstanceRepository(db_session)


@pytest.fixture
def make_template(now):
    """Factory for templates: a one-off 09:00-10:00 task tomorrow unless overridden.

    Keyword arguments override top-level template fields; `recurrence`,
    `base_start`, `base_end`, `kind` and `status` are shortcuts into the
    nested configs.
    """
    def _make(
        recurrence=None,
        base_start=None,
        base_end=None,
        kind=TimeKind.TIME_RANGE,
        status=TemplateStatus.ACTIVE,
        **overrides,
    ):
        start = base_start or datetime(2024, 1, 3, 9, 0)
        end = base_end if base_end is not None else start + timedelta(hours=1)
        fields = {
            "id": str(uuid.uuid4()),
            "title": "Morning review",
            "description": "Review the day's plan",
            "time_config": TimeConfig(
                kind=kind,
                base_start=start,
                base_end=end,
                recurrence=recurrence or NoRecurrence(),
                timezone="Europe/Helsinki",
            ),
            "reminder_config": ReminderConfig(enabled=False),
            "lifecycle": TemplateLifecycle(status=status, created_at=now, updated_at=now),
        }
        fields.update(overrides)
        return TaskTemplate(**fields)

    return _make


@pytest.fixture
def make_instance(now):
    """Factory for ad hoc instances scheduled at 09:00 tomorrow unless overridden."""
    def _make(scheduled_time=None, end_time=None, **overrides):
        scheduled = scheduled_time or datetime(2024, 1, 3, 9, 0)
        time_overrides = overrides.pop("time_config_overrides", {})
        fields = {
            "id": str(uuid.uuid4()),
            "template_id": None,
            "title": "Write report",
            "time_config": InstanceTimeConfig(
                scheduled_time=scheduled,
                end_time=end_time,
                base_scheduled_time=scheduled,
                **time_overrides,
            ),
            "created_at": now,
            "updated_at": now,
        }
        fields.update(overrides)
        return TaskInstance(**fields)

    return _make
