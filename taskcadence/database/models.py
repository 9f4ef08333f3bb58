"""SQLAlchemy database models for taskcadence.

Aggregates are stored as a JSON payload; the columns the stores filter and
order on are duplicated as indexed scalar columns.
"""

from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON

from taskcadence.database.database import Base
from taskcadence.models.instance import TaskInstance
from taskcadence.models.template import TaskTemplate


def enum_to_value(enum_obj) -> str:
    """Convert enum to string value (handles both enum and string)."""
    if hasattr(enum_obj, "value"):
        return enum_obj.value
    return str(enum_obj)


class TaskTemplateDB(Base):
    """Database model for TaskTemplate."""

    __tablename__ = "task_templates"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    status = Column(String, nullable=False, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    payload = Column(JSON, nullable=False)

    @classmethod
    def from_pydantic(cls, template: TaskTemplate) -> "TaskTemplateDB":
        row = cls(id=template.id)
        row.apply(template)
        return row

    def apply(self, template: TaskTemplate) -> None:
        self.title = template.title
        self.status = enum_to_value(template.status)
        self.version = template.version
        self.created_at = template.lifecycle.created_at
        self.updated_at = template.lifecycle.updated_at
        self.payload = template.model_dump(mode="json")

    def to_pydantic(self) -> TaskTemplate:
        return TaskTemplate.model_validate(self.payload)


class TaskInstanceDB(Base):
    """Database model for TaskInstance."""

    __tablename__ = "task_instances"

    id = Column(String, primary_key=True)
    template_id = Column(String, nullable=True, index=True)
    title = Column(String, nullable=False)
    status = Column(String, nullable=False, index=True)
    scheduled_time = Column(DateTime, nullable=False, index=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    payload = Column(JSON, nullable=False)

    @classmethod
    def from_pydantic(cls, instance: TaskInstance) -> "TaskInstanceDB":
        row = cls(id=instance.id)
        row.apply(instance)
        return row

    def apply(self, instance: TaskInstance) -> None:
        self.template_id = instance.template_id
        self.title = instance.title
        self.status = enum_to_value(instance.status)
        self.scheduled_time = instance.time_config.scheduled_time
        self.version = instance.version
        self.created_at = instance.created_at
        self.updated_at = instance.updated_at
        self.payload = instance.model_dump(mode="json")

    def to_pydantic(self) -> TaskInstance:
        return TaskInstance.model_validate(self.payload)
