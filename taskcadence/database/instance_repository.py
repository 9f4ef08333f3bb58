"""Repository for TaskInstance database operations."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from taskcadence.database.models import TaskInstanceDB
from taskcadence.models.instance import TaskInstance

logger = logging.getLogger(__name__)


class TaskInstanceRepository:
    """Repository for TaskInstance database operations."""

    def __init__(self, db: Session):
        self.db = db

    def save(self, instance: TaskInstance) -> TaskInstance:
        """Insert or update a single instance."""
        return self.save_all([instance])[0]

    def save_all(self, instances: List[TaskInstance]) -> List[TaskInstance]:
        """Insert or update instances in one transaction."""
        rows: List[TaskInstanceDB] = []
        try:
            for instance in instances:
                row = self.db.get(TaskInstanceDB, instance.id)
                if row is None:
                    row = TaskInstanceDB.from_pydantic(instance)
                    self.db.add(row)
                else:
                    row.apply(instance)
                rows.append(row)
            self.db.commit()
            logger.debug(f"Saved {len(rows)} instances")
            return [row.to_pydantic() for row in rows]
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save {len(instances)} instances: {type(e).__name__}: {str(e)}")
            raise

    def find_by_id(self, instance_id: str) -> Optional[TaskInstance]:
        row = self.db.get(TaskInstanceDB, instance_id)
        return row.to_pydantic() if row else None

    def find_by_template_id(self, template_id: str) -> List[TaskInstance]:
        """Instances of a template ordered by scheduled time."""
        rows = (
            self.db.query(TaskInstanceDB)
            .filter(TaskInstanceDB.template_id == template_id)
            .order_by(TaskInstanceDB.scheduled_time)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def find_all(self) -> List[TaskInstance]:
        rows = self.db.query(TaskInstanceDB).order_by(TaskInstanceDB.scheduled_time).all()
        return [row.to_pydantic() for row in rows]

    def find_in_range(self, start: datetime, end: datetime) -> List[TaskInstance]:
        """Instances scheduled within [start, end]."""
        rows = (
            self.db.query(TaskInstanceDB)
            .filter(TaskInstanceDB.scheduled_time >= start, TaskInstanceDB.scheduled_time <= end)
            .order_by(TaskInstanceDB.scheduled_time)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def find_open(self) -> List[TaskInstance]:
        """Instances that are neither completed nor cancelled."""
        rows = (
            self.db.query(TaskInstanceDB)
            .filter(TaskInstanceDB.status.notin_(["completed", "cancelled"]))
            .order_by(TaskInstanceDB.scheduled_time)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def update(self, instance: TaskInstance) -> TaskInstance:
        """Update an existing instance."""
        row = self.db.get(TaskInstanceDB, instance.id)
        if row is None:
            raise ValueError(f"Instance {instance.id} not found")
        row.apply(instance)
        try:
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Updated instance {instance.id}: {instance.title[:50]}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update instance {instance.id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, instance_id: str) -> bool:
        row = self.db.get(TaskInstanceDB, instance_id)
        if row is None:
            return False
        try:
            self.db.delete(row)
            self.db.commit()
            logger.debug(f"Deleted instance {instance_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete instance {instance_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete_by_template_id(self, template_id: str) -> int:
        """Delete every instance of a template; returns the number removed."""
        try:
            affected = (
                self.db.query(TaskInstanceDB)
                .filter(TaskInstanceDB.template_id == template_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            logger.debug(f"Deleted {affected} instances of template {template_id}")
            return affected
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete instances of template {template_id}: {type(e).__name__}: {str(e)}")
            raise
