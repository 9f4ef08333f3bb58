"""Repository for TaskTemplate database operations."""

import logging
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from taskcadence.database.models import TaskTemplateDB
from taskcadence.models.template import TaskTemplate

logger = logging.getLogger(__name__)


class TaskTemplateRepository:
    """Repository for TaskTemplate database operations."""

    def __init__(self, db: Session):
        self.db = db

    def save(self, template: TaskTemplate) -> TaskTemplate:
        """Insert or update a template."""
        row = self.db.get(TaskTemplateDB, template.id)
        try:
            if row is None:
                row = TaskTemplateDB.from_pydantic(template)
                self.db.add(row)
            else:
                row.apply(template)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Saved template {template.id}: {template.title[:50]}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save template {template.id}: {type(e).__name__}: {str(e)}")
            raise

    def find_by_id(self, template_id: str) -> Optional[TaskTemplate]:
        row = self.db.get(TaskTemplateDB, template_id)
        return row.to_pydantic() if row else None

    def find_all(self) -> List[TaskTemplate]:
        """All templates, newest first."""
        rows = self.db.query(TaskTemplateDB).order_by(desc(TaskTemplateDB.created_at)).all()
        return [row.to_pydantic() for row in rows]

    def find_by_status(self, status: str) -> List[TaskTemplate]:
        rows = self.db.query(TaskTemplateDB).filter(TaskTemplateDB.status == status).all()
        return [row.to_pydantic() for row in rows]

    def delete(self, template_id: str) -> bool:
        row = self.db.get(TaskTemplateDB, template_id)
        if row is None:
            return False
        try:
            self.db.delete(row)
            self.db.commit()
            logger.debug(f"Deleted template {template_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete template {template_id}: {type(e).__name__}: {str(e)}")
            raise
