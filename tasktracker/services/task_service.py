import logging
from enum import Enum
from typing import List, Optional, Type

from sqlmodel import Session

from ..dao import TaskDAO, TaskHistoryDAO
from ..errors import AuditFailure, NotFoundError, ValidationError
from ..models import HistoryAction, Task, TaskCategory, TaskHistory, TaskPriority, TaskStatus
from ..models.base import utcnow
from ..schemas.task import TaskCreate, TaskUpdate
from .audit import AuditRecorder

logger = logging.getLogger(__name__)

INITIAL_STATUS = TaskStatus.IN_PROGRESS.value
TERMINAL_STATUS = TaskStatus.DONE.value
TITLE_MAX_LENGTH = 255


def _accepted(enum_cls: Type[Enum]) -> List[str]:
    return [member.value for member in enum_cls]


def _normalise(value: Optional[str], enum_cls: Type[Enum], field: str) -> str:
    accepted = _accepted(enum_cls)
    if value is None or value.upper() not in accepted:
        raise ValidationError.not_in(field, accepted)
    return value.upper()


def validate_category(value: Optional[str]) -> str:
    return _normalise(value, TaskCategory, "category")


def validate_priority(value: Optional[str]) -> str:
    return _normalise(value, TaskPriority, "priority")


def validate_status(value: Optional[str]) -> str:
    return _normalise(value, TaskStatus, "status")


def validate_title(value: Optional[str]) -> str:
    if value is None or not value.strip():
        raise ValidationError("Title is required")
    if len(value) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters")
    return value


class TaskService:
    """Task lifecycle: validation, mutation and the audit trail around it.

    Each mutation commits the task first and only then attempts the history
    append (delete is the exception: its entry is written before the row
    goes away). A failed append is logged and otherwise ignored; it never
    changes the result of the mutation.
    """

    def __init__(self, db: Session, recorder: Optional[AuditRecorder] = None):
        self.tasks = TaskDAO(db)
        self.history = TaskHistoryDAO(db)
        self.recorder = recorder or AuditRecorder(self.history)

    # ---- reads ----

    def find_by_id(self, task_id: int) -> Optional[Task]:
        return self.tasks.find_by_id(task_id)

    def get(self, task_id: int) -> Task:
        task = self.tasks.find_by_id(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    def find_by_user_id(self, user_id: int) -> List[Task]:
        return self.tasks.find_by_user_id(user_id)

    def find_by_user_id_and_status(self, user_id: int, status: str) -> List[Task]:
        return self.tasks.find_by_user_id_and_status(user_id, validate_status(status))

    def find_all(self) -> List[Task]:
        return self.tasks.find_all()

    def get_history(self, task_id: int) -> List[TaskHistory]:
        """History entries for a task, newest first."""
        return self.history.find_by_task_id(task_id)

    # ---- mutations ----

    def create(self, data: TaskCreate) -> Task:
        if data.user_id is None:
            raise ValidationError("User ID is required")
        title = validate_title(data.title)
        category = validate_category(data.category)
        priority = validate_priority(data.priority)
        status = validate_status(data.status or INITIAL_STATUS)

        task = Task(
            user_id=data.user_id,
            title=title,
            description=data.description,
            category=category,
            priority=priority,
            status=status,
            due_date=data.due_date,
            completed_at=utcnow() if status == TERMINAL_STATUS else None,
        )
        created = self.tasks.create(task)
        logger.info("Created task %s for user %s", created.id, created.user_id)

        if self._record_history(
            created.id,
            HistoryAction.CREATED,
            None,
            created.status,
            f"Task created: {created.title}",
        ) is None:
            self.tasks.reload(created)
        return created

    def update(self, task_id: int, data: TaskUpdate) -> Task:
        """Replace the mutable fields of a task.

        Status is required, as on create but without a default. Moving into
        DONE stamps ``completed_at``; any non-DONE status clears it.
        """
        task = self.get(task_id)
        old_status = task.status

        title = validate_title(data.title)
        category = validate_category(data.category)
        priority = validate_priority(data.priority)
        new_status = validate_status(data.status)

        task.title = title
        task.description = data.description
        task.category = category
        task.priority = priority
        task.status = new_status
        task.due_date = data.due_date

        if new_status == TERMINAL_STATUS:
            if old_status != TERMINAL_STATUS or task.completed_at is None:
                task.completed_at = utcnow()
        else:
            task.completed_at = None

        updated = self.tasks.update(task)
        logger.info("Updated task %s (%s -> %s)", updated.id, old_status, new_status)

        action = HistoryAction.EDITED if old_status == new_status else HistoryAction.STATUS_CHANGED
        if self._record_history(
            updated.id,
            action,
            old_status,
            new_status,
            f"Task updated: {updated.title}",
        ) is None:
            self.tasks.reload(updated)
        return updated

    def mark_completed(self, task_id: int) -> Task:
        """Force DONE and refresh ``completed_at``, even if already done."""
        task = self.get(task_id)
        old_status = task.status

        task.status = TERMINAL_STATUS
        task.completed_at = utcnow()

        updated = self.tasks.update(task)
        logger.info("Completed task %s", updated.id)

        if self._record_history(
            updated.id,
            HistoryAction.COMPLETED,
            old_status,
            TERMINAL_STATUS,
            f"Task marked as completed: {updated.title}",
        ) is None:
            self.tasks.reload(updated)
        return updated

    def delete(self, task_id: int) -> None:
        task = self.get(task_id)

        # Written first so the entry captures the status the task died with.
        self._record_history(
            task.id,
            HistoryAction.DELETED,
            task.status,
            None,
            f"Task deleted: {task.title}",
        )

        self.tasks.delete(task_id)
        logger.info("Deleted task %s", task_id)

    def _record_history(
        self,
        task_id: int,
        action: HistoryAction,
        old_status: Optional[str],
        new_status: Optional[str],
        description: str,
    ) -> Optional[TaskHistory]:
        """Append a history entry, logging instead of raising on failure.

        Returns None when the append failed. The session has then been
        rolled back, which expires every row it holds.
        """
        try:
            return self.recorder.append(task_id, action, old_status, new_status, description)
        except AuditFailure as e:
            logger.error(
                "Audit append failed for task %s action=%s: %s",
                task_id,
                action.value,
                e.__cause__ or e,
                extra={"task_id": task_id, "audit_action": action.value},
            )
            return None
