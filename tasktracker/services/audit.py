from typing import Optional, Union

from ..dao import TaskHistoryDAO
from ..errors import AuditFailure, PersistenceFailure
from ..models import HistoryAction, TaskHistory


class AuditRecorder:
    """Appends immutable task history entries.

    Every call writes exactly one new row; nothing is read back, merged or
    deduplicated. A failed write is raised as ``AuditFailure``.
    """

    def __init__(self, dao: TaskHistoryDAO):
        self.dao = dao

    def append(
        self,
        task_id: int,
        action: Union[HistoryAction, str],
        old_status: Optional[str],
        new_status: Optional[str],
        description: str,
    ) -> TaskHistory:
        action = HistoryAction(action)
        entry = TaskHistory(
            task_id=task_id,
            action=action.value,
            old_status=old_status,
            new_status=new_status,
            description=description,
        )
        try:
            return self.dao.create(entry)
        except PersistenceFailure as e:
            raise AuditFailure(
                f"Failed to record {action.value} history for task {task_id}",
                task_id=task_id,
                action=action.value,
            ) from e
