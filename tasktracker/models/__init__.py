from .task import Task, TaskCategory, TaskPriority, TaskStatus
from .task_history import HistoryAction, TaskHistory
from .user import User

# Export all models for easy importing
__all__ = [
    "Task",
    "TaskCategory",
    "TaskPriority",
    "TaskStatus",
    "TaskHistory",
    "HistoryAction",
    "User",
]
