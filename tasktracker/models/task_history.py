from sqlalchemy import Column, Text
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional
import enum

from .base import UTCDateTime, utcnow


class HistoryAction(str, enum.Enum):
    CREATED = "CREATED"
    EDITED = "EDITED"
    STATUS_CHANGED = "STATUS_CHANGED"
    COMPLETED = "COMPLETED"
    DELETED = "DELETED"


class TaskHistory(SQLModel, table=True):
    """Append-only audit record of one change to a task.

    ``task_id`` is not a foreign key; the DELETED entry outlives the task
    row it describes.
    """
    __tablename__ = "task_history"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(index=True)
    action: str = Field(max_length=50)
    old_status: Optional[str] = Field(default=None, max_length=50)
    new_status: Optional[str] = Field(default=None, max_length=50)
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    changed_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime, index=True)
