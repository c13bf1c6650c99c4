from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Optional

from ..models.base import as_utc


class CamelModel(BaseModel):
    """Accepts and emits camelCase keys; snake_case is accepted on input too."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class TaskBase(CamelModel):
    """Mutable task fields.

    Enum-valued fields stay plain strings here; the task service validates
    and normalises them so every caller gets the same error.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None
    due_date: Optional[datetime] = None

    @field_validator("due_date")
    @classmethod
    def _due_date_in_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None


class TaskCreate(TaskBase):
    """Schema for creating new tasks. Owner defaults to the caller."""
    user_id: Optional[int] = None


class TaskUpdate(TaskBase):
    """Schema for replacing the mutable fields of a task."""
    pass


class Task(CamelModel):
    """Complete task schema with all fields."""
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    category: str
    priority: str
    status: str
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class TaskHistory(CamelModel):
    id: int
    task_id: int
    action: str
    old_status: Optional[str] = None
    new_status: Optional[str] = None
    description: Optional[str] = None
    changed_at: datetime


class MessageResponse(BaseModel):
    message: str
