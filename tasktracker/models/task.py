from sqlalchemy import Column, ForeignKey, Integer, Text
from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional
import enum

from .base import UTCDateTime, utcnow


class TaskCategory(str, enum.Enum):
    TECHNOLOGY = "TECHNOLOGY"
    CERTIFICATION = "CERTIFICATION"
    WORK = "WORK"
    PERSONAL = "PERSONAL"
    HEALTH = "HEALTH"
    EDUCATION = "EDUCATION"
    OTHER = "OTHER"


class TaskPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TaskStatus(str, enum.Enum):
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class Task(SQLModel, table=True):
    """Task owned by a single user.

    Invariant: ``completed_at`` is set if and only if ``status`` is DONE.
    """
    __tablename__ = "tasks"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(
        sa_column=Column(
            Integer,
            ForeignKey("users.id"),
            nullable=False,
            index=True,
        )
    )
    title: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    category: str = Field(max_length=50)
    priority: str = Field(max_length=50)
    status: str = Field(default=TaskStatus.IN_PROGRESS.value, max_length=50, index=True)
    due_date: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    completed_at: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
