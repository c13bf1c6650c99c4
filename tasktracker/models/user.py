from sqlmodel import SQLModel, Field
from datetime import datetime
from typing import Optional

from .base import UTCDateTime, utcnow


class User(SQLModel, table=True):
    """User model for authentication and user management.

    ``hashed_password`` holds the digest, never the plaintext, and must not
    leave the service layer.
    """
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True, max_length=100)
    email: str = Field(unique=True, index=True, max_length=255)
    hashed_password: str
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
