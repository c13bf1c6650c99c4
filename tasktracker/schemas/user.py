from datetime import datetime
from typing import Optional

from .task import CamelModel


class UserBase(CamelModel):
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class UserCreate(UserBase):
    password: str


class UserUpdate(CamelModel):
    """Absent fields keep their stored value; an empty password is ignored."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class User(UserBase):
    """Outbound user payload. The password digest is never part of it."""
    id: int
    created_at: datetime
    updated_at: datetime


class LoginRequest(CamelModel):
    username: str
    password: str


class TokenData(CamelModel):
    username: Optional[str] = None
    user_id: Optional[int] = None


class AuthResponse(CamelModel):
    user_id: int
    username: str
    email: str
    message: str
    token: str
