from typing import List

from fastapi import APIRouter, Depends, Response, status

from ..errors import ForbiddenError
from ..models import User
from ..schemas.user import User as UserSchema, UserUpdate
from ..services import UserService
from .auth import get_current_user, get_user_service

router = APIRouter()


def _ensure_self(user_id: int, current_user: User) -> None:
    if user_id != current_user.id:
        raise ForbiddenError("Users can only modify their own account")


@router.get("", response_model=List[UserSchema])
def list_users(
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return users.find_all()


@router.get("/{user_id}", response_model=UserSchema)
def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return users.get(user_id)


@router.put("/{user_id}", response_model=UserSchema)
def update_user(
    user_id: int,
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Update username, email, names or password of the caller's account."""
    _ensure_self(user_id, current_user)
    return users.update(user_id, payload)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    _ensure_self(user_id, current_user)
    users.delete(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
