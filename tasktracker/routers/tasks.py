from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlmodel import Session

from ..database import get_db
from ..errors import ForbiddenError, NotFoundError
from ..models import Task as TaskModel, User
from ..schemas.task import (
    MessageResponse,
    Task as TaskSchema,
    TaskCreate,
    TaskHistory as TaskHistorySchema,
    TaskUpdate,
)
from ..services import TaskService
from .auth import get_current_user

router = APIRouter()


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(db)


def _ensure_user_scope(user_id: int, current_user: User) -> None:
    if user_id != current_user.id:
        raise ForbiddenError("Forbidden")


def _get_owned_task(tasks: TaskService, task_id: int, current_user: User) -> TaskModel:
    # Tasks of other users are reported exactly like missing ones.
    task = tasks.get(task_id)
    if task.user_id != current_user.id:
        raise NotFoundError("Task not found")
    return task


@router.post("", response_model=TaskSchema, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    current_user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    """Create a new task owned by the caller."""
    if payload.user_id is None:
        payload.user_id = current_user.id
    _ensure_user_scope(payload.user_id, current_user)
    return tasks.create(payload)


@router.get("", response_model=List[TaskSchema])
def list_tasks(
    status: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    """List the caller's tasks, newest first, optionally filtered by status."""
    if status:
        return tasks.find_by_user_id_and_status(current_user.id, status)
    return tasks.find_by_user_id(current_user.id)


@router.get("/user/{user_id}", response_model=List[TaskSchema])
def list_user_tasks(
    user_id: int,
    current_user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    _ensure_user_scope(user_id, current_user)
    return tasks.find_by_user_id(user_id)


@router.get("/user/{user_id}/status/{task_status}", response_model=List[TaskSchema])
def list_user_tasks_by_status(
    user_id: int,
    task_status: str,
    current_user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    """List a user's tasks in one status (IN_PROGRESS or DONE)."""
    _ensure_user_scope(user_id, current_user)
    return tasks.find_by_user_id_and_status(user_id, task_status)


@router.get("/{task_id}", response_model=TaskSchema)
def get_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    return _get_owned_task(tasks, task_id, current_user)


@router.put("/{task_id}", response_model=TaskSchema)
def update_task(
    task_id: int,
    payload: TaskUpdate,
    current_user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    _get_owned_task(tasks, task_id, current_user)
    return tasks.update(task_id, payload)


@router.patch("/{task_id}/complete", response_model=TaskSchema)
def mark_task_complete(
    task_id: int,
    current_user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    _get_owned_task(tasks, task_id, current_user)
    return tasks.mark_completed(task_id)


@router.delete("/{task_id}", response_model=MessageResponse)
def delete_task(
    task_id: int,
    current_user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    _get_owned_task(tasks, task_id, current_user)
    tasks.delete(task_id)
    return MessageResponse(message="Task deleted successfully")


@router.get("/{task_id}/history", response_model=List[TaskHistorySchema])
def get_task_history(
    task_id: int,
    current_user: User = Depends(get_current_user),
    tasks: TaskService = Depends(get_task_service),
):
    """Audit trail of a task, newest first."""
    _get_owned_task(tasks, task_id, current_user)
    return tasks.get_history(task_id)
