"""Data access objects for tasks, task history and users.

Each DAO wraps one ``Session``, commits per write and refreshes the record
it returns. Store failures leave the session rolled back and surface as
``PersistenceFailure`` (or ``DuplicateError`` for user uniqueness).
"""

from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from .errors import DuplicateError, PersistenceFailure
from .models import Task, TaskHistory, User
from .models.base import utcnow


class _BaseDAO:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _store_errors(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceFailure(f"Failed to {action}") from e

    def _save(self, record, action: str):
        with self._store_errors(action):
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        return record


class TaskDAO(_BaseDAO):

    def create(self, task: Task) -> Task:
        return self._save(task, "create task")

    def find_by_id(self, task_id: int) -> Optional[Task]:
        with self._store_errors("find task"):
            return self.db.get(Task, task_id)

    def find_by_user_id(self, user_id: int) -> List[Task]:
        query = (
            select(Task)
            .where(Task.user_id == user_id)
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        with self._store_errors("list tasks"):
            return list(self.db.exec(query).all())

    def find_by_user_id_and_status(self, user_id: int, status: str) -> List[Task]:
        query = (
            select(Task)
            .where(Task.user_id == user_id, Task.status == status)
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        with self._store_errors("list tasks"):
            return list(self.db.exec(query).all())

    def find_all(self) -> List[Task]:
        query = select(Task).order_by(Task.created_at.desc(), Task.id.desc())
        with self._store_errors("list tasks"):
            return list(self.db.exec(query).all())

    def update(self, task: Task) -> Task:
        task.updated_at = utcnow()
        return self._save(task, "update task")

    def reload(self, task: Task) -> Task:
        with self._store_errors("reload task"):
            self.db.refresh(task)
        return task

    def delete(self, task_id: int) -> None:
        with self._store_errors("delete task"):
            task = self.db.get(Task, task_id)
            if task is None:
                raise PersistenceFailure("Failed to delete task, no rows affected")
            self.db.delete(task)
            self.db.commit()


class TaskHistoryDAO(_BaseDAO):

    def create(self, history: TaskHistory) -> TaskHistory:
        return self._save(history, "record task history")

    def find_by_task_id(self, task_id: int) -> List[TaskHistory]:
        query = (
            select(TaskHistory)
            .where(TaskHistory.task_id == task_id)
            .order_by(TaskHistory.changed_at.desc(), TaskHistory.id.desc())
        )
        with self._store_errors("list task history"):
            return list(self.db.exec(query).all())


def _duplicate_from(error: IntegrityError) -> DuplicateError:
    detail = str(error.orig).lower()
    if "username" in detail:
        return DuplicateError("Username already in use")
    if "email" in detail:
        return DuplicateError("Email already in use")
    return DuplicateError("Username or email already in use")


class UserDAO(_BaseDAO):

    def _save(self, record, action: str):
        # The unique constraints are the backstop for concurrent registrations.
        try:
            return super()._save(record, action)
        except PersistenceFailure as e:
            if isinstance(e.__cause__, IntegrityError):
                raise _duplicate_from(e.__cause__) from e.__cause__
            raise

    def create(self, user: User) -> User:
        return self._save(user, "create user")

    def find_by_id(self, user_id: int) -> Optional[User]:
        with self._store_errors("find user"):
            return self.db.get(User, user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        with self._store_errors("find user"):
            return self.db.exec(select(User).where(User.username == username)).first()

    def find_by_email(self, email: str) -> Optional[User]:
        with self._store_errors("find user"):
            return self.db.exec(select(User).where(User.email == email)).first()

    def find_all(self) -> List[User]:
        query = select(User).order_by(User.created_at.desc(), User.id.desc())
        with self._store_errors("list users"):
            return list(self.db.exec(query).all())

    def update(self, user: User) -> User:
        user.updated_at = utcnow()
        return self._save(user, "update user")

    def delete(self, user_id: int) -> None:
        with self._store_errors("delete user"):
            user = self.db.get(User, user_id)
            if user is None:
                raise PersistenceFailure("Failed to delete user, no rows affected")
            self.db.delete(user)
            self.db.commit()
