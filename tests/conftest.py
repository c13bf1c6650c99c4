"""Shared fixtures: an isolated in-memory database per test."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ.setdefault("PASSWORD_HASH_SCHEME", "sha256")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from tasktracker.database import create_tables, get_db
from tasktracker.main import app
from tasktracker.models import TaskHistory
from tasktracker.schemas.task import TaskCreate
from tasktracker.schemas.user import UserCreate
from tasktracker.services import TaskService, UserService


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture()
def user_service(session) -> UserService:
    return UserService(session)


@pytest.fixture()
def task_service(session) -> TaskService:
    return TaskService(session)


@pytest.fixture()
def alice(user_service):
    return user_service.create(
        UserCreate(username="alice", email="alice@x.com", password="wonderland")
    )


@pytest.fixture()
def make_task(task_service, alice):
    """Factory for tasks owned by alice."""

    def _make(**overrides):
        fields = {
            "user_id": alice.id,
            "title": "Write report",
            "category": "WORK",
            "priority": "HIGH",
        }
        fields.update(overrides)
        return task_service.create(TaskCreate(**fields))

    return _make


@pytest.fixture()
def client(engine):
    def _get_db():
        db = Session(engine, expire_on_commit=False)
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def audit_outage(engine):
    """Call to drop the history table, simulating an audit store outage."""

    def _drop():
        TaskHistory.__table__.drop(engine)

    return _drop
