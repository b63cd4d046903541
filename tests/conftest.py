"""
Pytest configuration and shared helpers.

Engine tests run against an in-memory SQLite database (aiosqlite) built from
the same models. Each test drives its async body with asyncio.run, so the
database is created inside that event loop with `create_test_db()`.
"""

import os
import uuid
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from typing import Any, List, Optional

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.models import ListShare, ListType, NotificationFrequency, Step, Task, TodoList, User

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def utc(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


class RecordingPushSink:
    """PushSink that remembers every event."""

    def __init__(self):
        self.events = []

    async def send(self, user_id, event, payload):
        self.events.append((user_id, event, payload))


class RecordingEmailSink:
    def __init__(self):
        self.sent = []

    async def send(self, address, subject, body):
        self.sent.append((address, subject, body))


async def create_test_db(savepoints: bool = False):
    """
    Fresh in-memory database with every table; returns (engine, session maker).

    With `savepoints=True` the driver's implicit transaction handling is turned
    off so SAVEPOINT/ROLLBACK TO behave as they do on Postgres.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    if savepoints:

        @event.listens_for(engine.sync_engine, "connect")
        def do_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def do_begin(conn):
            conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return engine, maker


def session_context(maker):
    """Session factory with commit/rollback semantics, as used by scheduled jobs."""

    @asynccontextmanager
    async def factory():
        async with maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return factory


async def add_user(
    db: AsyncSession,
    email: Optional[str] = "user@example.com",
    frequency: NotificationFrequency = NotificationFrequency.DAILY,
    retention_days: int = 30,
    deleted_at: Optional[datetime] = None,
) -> User:
    user = User(
        id=uuid.uuid4(),
        email=email,
        notification_frequency=frequency,
        trash_retention_days=retention_days,
        deleted_at=deleted_at,
    )
    db.add(user)
    await db.flush()
    return user


async def add_list(
    db: AsyncSession,
    owner: User,
    list_type: ListType = ListType.CUSTOM,
    name: Optional[str] = None,
    deleted_at: Optional[datetime] = None,
    is_system: bool = False,
) -> TodoList:
    todo_list = TodoList(
        id=uuid.uuid4(),
        name=name or list_type.value.title(),
        owner_id=owner.id,
        type=list_type,
        is_system=is_system,
        deleted_at=deleted_at,
    )
    db.add(todo_list)
    await db.flush()
    return todo_list


async def add_task(
    db: AsyncSession,
    todo_list: TodoList,
    description: str = "Task",
    completed: bool = False,
    completed_at: Optional[datetime] = None,
    due_date: Optional[date] = None,
    specific_day_of_week: Optional[int] = None,
    reminder_days_before: Any = None,
    completion_count: int = 0,
    original_list_id: Optional[uuid.UUID] = None,
    deleted_at: Optional[datetime] = None,
) -> Task:
    task = Task(
        id=uuid.uuid4(),
        todo_list_id=todo_list.id,
        description=description,
        completed=completed,
        completed_at=completed_at,
        due_date=due_date,
        specific_day_of_week=specific_day_of_week,
        reminder_days_before=reminder_days_before,
        completion_count=completion_count,
        original_list_id=original_list_id,
        deleted_at=deleted_at,
    )
    db.add(task)
    await db.flush()
    return task


async def add_steps(db: AsyncSession, task: Task, *completed_flags: bool) -> List[Step]:
    steps = []
    for index, completed in enumerate(completed_flags):
        step = Step(
            id=uuid.uuid4(),
            task_id=task.id,
            description=f"Step {index + 1}",
            completed=completed,
            order=index,
        )
        db.add(step)
        steps.append(step)
    await db.flush()
    return steps


async def share_list(db: AsyncSession, todo_list: TodoList, user: User) -> ListShare:
    share = ListShare(id=uuid.uuid4(), todo_list_id=todo_list.id, shared_with_id=user.id)
    db.add(share)
    await db.flush()
    return share


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests, no external deps")
    config.addinivalue_line("markers", "db: requires database")
    config.addinivalue_line("markers", "server: requires running HTTP server")


def pytest_collection_modifyitems(config, items):
    run_db = os.environ.get("RUN_DB_TESTS") == "1"
    run_server = os.environ.get("RUN_SERVER_TESTS") == "1"

    skip_db = pytest.mark.skip(reason="db tests skipped by default; set RUN_DB_TESTS=1 to enable")
    skip_server = pytest.mark.skip(reason="server tests skipped by default; set RUN_SERVER_TESTS=1 to enable")

    for item in items:
        if "db" in item.keywords and not run_db:
            item.add_marker(skip_db)
        if "server" in item.keywords and not run_server:
            item.add_marker(skip_server)
