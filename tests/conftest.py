"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory SQLite database with seeded lookups, a controllable
clock, task/owner/image factories, and pipeline component fixtures.
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from car_repair.boundary.db.base import Base
from car_repair.boundary.db.connection import create_session_factory
from car_repair.boundary.db.create_tables import seed_lookup_tables
from car_repair.boundary.db.models import (
    ImageModel,
    ImageTypeModel,
    TaskModel,
    TaskStatusModel,
    TaskStatusName,
    UserModel,
)
from car_repair.configs.queue import QueueSettings, WorkerSettings
from car_repair.core.job_queue import DurableJobQueue
from car_repair.core.notification.notification_dispatcher import NotificationResult
from car_repair.core.status_registry import StatusRegistry
from car_repair.core.task_processing.task_processor import TaskProcessor
from car_repair.models.analysis import AnalysisOutcome
from sqlalchemy import select


class FakeClock:
    """Manually advanced UTC clock for queue scheduling tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
async def test_engine() -> AsyncIterator[AsyncEngine]:
    """
    Create in-memory SQLite async engine with schema and seeded lookups.

    Yields:
        AsyncEngine: Engine shared by every session in the test
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed_lookup_tables(create_session_factory(engine))

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return create_session_factory(test_engine)


@pytest.fixture
async def test_async_db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """Single session for direct CRUD assertions."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock."""
    return FakeClock()


@pytest.fixture
def queue_settings() -> QueueSettings:
    """Default retry policy: 3 attempts, 60s doubling backoff."""
    return QueueSettings(
        max_attempts=3,
        backoff_base_seconds=60,
        backoff_max_seconds=600,
        default_priority=1,
        keep_completed=100,
        keep_failed=50,
        stale_job_seconds=1800,
    )


@pytest.fixture
def worker_settings() -> WorkerSettings:
    """Worker settings with the rate limiter disabled and fast polling."""
    return WorkerSettings(
        concurrency=1,
        rate_limit_max_jobs=1,
        rate_limit_window_seconds=0,
        poll_interval_seconds=0.01,
        shutdown_timeout_seconds=1,
    )


@pytest.fixture
def job_queue(
    session_factory: async_sessionmaker[AsyncSession],
    queue_settings: QueueSettings,
    clock: FakeClock,
) -> DurableJobQueue:
    """Durable queue on the test database with the fake clock."""
    return DurableJobQueue(session_factory, queue_settings, clock=clock)


@pytest.fixture
def status_registry(session_factory: async_sessionmaker[AsyncSession]) -> StatusRegistry:
    """Status registry on the test database."""
    return StatusRegistry(session_factory)


@pytest.fixture
def mock_analyzer() -> AsyncMock:
    """Analyzer that reports a clean vehicle."""
    analyzer = AsyncMock()
    analyzer.analyze = AsyncMock(
        return_value=AnalysisOutcome(
            payload={"damage_detected": False, "summary": "clean"},
            model_used="gemini-test",
        )
    )
    return analyzer


@pytest.fixture
def mock_notifier() -> AsyncMock:
    """Notifier that always succeeds."""
    notifier = AsyncMock()
    notifier.notify_report_ready = AsyncMock(
        return_value=NotificationResult(sent=True, message_id="mock-1", direct_access=True)
    )
    return notifier


@pytest.fixture
def task_processor(
    session_factory: async_sessionmaker[AsyncSession],
    mock_analyzer: AsyncMock,
    mock_notifier: AsyncMock,
    status_registry: StatusRegistry,
) -> TaskProcessor:
    """Processor wired to the test database and mock collaborators."""
    return TaskProcessor(session_factory, mock_analyzer, mock_notifier, status_registry)


@pytest.fixture
def image_file(tmp_path: Path) -> Path:
    """A small JPEG-named file on disk."""
    path = tmp_path / "front.jpg"
    path.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
    return path


_UNIQUE_EMAIL = object()

MakeTask = Callable[..., Awaitable[uuid.UUID]]


@pytest.fixture
def make_task(session_factory: async_sessionmaker[AsyncSession], image_file: Path) -> MakeTask:
    """
    Factory creating an owner and a task in status image_uploaded.

    Keyword Args:
        paid: is_paid flag (default True)
        image_types: photo angles to attach (default ["front"])
        email: owner email (default a unique address; None for no email)
        country_code: task country (default "GB")
    """

    async def _make(
        paid: bool = True,
        image_types: list[str] | None = None,
        email: str | None | object = _UNIQUE_EMAIL,
        country_code: str | None = "GB",
        **task_fields: Any,
    ) -> uuid.UUID:
        image_types = ["front"] if image_types is None else image_types
        if email is _UNIQUE_EMAIL:
            email = f"owner-{uuid.uuid4().hex[:8]}@example.com"
        async with session_factory() as session:
            owner = UserModel(email=email, name="Alex", language="en", currency=None)
            session.add(owner)
            await session.flush()

            status_id = (
                await session.execute(
                    select(TaskStatusModel.id).where(
                        TaskStatusModel.name == TaskStatusName.IMAGE_UPLOADED.value
                    )
                )
            ).scalar_one()
            task = TaskModel(
                owner_id=owner.id,
                brand=task_fields.pop("brand", "Toyota"),
                model=task_fields.pop("model", "Corolla"),
                year=task_fields.pop("year", 2018),
                mileage=task_fields.pop("mileage", 85000),
                country_code=country_code,
                is_paid=paid,
                current_status_id=status_id,
                **task_fields,
            )
            session.add(task)
            await session.flush()

            type_ids = dict(
                (await session.execute(select(ImageTypeModel.name, ImageTypeModel.id))).all()
            )
            for image_type in image_types:
                session.add(
                    ImageModel(
                        local_path=str(image_file),
                        verified=True,
                        task_id=task.id,
                        image_type_id=type_ids.get(image_type),
                    )
                )
            await session.commit()
            return task.id

    return _make


@pytest.fixture
def read_status(session_factory: async_sessionmaker[AsyncSession]) -> Callable[[uuid.UUID], Awaitable[str | None]]:
    """Reads a task's current status name."""

    async def _read(task_id: uuid.UUID) -> str | None:
        async with session_factory() as session:
            result = await session.execute(
                select(TaskStatusModel.name)
                .join(TaskModel, TaskModel.current_status_id == TaskStatusModel.id)
                .where(TaskModel.id == task_id)
            )
            return result.scalar_one_or_none()

    return _read
