"""
Queue job ORM model.

Durable record of one unit of queued work: processing a task. Rows are
claimed with a conditional UPDATE so a job runs in exactly one worker at
a time, and survive process restarts.

Dependencies: sqlalchemy, car_repair.boundary.db.base
System role: Durable job queue storage
"""

import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from car_repair.boundary.db.base import Base, TimestampMixin, UUIDMixin, utc_now


class QueueJobStatus(str, enum.Enum):
    """
    Queue job states.

    PENDING: Waiting for run_after to pass and a worker to claim it
    RUNNING: Claimed by a worker
    COMPLETED: Processor returned a result
    FAILED: Attempts exhausted or failure was not retryable
    """

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class QueueJobModel(Base, UUIDMixin, TimestampMixin):
    """
    Queue job ORM model.

    Attributes:
        task_id: Task to process
        status: Current state
        priority: Lower values are claimed first
        attempt_count: Attempts started so far (incremented on claim)
        max_attempts: Attempt budget
        run_after: Earliest claim time (retry backoff)
        worker_id: Claiming worker
        started_at / finished_at: Last claim and terminal time
        last_error / failure_kind: Most recent failure
        result: Processor result on completion
    """

    __tablename__ = "queue_jobs"
    __table_args__ = (
        Index("ix_queue_jobs_ready", "status", "priority", "run_after", "created_at"),
    )

    task_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[QueueJobStatus] = mapped_column(
        Enum(QueueJobStatus, native_enum=False),
        nullable=False,
        default=QueueJobStatus.PENDING,
    )
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    run_after: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
    worker_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    started_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    failure_kind: Mapped[str | None] = mapped_column(String(64), nullable=True)
    result: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
