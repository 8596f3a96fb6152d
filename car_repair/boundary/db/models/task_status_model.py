"""
Task status lookup and status history ORM models.

Dependencies: sqlalchemy, car_repair.boundary.db.base
System role: Status vocabulary and audit trail of task transitions
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from car_repair.boundary.db.base import Base, UUIDMixin, utc_now


class TaskStatusName(str, enum.Enum):
    """
    Task status vocabulary.

    IMAGE_UPLOADED: Task created, waiting for payment and processing
    PROCESSING: Analysis in progress (or being retried)
    COMPLETED: Report stored
    FAILED: Processing gave up; terminal
    """

    IMAGE_UPLOADED = "image_uploaded"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatusModel(Base, UUIDMixin):
    """Named task status (image_uploaded, processing, completed, failed)."""

    __tablename__ = "task_statuses"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)


class TaskStatusHistoryModel(Base, UUIDMixin):
    """
    One row per applied status transition.

    Attributes:
        task_id: Task that changed status
        status_id: Status entered
        created_at: Transition time (UTC)
    """

    __tablename__ = "task_status_history"

    task_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("task_statuses.id"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
