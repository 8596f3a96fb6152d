"""
Report ORM model.

Dependencies: sqlalchemy, car_repair.boundary.db.base
System role: Immutable analysis result persistence
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from car_repair.boundary.db.base import Base, UUIDMixin, utc_now

if TYPE_CHECKING:
    from car_repair.boundary.db.models.task_model import TaskModel


class ReportModel(Base, UUIDMixin):
    """
    Damage report produced by a successful analysis.

    Attributes:
        task_id: Task the report belongs to (unique)
        data: Analysis payload exactly as returned by the model
        url: Optional externally hosted rendering
        created_at: Creation time (UTC)

    Constraints:
        uq_reports_task_id: one report per task, closing the race between
        two concurrent jobs for the same task
    """

    __tablename__ = "reports"
    __table_args__ = (UniqueConstraint("task_id", name="uq_reports_task_id"),)

    task_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
    )
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    task: Mapped["TaskModel"] = relationship("TaskModel", back_populates="reports")
