"""
Task ORM model.

A task is one inspection request: a vehicle descriptor, its photos, a
payment flag and the current pipeline status.

Dependencies: sqlalchemy, car_repair.boundary.db.base
System role: Inspection request persistence
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from car_repair.boundary.db.base import Base, TimestampMixin, UUIDMixin
from car_repair.boundary.db.models.task_status_model import TaskStatusModel

if TYPE_CHECKING:
    from car_repair.boundary.db.models.image_model import ImageModel
    from car_repair.boundary.db.models.report_model import ReportModel
    from car_repair.boundary.db.models.user_model import UserModel


class TaskModel(Base, UUIDMixin, TimestampMixin):
    """
    Inspection task ORM model.

    Attributes:
        owner_id: User that created the task
        brand, model, year, mileage, description: Vehicle descriptor
        country_code: ISO 3166-1 alpha-2 code driving currency/language
        is_paid: Set once by payment confirmation; gates enqueueing
        current_status_id: Pipeline status (task_statuses lookup)

    Invariants:
        - Enqueued only after is_paid is true
        - At most one report (unique constraint on reports.task_id)
    """

    __tablename__ = "tasks"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    brand: Mapped[str | None] = mapped_column(String(100), nullable=True)
    model: Mapped[str | None] = mapped_column(String(100), nullable=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mileage: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    country_code: Mapped[str | None] = mapped_column(String(2), nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    current_status_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("task_statuses.id"),
        nullable=True,
    )

    owner: Mapped["UserModel"] = relationship("UserModel", back_populates="tasks")
    current_status: Mapped[TaskStatusModel | None] = relationship(TaskStatusModel)
    images: Mapped[list["ImageModel"]] = relationship(
        "ImageModel",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    reports: Mapped[list["ReportModel"]] = relationship(
        "ReportModel",
        back_populates="task",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
