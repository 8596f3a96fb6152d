"""
Image and image type ORM models.

Images are uploaded before a task exists, so `task_id` is nullable;
deleting a task removes its images.

Dependencies: sqlalchemy, car_repair.boundary.db.base
System role: Vehicle photo metadata persistence
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from car_repair.boundary.db.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from car_repair.boundary.db.models.task_model import TaskModel

IMAGE_TYPE_NAMES: tuple[str, ...] = ("front", "back", "left", "right", "issue", "other")


class ImageTypeModel(Base, UUIDMixin):
    """Named photo angle (front, back, left, right, issue, other)."""

    __tablename__ = "image_types"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)


class ImageModel(Base, UUIDMixin, TimestampMixin):
    """
    Uploaded vehicle photo.

    Attributes:
        local_path: Filesystem path readable by the worker
        verified: Upload passed validation
        task_id: Owning task (None for orphan uploads)
        image_type_id: Photo angle
    """

    __tablename__ = "images"

    local_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    task_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    image_type_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("image_types.id"),
        nullable=True,
    )

    task: Mapped["TaskModel | None"] = relationship("TaskModel", back_populates="images")
    image_type: Mapped[ImageTypeModel | None] = relationship(ImageTypeModel)
